#!/usr/bin/env python3
"""
Tiled Cube Cut Planner — Corner-Point 2-D Bin Packing + SVG Output
==================================================================
Works out the six wood panels of a tiled cube, lays them out on stock
sheets and renders one SVG cut sheet per stock panel.

Architecture
------------
  get_wood_dimensions()  Derive the six named wood pieces from the cube's
                         tile / grout / thickness configuration.
  calculate_tiles()      Count tiles per colour for a checkered or solid face.
  CornerPointPacker      Deterministic largest-first heuristic that places
                         pieces at panel corner points, with a 90° fallback.
  load_config()          Read the cube and stock description from an INI file.
  SVGGenerator           Render a packed panel to an SVG with three named
                         layers (back to front):
                         panel  — stock sheet background and outline
                         pieces — one coloured rectangle per placed piece
                         labels — dimension and name text as path outlines
  write_cut_list()       Export all placements as a CSV cut list.

Usage
-----
    python cutplanner.py
    python cutplanner.py my_cube.conf
    python cutplanner.py my_cube.conf -o output/cube --panel 122x244
    python cutplanner.py my_cube.conf --csv output/cutlist.csv

Units
-----
    Tile and panel sizes are in centimetres.  Grout and wood thickness are
    entered in millimetres, as they are measured in the shop, and converted
    to centimetres by the deriver.

Dependencies
------------
    Required : svgwrite, fonttools
"""

import argparse
import configparser
import csv
import os
import re
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import svgwrite
from fontTools.pens.svgPathPen import SVGPathPen
from fontTools.pens.transformPen import TransformPen
from fontTools.ttLib import TTFont, TTLibError

# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, eq=False)
class Piece:
    """
    One rectangular wood cut required by the cube.

    Pieces compare by identity: names are not unique (Top and Bottom
    usually share dimensions), so two equal-looking pieces are still two
    separate cuts.

    Attributes
    ----------
    name   : Display name, e.g. ``"Front (external)"``.
    width  : Width in cm.
    height : Height in cm.
    kind   : Classification tag (embedded, external or internal).  Passed
             through by the packer unchanged.
    tiled  : True when the piece carries tiles (needs a visible finish).
    """

    name: str
    width: float   # cm
    height: float  # cm
    kind: str = 'internal'
    tiled: bool = False

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class Panel:
    """A sheet of stock material, in cm."""

    id: str
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass
class Placement:
    """
    Position of one piece on a panel.

    Attributes
    ----------
    piece   : The placed piece (referenced, not copied).
    x       : Left edge in cm (panel origin at top-left).
    y       : Top edge in cm.
    rotated : True when the piece's width and height are swapped.
    """

    piece: Piece
    x: float
    y: float
    rotated: bool = False

    @property
    def width(self) -> float:
        """Occupied width in the placed orientation."""
        return self.piece.height if self.rotated else self.piece.width

    @property
    def height(self) -> float:
        """Occupied height in the placed orientation."""
        return self.piece.width if self.rotated else self.piece.height

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass
class PackingResult:
    """
    One stock panel and the placements it carries.

    Attributes
    ----------
    panel      : The stock panel.
    placements : Placements in the order they were made.
    """

    panel: Panel
    placements: List[Placement]

    @property
    def occupied_area(self) -> float:
        """Sum of the placed footprints in cm²."""
        return sum(p.area for p in self.placements)

    @property
    def waste_area(self) -> float:
        """Panel area not covered by any placement, in cm²."""
        return self.panel.area - self.occupied_area

    @property
    def efficiency(self) -> float:
        """
        Material utilisation as a percentage [0, 100].

        Returns 0 for a zero-area panel instead of dividing by zero.
        """
        total_area = self.panel.area
        return (self.occupied_area / total_area * 100) if total_area > 0 else 0


# ============================================================================
# CORNER-POINT PACKER
# ============================================================================

class CornerPointPacker:
    """
    Largest-first corner-point heuristic for 2-D bin packing.

    Algorithm overview
    ------------------
    1. Sort all pieces by area, largest first.  Equal areas keep their
       input order.
    2. Fill the panels in the order given.  Every pending piece is tried
       once per panel, largest first.
    3. Candidate positions are the panel origin plus, for every piece
       already on the panel, the point to its right and the point below
       it.  The first candidate that stays inside the panel and overlaps
       nothing wins.
    4. If the natural orientation fits nowhere, the same search is
       repeated with width and height swapped (90° rotation).
    5. Pieces that fit nowhere stay pending for the next panel.  Panels
       after the one that empties the queue are not used.

    Pieces that fit on no panel are left out of the results without an
    error; use unplaced_pieces() to list them.

    The packer holds no state between calls and never validates
    dimensions: non-positive sizes give meaningless geometry.
    """

    def pack(self, pieces: Sequence[Piece],
             panels: Sequence[Panel]) -> List[PackingResult]:
        """
        Assign pieces to panels.

        Parameters
        ----------
        pieces : Pieces to cut, in derivation order.
        panels : Available stock, in the order it should be used.

        Returns
        -------
        One PackingResult per processed panel, in panel order.
        """
        pending = sorted(pieces, key=lambda p: p.area, reverse=True)
        results: List[PackingResult] = []

        for panel in panels:
            result = PackingResult(panel=panel, placements=[])
            leftover: List[Piece] = []

            for piece in pending:
                placement = self._find_placement(result, piece)
                if placement:
                    result.placements.append(placement)
                else:
                    leftover.append(piece)

            pending = leftover
            results.append(result)

            if not pending:
                break

        return results

    def _find_placement(self, result: PackingResult,
                        piece: Piece) -> Optional[Placement]:
        """Try the natural orientation, then the rotated one."""
        orientations = [
            (piece.width, piece.height, False),
            (piece.height, piece.width, True),
        ]

        for width, height, rotated in orientations:
            position = self._find_position(result, width, height)
            if position is not None:
                return Placement(piece, position[0], position[1], rotated)

        return None

    def _candidate_positions(self, result: PackingResult) -> List[Tuple[float, float]]:
        """
        Corner points to try, in order.

        The origin comes first, then for each existing placement (in the
        order it was placed) its top-right corner followed by its
        bottom-left corner.
        """
        positions = [(0.0, 0.0)]
        for p in result.placements:
            positions.append((p.x + p.width, p.y))
            positions.append((p.x, p.y + p.height))
        return positions

    def _find_position(self, result: PackingResult, width: float,
                       height: float) -> Optional[Tuple[float, float]]:
        """
        Return the first candidate where a *width* × *height* rectangle fits.

        Parameters
        ----------
        result : Panel being filled, with its placements so far.
        width  : Width in the orientation being tried (cm).
        height : Height in the orientation being tried (cm).

        Returns
        -------
        (x, y) of the accepted corner, or None.
        """
        panel = result.panel
        for x, y in self._candidate_positions(result):
            if x + width > panel.width or y + height > panel.height:
                continue
            if not self._check_overlap(result, x, y, width, height):
                return (x, y)
        return None

    def _check_overlap(self, result: PackingResult, x: float, y: float,
                       width: float, height: float) -> bool:
        """
        Return True if the rectangle overlaps any placement on the panel.

        Overlap needs a positive intersection on both axes, so rectangles
        that only share an edge do not overlap.
        """
        for p in result.placements:
            if (x < p.x + p.width and x + width > p.x and
                    y < p.y + p.height and y + height > p.y):
                return True
        return False


def pack(pieces: Sequence[Piece], panels: Sequence[Panel]) -> List[PackingResult]:
    """Pack *pieces* onto *panels* with the corner-point heuristic."""
    return CornerPointPacker().pack(pieces, panels)


def unplaced_pieces(pieces: Sequence[Piece],
                    results: Sequence[PackingResult]) -> List[Piece]:
    """Pieces from *pieces* that appear in no placement, in input order."""
    placed = {id(p.piece) for r in results for p in r.placements}
    return [piece for piece in pieces if id(piece) not in placed]


# ============================================================================
# PIECE DERIVER
# ============================================================================

@dataclass
class Side:
    """
    One face of the cube.

    Attributes
    ----------
    name      : Face name: Top, Bottom, Front, Back, Left or Right.
    tiles_x   : Tiles across the face.
    tiles_y   : Tiles down the face.
    thickness : Wood thickness for this face in mm, used only when
                separate thicknesses are enabled.
    """

    name: str
    tiles_x: int
    tiles_y: int
    thickness: Optional[float] = None  # mm


@dataclass(frozen=True)
class TileCounts:
    """Tiles needed per colour."""

    color1: int
    color2: int

    @property
    def total(self) -> int:
        return self.color1 + self.color2


FACE_NAMES = ('Top', 'Bottom', 'Front', 'Back', 'Left', 'Right')


def calculate_dimensions(tiles_x: int, tiles_y: int, tile_width: float,
                         tile_height: float, grout: float) -> Tuple[float, float]:
    """
    Size of a tiled face: the tiles plus the grout lines between them.

    Parameters
    ----------
    tiles_x, tiles_y        : Tile count along each axis.
    tile_width, tile_height : Tile size in cm.
    grout                   : Grout line width in mm.

    Returns
    -------
    (width, height) in cm.
    """
    grout_cm = grout / 10
    width = tiles_x * tile_width + (tiles_x - 1) * grout_cm
    height = tiles_y * tile_height + (tiles_y - 1) * grout_cm
    return width, height


def _find_side(sides: Sequence[Side], name: str) -> Side:
    for side in sides:
        if side.name == name:
            return side
    raise ValueError(f"Cube configuration has no '{name}' side")


def get_wood_dimensions(sides: Sequence[Side], tile_width: float,
                        tile_height: float, grout: float,
                        global_thickness: float,
                        use_separate_thickness: bool) -> List[Piece]:
    """
    Derive the six wood pieces of the cube from its tiled faces.

    Assembly
    --------
    * Front / Back are external: full tiled dimensions.
    * Top / Bottom sit inside the box, reduced by the Left/Right and
      Front/Back thicknesses.
    * Left / Right are internal: they fit between Front/Back and
      Top/Bottom.

    The Top, Front and Left faces define the box; Bottom, Back and Right
    mirror them.

    Parameters
    ----------
    sides                  : Cube faces; Top, Front and Left are required.
    tile_width             : Tile width in cm.
    tile_height            : Tile height in cm.
    grout                  : Grout width in mm.
    global_thickness       : Wood thickness in mm.
    use_separate_thickness : Use each face's own thickness when it has one.

    Returns
    -------
    Pieces in the order Top, Bottom, Front, Back, Left, Right.
    """
    top = _find_side(sides, 'Top')
    front = _find_side(sides, 'Front')
    left = _find_side(sides, 'Left')

    top_w, _ = calculate_dimensions(top.tiles_x, top.tiles_y,
                                    tile_width, tile_height, grout)
    _, front_h = calculate_dimensions(front.tiles_x, front.tiles_y,
                                      tile_width, tile_height, grout)
    left_w, _ = calculate_dimensions(left.tiles_x, left.tiles_y,
                                     tile_width, tile_height, grout)

    def thickness_cm(side: Side) -> float:
        t = global_thickness
        if use_separate_thickness and side.thickness:
            t = side.thickness
        return t / 10

    t_top = thickness_cm(top)
    t_front = thickness_cm(front)
    t_left = thickness_cm(left)

    inner_width = top_w - 2 * t_left
    inner_depth = left_w - 2 * t_front
    inner_height = front_h - 2 * t_top

    return [
        Piece('Top', inner_width, inner_depth, 'embedded', True),
        Piece('Bottom', inner_width, inner_depth, 'embedded', False),
        Piece('Front (external)', top_w, front_h, 'external', True),
        Piece('Back (external)', top_w, front_h, 'external', True),
        Piece('Left (internal)', inner_depth, inner_height, 'internal', True),
        Piece('Right (internal)', inner_depth, inner_height, 'internal', True),
    ]


def calculate_tiles(sides: Sequence[Side], pattern: str) -> TileCounts:
    """
    Count the tiles of each colour over every tiled face.

    The Bottom face is never tiled.  In a checkered pattern tile (x, y)
    takes colour 1 when x + y is even; a solid pattern is all colour 1.
    """
    if pattern not in ('checkered', 'solid'):
        raise ValueError(f"Unknown tile pattern: {pattern!r}")

    color1 = color2 = 0
    for side in sides:
        if side.name == 'Bottom':
            continue
        if pattern == 'solid':
            color1 += side.tiles_x * side.tiles_y
            continue
        for y in range(side.tiles_y):
            for x in range(side.tiles_x):
                if (x + y) % 2 == 0:
                    color1 += 1
                else:
                    color2 += 1

    return TileCounts(color1, color2)


# ============================================================================
# CONFIGURATION
# ============================================================================

DEFAULT_PALETTE = ('#FF6B6B,#4ECDC4,#45B7D1,#FFA07A,#98D8C8,'
                   '#F7DC6F,#BB8FCE,#85C1E2,#F8B195,#C06C84')

DEFAULTS: Dict[str, Dict[str, str]] = {
    'cube': {
        'name': 'New Cube',
        'tile_width': '11.5',
        'tile_height': '11.5',
        'grout': '3',
        'thickness': '9',
        'separate_thickness': 'no',
        'pattern': 'checkered',
    },
    'sides': {
        'top': '2x2',
        'bottom': '2x2',
        'front': '2x3',
        'back': '2x3',
        'left': '2x3',
        'right': '2x3',
    },
    'thickness': {},
    'panels': {
        'panel1': '122x244',
    },
    'colors': {
        'color1': '#ff6b35',
        'color2': '#f7931e',
        'grout': '#808080',
        'panel': '#f3f4f6',
        'outline': '#374151',
        'piece_outline': '#1f2937',
        'rotated': '#ef4444',
        'palette': DEFAULT_PALETTE,
    },
    'font': {
        'path': '',
        'size': '3',
    },
}

_SIZE_RE = re.compile(r'^\s*([0-9]*\.?[0-9]+)\s*[xX×*]\s*([0-9]*\.?[0-9]+)\s*$')


def load_config(path: Optional[str] = None) -> configparser.ConfigParser:
    """
    Load the cube configuration, falling back to built-in defaults.

    Every section in DEFAULTS is always present in the returned parser.
    Values from *path* override the defaults key by key, except for
    ``[panels]``: a file that lists panels replaces the default stock
    list entirely.

    Parameters
    ----------
    path : INI file to read.  A missing file is not an error.

    Returns
    -------
    Populated ConfigParser.
    """
    cfg = configparser.ConfigParser(interpolation=None)
    cfg.read_dict(DEFAULTS)

    if not path or not os.path.exists(path):
        if path:
            print(f"  ⚠️  Config file not found: {path}")
        print("  ↩  Using built-in cube defaults")
        return cfg

    from_file = configparser.ConfigParser(interpolation=None)
    from_file.read(path, encoding='utf-8')

    if from_file.has_section('panels'):
        cfg.remove_section('panels')
        cfg.add_section('panels')

    cfg.read_dict({s: dict(from_file.items(s)) for s in from_file.sections()})
    print(f"  → Loaded config: {path}")
    return cfg


def parse_size(value: str) -> Tuple[float, float]:
    """
    Parse a ``WIDTHxHEIGHT`` string such as ``"122x244"``.

    ``x``, ``X``, ``×`` and ``*`` are accepted as separators.  Raises
    ValueError for malformed or non-positive sizes.
    """
    match = _SIZE_RE.match(value)
    if not match:
        raise ValueError(f"Invalid size {value!r}; expected WIDTHxHEIGHT")
    width, height = float(match.group(1)), float(match.group(2))
    if width <= 0 or height <= 0:
        raise ValueError(f"Size {value!r} must be positive in both directions")
    return width, height


def _config_float(cfg: configparser.ConfigParser, section: str, key: str,
                  allow_zero: bool = False) -> float:
    """
    Read a positive number from *section*.*key*.

    Raises ValueError naming the key when the value is not a number, is
    negative, or is zero without *allow_zero*.
    """
    try:
        value = cfg.getfloat(section, key)
    except ValueError as e:
        raise ValueError(f"{section}.{key}: {e}") from e
    if value < 0 or (value == 0 and not allow_zero):
        bound = 'zero or more' if allow_zero else 'positive'
        raise ValueError(f"{section}.{key}: must be {bound}, got {value:g}")
    return value


def sides_from_config(cfg: configparser.ConfigParser) -> List[Side]:
    """Build the six cube faces from ``[sides]`` and ``[thickness]``."""
    sides = []
    for name in FACE_NAMES:
        key = name.lower()
        raw = cfg.get('sides', key)
        try:
            tiles_x, tiles_y = parse_size(raw)
        except ValueError as e:
            raise ValueError(f"sides.{key}: {e}") from e
        if not (tiles_x.is_integer() and tiles_y.is_integer()):
            raise ValueError(f"sides.{key}: tile counts must be whole numbers, got {raw!r}")
        thickness = None
        if cfg.has_option('thickness', key):
            # 0 falls back to the global thickness
            thickness = _config_float(cfg, 'thickness', key, allow_zero=True)
        sides.append(Side(name, int(tiles_x), int(tiles_y), thickness))
    return sides


def panels_from_config(cfg: configparser.ConfigParser) -> List[Panel]:
    """Stock panels from ``[panels]``, keyed by option name, in file order."""
    panels = []
    for key, raw in cfg.items('panels'):
        try:
            width, height = parse_size(raw)
        except ValueError as e:
            raise ValueError(f"panels.{key}: {e}") from e
        panels.append(Panel(key, width, height))
    return panels


def derive_pieces(cfg: configparser.ConfigParser) -> List[Piece]:
    """
    Derive the cube's wood pieces from a loaded configuration.

    Raises ValueError naming the config key for non-numeric or
    non-positive cube values, and when the thicknesses leave a piece with
    no area, so degenerate rectangles never reach the packer.
    """
    try:
        separate = cfg.getboolean('cube', 'separate_thickness')
    except ValueError as e:
        raise ValueError(f"cube.separate_thickness: {e}") from e

    pieces = get_wood_dimensions(
        sides_from_config(cfg),
        _config_float(cfg, 'cube', 'tile_width'),
        _config_float(cfg, 'cube', 'tile_height'),
        _config_float(cfg, 'cube', 'grout', allow_zero=True),
        _config_float(cfg, 'cube', 'thickness'),
        separate,
    )
    for piece in pieces:
        if piece.width <= 0 or piece.height <= 0:
            raise ValueError(
                f"{piece.name} comes out at {piece.width:.1f} x {piece.height:.1f} cm; "
                f"the wood is too thick for this cube")
    return pieces


# ============================================================================
# SVGGenerator
# ============================================================================

FONT_PATHS = [
    'arial.ttf',
    '/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',
    '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',
    '/System/Library/Fonts/Helvetica.ttc',
    'C:\\Windows\\Fonts\\arial.ttf',
]


class SVGGenerator:
    """
    Render a packed panel as an SVG cut sheet.

    The generated SVG contains three named groups in draw order (back to
    front):

    =======  ===================================================
    Group    Content
    =======  ===================================================
    panel    Stock sheet background with its outline.
    pieces   One filled rectangle per placement, coloured from the
             palette by placement index.
    labels   ``W×H`` in the placed orientation plus the piece name,
             converted to path outlines.  Rotated pieces get a
             quarter-turn arrow path in their top-left corner.
    =======  ===================================================

    Text is outlined via fontTools when a TrueType font can be found;
    otherwise each character is drawn as a placeholder block.
    """

    def __init__(self, result: PackingResult,
                 cfg: configparser.ConfigParser) -> None:
        self.result = result
        self.colors = cfg['colors']
        self.palette = [c.strip() for c in self.colors.get('palette').split(',') if c.strip()]
        self.max_text_size = cfg.getfloat('font', 'size')
        self._init_font(cfg.get('font', 'path'))

    def _init_font(self, font_path: str) -> None:
        """
        Load the TrueType font used for label outlines.

        An explicitly configured *font_path* must exist.  Otherwise the
        first readable entry of FONT_PATHS is used, and self.font is left
        as None when none can be loaded.
        """
        self.font = None
        self.font_path = None

        if font_path:
            if not os.path.exists(font_path):
                raise FileNotFoundError(f"Font file not found: {font_path}")
            candidates = [font_path]
        else:
            candidates = FONT_PATHS

        for candidate in candidates:
            if not os.path.exists(candidate):
                continue
            try:
                self.font = TTFont(candidate, fontNumber=0)
            except (OSError, TTLibError) as e:
                print(f"  ⚠️  Warning: Could not read font {candidate}: {e}")
                continue
            self.font_path = candidate
            break

        if not self.font:
            print("  ⚠️  Warning: No suitable font found, labels will use block glyphs")

    def generate(self) -> str:
        """
        Render the panel to an SVG string.

        Returns
        -------
        Complete SVG document with a metadata comment block right after
        the XML declaration.
        """
        panel = self.result.panel
        w, h = _fmt(panel.width), _fmt(panel.height)

        dwg = svgwrite.Drawing(size=(f"{w}cm", f"{h}cm"), viewBox=f"0 0 {w} {h}")
        dwg.defs.add(dwg.style(f"""
            .stock {{ fill: {self.colors.get('panel')}; stroke: {self.colors.get('outline')}; stroke-width: 0.4; }}
            .piece {{ stroke: {self.colors.get('piece_outline')}; stroke-width: 0.2; }}
            .label {{ fill: #ffffff; stroke: none; }}
            .rotated {{ fill: {self.colors.get('rotated')}; stroke: none; }}
        """))

        panel_group = dwg.g(id='panel')
        panel_group.add(dwg.rect(insert=(0, 0), size=(panel.width, panel.height),
                                 class_='stock'))
        dwg.add(panel_group)

        pieces_group = dwg.g(id='pieces')
        labels_group = dwg.g(id='labels')

        for index, placement in enumerate(self.result.placements):
            color = self.palette[index % len(self.palette)] if self.palette else '#cccccc'
            pieces_group.add(dwg.rect(
                insert=(placement.x, placement.y),
                size=(placement.width, placement.height),
                fill=color,
                class_='piece'
            ))

            for d in self._label_paths(placement):
                labels_group.add(dwg.path(d=d, class_='label'))

            if placement.rotated:
                labels_group.add(dwg.path(d=self._rotation_marker_path(placement),
                                          class_='rotated'))

        dwg.add(pieces_group)
        dwg.add(labels_group)

        svg_string = dwg.tostring()

        metadata_comment = f"""
<!-- Tiled Cube Cut Planner -->
<!-- Panel: {panel.id} ({w} x {h} cm) -->
<!-- Pieces: {len(self.result.placements)} -->
<!-- Efficiency: {self.result.efficiency:.1f}% -->
<!-- Waste: {self.result.waste_area:.0f} cm2 -->
"""
        if svg_string.startswith('<?xml'):
            xml_decl_end = svg_string.find('?>') + 2
            svg_string = svg_string[:xml_decl_end] + metadata_comment + svg_string[xml_decl_end:]
        else:
            svg_string = '<?xml version="1.0" encoding="utf-8" ?>' + metadata_comment + svg_string

        return svg_string

    def _rotation_marker_path(self, p: Placement) -> str:
        """
        Quarter-turn arrow in the top-left corner of a rotated piece.

        A filled quarter ring swept clockwise from 12 to 3 o'clock, with an
        arrowhead pointing down at its end.  Drawn as geometry so the
        marker does not depend on a font.
        """
        size = min(p.width, p.height, self.max_text_size) * 0.4
        r_out = size / 2
        r_in = r_out * 0.55
        cx = p.x + size * 0.3 + r_out
        cy = p.y + size * 0.3 + r_out
        head = (r_out - r_in) * 0.9
        return (
            f"M {cx:.3f},{cy - r_out:.3f} "
            f"A {r_out:.3f},{r_out:.3f} 0 0 1 {cx + r_out:.3f},{cy:.3f} "
            f"L {cx + r_out + head:.3f},{cy:.3f} "
            f"L {cx + (r_out + r_in) / 2:.3f},{cy + head * 1.5:.3f} "
            f"L {cx + r_in - head:.3f},{cy:.3f} "
            f"L {cx + r_in:.3f},{cy:.3f} "
            f"A {r_in:.3f},{r_in:.3f} 0 0 0 {cx:.3f},{cy - r_in:.3f} Z"
        )

    def _label_paths(self, p: Placement) -> List[str]:
        """
        Path data for the two text lines of one placement.

        The dimension line sits just above the centre of the piece and the
        name just below it.  Text shrinks to fit the piece width; lines
        that would end up unreadably small are dropped.
        """
        lines = [f"{p.width:.1f}×{p.height:.1f}", p.piece.name]
        size = min(self.max_text_size, p.height / 5)
        usable_width = p.width * 0.9

        cx = p.x + p.width / 2
        cy = p.y + p.height / 2
        paths = []

        for i, line in enumerate(lines):
            line_size = size
            measured = self._measure_text_line_width(line, line_size)
            if measured > usable_width:
                line_size *= usable_width / measured
            if line_size < 0.3:
                continue
            baseline = cy - line_size * 0.2 if i == 0 else cy + line_size * 1.2
            d = self._create_text_path(line, cx, baseline, line_size)
            if d:
                paths.append(d)

        return paths

    def _measure_text_line_width(self, text: str, size: float) -> float:
        """Advance width of *text* at *size* cm, in cm."""
        if not text:
            return 0.0
        if not self.font:
            return len(text) * size * 0.7 - size * 0.1

        scale = size / self.font['head'].unitsPerEm
        cmap = self.font.getBestCmap() or {}
        metrics = self.font['hmtx'].metrics
        width = 0.0
        for char in text:
            glyph_name = cmap.get(ord(char))
            if glyph_name in metrics:
                width += metrics[glyph_name][0] * scale
            else:
                width += size * 0.5
        return width

    def _create_text_path(self, text: str, x: float, y: float, size: float) -> str:
        """
        Outline one line of text as a single SVG path via fontTools.

        Each glyph is drawn through a TransformPen with the matrix
        ``(scale, 0, 0, -scale, current_x, y)`` into one shared
        SVGPathPen; the negative y-scale flips the font's y-up outlines
        into SVG's y-down space.

        Parameters
        ----------
        text : Single line of text.
        x    : Horizontal centre of the line (cm).
        y    : Baseline (cm).
        size : Em size (cm).

        Returns
        -------
        Path commands, or an empty string when nothing visible was drawn.
        """
        if not self.font:
            return self._create_fallback_text_path(text, x, y, size)

        scale = size / self.font['head'].unitsPerEm
        cmap = self.font.getBestCmap() or {}
        glyph_set = self.font.getGlyphSet()

        char_glyphs = []
        total_width = 0.0
        for char in text:
            glyph_name = cmap.get(ord(char))
            if glyph_name and glyph_name in glyph_set:
                glyph = glyph_set[glyph_name]
                advance = glyph.width * scale
            else:
                glyph = None
                advance = size * 0.5
            char_glyphs.append((glyph, advance))
            total_width += advance

        pen = SVGPathPen(glyph_set)
        current_x = x - total_width / 2
        for glyph, advance in char_glyphs:
            if glyph is not None:
                glyph.draw(TransformPen(pen, (scale, 0, 0, -scale, current_x, y)))
            current_x += advance

        return pen.getCommands()

    def _create_fallback_text_path(self, text: str, x: float, y: float,
                                   size: float) -> str:
        """Block glyphs: one filled rectangle per non-space character."""
        char_width = size * 0.6
        spacing = size * 0.1
        total_width = len(text) * (char_width + spacing) - spacing
        start_x = x - total_width / 2
        char_y = y - size * 0.8

        rects = []
        for i, char in enumerate(text):
            if char == ' ':
                continue
            char_x = start_x + i * (char_width + spacing)
            rects.append(
                f"M {char_x:.3f},{char_y:.3f} "
                f"L {char_x + char_width:.3f},{char_y:.3f} "
                f"L {char_x + char_width:.3f},{char_y + size:.3f} "
                f"L {char_x:.3f},{char_y + size:.3f} Z"
            )
        return ' '.join(rects)


def _fmt(value: float) -> str:
    """Compact number for SVG attributes: 122.0 → '122'."""
    return f"{value:g}"


# ============================================================================
# CUT LIST EXPORT
# ============================================================================

CUT_LIST_HEADER = ['PANEL', 'PIECE', 'KIND', 'TILED', 'X(cm)', 'Y(cm)',
                   'WIDTH(cm)', 'HEIGHT(cm)', 'ROTATED']


def write_cut_list(results: Sequence[PackingResult], filename: str) -> None:
    """
    Write every placement as one CSV row.

    Widths and heights are given in the placed orientation, so the
    rows read the same way the pieces lie on the panel.
    """
    out_dir = os.path.dirname(filename)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    with open(filename, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(CUT_LIST_HEADER)
        for result in results:
            for p in result.placements:
                writer.writerow([
                    result.panel.id,
                    p.piece.name,
                    p.piece.kind,
                    'yes' if p.piece.tiled else 'no',
                    f"{p.x:.1f}",
                    f"{p.y:.1f}",
                    f"{p.width:.1f}",
                    f"{p.height:.1f}",
                    'yes' if p.rotated else 'no',
                ])


# ============================================================================
# MAIN FUNCTION
# ============================================================================

def generate_cut_sheets(config_file: Optional[str] = None,
                        output_prefix: str = "output/panel",
                        panel_sizes: Optional[List[Tuple[float, float]]] = None,
                        csv_file: Optional[str] = None) -> List[str]:
    """
    Full pipeline: load config → derive pieces → pack → emit SVG sheets.

    Parameters
    ----------
    config_file : str, optional
        INI file describing the cube and the stock panels.  Built-in
        defaults are used when it is missing.
    output_prefix : str, optional
        Filename prefix for the SVG files (default ``"output/panel"``).
    panel_sizes : list of (width, height), optional
        Stock panels to use instead of the ``[panels]`` section.
    csv_file : str, optional
        Also write the cut list to this CSV file.

    Returns
    -------
    List[str]
        Generated SVG filenames in panel order.
    """
    print("=" * 70)
    print("TILED CUBE CUT PLANNER")
    print("=" * 70)
    print()

    cfg = load_config(config_file)
    pieces = derive_pieces(cfg)
    sides = sides_from_config(cfg)

    if panel_sizes:
        panels = [Panel(f"panel{i}", w, h) for i, (w, h) in enumerate(panel_sizes, start=1)]
    else:
        panels = panels_from_config(cfg)

    print(f"\nCube: {cfg.get('cube', 'name')}")
    print(f"\n{'─' * 70}")
    print("WOOD PIECES")
    print(f"{'─' * 70}")
    for piece in pieces:
        finish = '✓ Tiled' if piece.tiled else '✗ Not tiled'
        print(f"  {piece.name:<18} {piece.width:6.1f} × {piece.height:6.1f} cm   "
              f"{finish} | {piece.kind}")

    tiles = calculate_tiles(sides, cfg.get('cube', 'pattern'))
    colors = cfg['colors']
    print(f"\nTiles needed: {tiles.total} "
          f"(colour 1 {colors.get('color1')}: {tiles.color1}, "
          f"colour 2 {colors.get('color2')}: {tiles.color2}, "
          f"grout {colors.get('grout')})")

    print(f"\n{'─' * 70}")
    print("PACKING PIECES ONTO STOCK PANELS")
    print(f"{'─' * 70}")
    print(f"Stock: {len(panels)} panel(s)")

    results = pack(pieces, panels)
    missing = unplaced_pieces(pieces, results)

    print(f"✅ Used {len(results)} panel(s)")
    for piece in missing:
        print(f"  ⚠️  Warning: {piece.name} ({piece.width:.1f} x {piece.height:.1f} cm) "
              f"does not fit on any panel")

    print(f"\n{'─' * 70}")
    print("GENERATING SVG FILES")
    print(f"{'─' * 70}")

    out_dir = os.path.dirname(output_prefix)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    output_files = []
    for index, result in enumerate(results, start=1):
        filename = f"{output_prefix}_{index}.svg"
        svg_content = SVGGenerator(result, cfg).generate()
        with open(filename, 'w', encoding='utf-8') as f:
            f.write(svg_content)
        output_files.append(filename)

        print(f"\n📄 {filename}")
        print(f"   Panel: {result.panel.width:g} x {result.panel.height:g} cm")
        print(f"   Pieces: {len(result.placements)}")
        print(f"   Efficiency: {result.efficiency:.1f}%")
        print(f"   Waste: {result.waste_area:.0f} cm²")

    if csv_file:
        write_cut_list(results, csv_file)
        print(f"\n📄 Cut list: {csv_file}")

    print(f"\n{'═' * 70}")
    if missing:
        print(f"⚠️  Generated {len(output_files)} SVG file(s); "
              f"{len(missing)} piece(s) left unplaced")
    else:
        print(f"✅ SUCCESS: Generated {len(output_files)} SVG file(s)")
    print(f"{'═' * 70}")
    print()

    return output_files


# ============================================================================
# CLI INTERFACE
# ============================================================================

def _panel_arg(value: str) -> Tuple[float, float]:
    try:
        return parse_size(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Plan the wood cuts for a tiled cube and render SVG cut sheets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cutplanner.py                                 # built-in defaults
  python cutplanner.py my_cube.conf
  python cutplanner.py my_cube.conf -o output/cube
  python cutplanner.py my_cube.conf --panel 122x244 --panel 60x120
  python cutplanner.py my_cube.conf --csv output/cutlist.csv

Config file (INI):
  [cube]    tile_width, tile_height (cm), grout, thickness (mm), pattern
  [sides]   top = 2x2, front = 2x3, ...   (tiles across x tiles down)
  [panels]  panel1 = 122x244              (cm, used in file order)
        """
    )

    parser.add_argument("config", nargs="?", default="cutplanner.conf",
                        help="Cube configuration file (default: cutplanner.conf)")
    parser.add_argument("-o", "--output", default="output/panel",
                        help="Output path prefix (default: output/panel). "
                             "The directory is created automatically.")
    parser.add_argument("--panel", action="append", type=_panel_arg,
                        metavar="WxH",
                        help="Stock panel size in cm; repeat for several panels. "
                             "Overrides the [panels] section.")
    parser.add_argument("--csv", metavar="FILE",
                        help="Also write the cut list to a CSV file")

    args = parser.parse_args(argv)

    try:
        generate_cut_sheets(args.config, args.output, args.panel, args.csv)
    except (ValueError, configparser.Error, FileNotFoundError) as e:
        print(f"\n❌ Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
Geometry Kernel Module.
Handles conversion between grid cells and device pixels, table footprints and
clamping of rectangles to the grid bounds. Everything here is pure.
"""
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from seating.config import (
    CELL_SIZE, FIXED_SEATS, KNIGHT_DEPTH_CELLS, KNIGHT_MIN_LENGTH_CELLS,
    SQUARE_TABLE_CELLS
)
from seating.enums import Orientation, TableType

@dataclass(frozen=True)
class GridRect:
    """Axis-aligned rectangle in cell units."""
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def center_x(self) -> float:
        return self.x + self.w / 2

    @property
    def center_y(self) -> float:
        return self.y + self.h / 2

    def intersects(self, other: "GridRect") -> bool:
        """Non-strict overlap test: rectangles that only touch still intersect."""
        return (
            self.x <= other.right and self.right >= other.x
            and self.y <= other.bottom and self.bottom >= other.y
        )

    def translated(self, dx: float, dy: float) -> "GridRect":
        return GridRect(self.x + dx, self.y + dy, self.w, self.h)

    @staticmethod
    def union(rects: Iterable["GridRect"]) -> Optional["GridRect"]:
        """Returns the bounding box of all rects, or None when there are none."""
        rects = list(rects)
        if not rects:
            return None
        min_x = min(r.x for r in rects)
        min_y = min(r.y for r in rects)
        max_x = max(r.right for r in rects)
        max_y = max(r.bottom for r in rects)
        return GridRect(min_x, min_y, max_x - min_x, max_y - min_y)


def clamp(n: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, n))


def round_half_up(value: float) -> int:
    """Rounds .5 toward positive infinity, so -0.5 becomes 0 and 2.5 becomes 3."""
    return int(math.floor(value + 0.5))


def clamp_round(value: float, lo: int, hi: int, default: Optional[float] = None) -> int:
    """
    Rounds half-up into [lo, hi]. Infinities land on the bounds; NaN becomes
    `default`, or `lo` when no default is given.
    """
    if math.isnan(value):
        value = lo if default is None else default
    return int(clamp(round_half_up(clamp(value, lo, hi)), lo, hi))


def footprint(table_type: TableType, seats: Optional[int], orientation: Orientation) -> Tuple[int, int]:
    """
    Returns the (width, height) in cells of a table.
    Regular and reserve tables are square; a knight table is a long rectangle
    whose long side holds two seats per cell.
    """
    if table_type == TableType.KNIGHT:
        seat_count = seats if seats and math.isfinite(seats) else FIXED_SEATS[TableType.KNIGHT]
        long_side = max(math.ceil(seat_count / 2), KNIGHT_MIN_LENGTH_CELLS)
        if orientation == Orientation.ROW:
            return long_side, KNIGHT_DEPTH_CELLS
        return KNIGHT_DEPTH_CELLS, long_side
    return SQUARE_TABLE_CELLS, SQUARE_TABLE_CELLS


def clamp_rect(cols: int, rows: int, x: float, y: float, w: float, h: float) -> Tuple[int, int]:
    """
    Clamps the origin of a w x h rectangle so that it lies inside the grid.
    Never fails; a rectangle larger than the grid is pinned to the origin, and a
    NaN coordinate is treated as 0.
    """
    nx = clamp_round(x, 0, max(0, cols - max(1, w)))
    ny = clamp_round(y, 0, max(0, rows - max(1, h)))
    return nx, ny


def clamp_group_delta(cols: int, rows: int, rects: Iterable[GridRect], dx: float, dy: float) -> Tuple[int, int]:
    """
    Clamps a whole group of rectangles as a unit.

    The union bounding box is translated by (dx, dy) and clamped; the returned
    delta is the distance the box actually moved, which may be truncated by a
    grid edge. Applying it to every member preserves their relative offsets.
    """
    box = GridRect.union(rects)
    if box is None:
        return 0, 0
    box_w = max(1, box.w)
    box_h = max(1, box.h)
    new_x, new_y = clamp_rect(cols, rows, box.x + dx, box.y + dy, box_w, box_h)
    return int(new_x - box.x), int(new_y - box.y)


def cells_to_local(cell_x: float, cell_y: float, zoom: float = 1.0, cell_size: int = CELL_SIZE) -> Tuple[float, float]:
    """Converts cell coordinates to local (grid-relative) device pixels."""
    scale = cell_size * zoom
    return cell_x * scale, cell_y * scale


def local_to_cells(px: float, py: float, zoom: float = 1.0, cell_size: int = CELL_SIZE) -> Tuple[float, float]:
    """
    Converts local device pixels to cell coordinates.
    Fractional precision is kept so a live drag preview can move smoothly.
    """
    scale = cell_size * zoom
    if scale <= 0:
        return 0.0, 0.0
    return px / scale, py / scale


def snap_to_cell(value: float) -> int:
    """Rounds a fractional cell coordinate to the nearest cell (used on commit)."""
    return round_half_up(value)


def pixel_delta_to_cells(delta_px: float, zoom: float = 1.0, cell_size: int = CELL_SIZE) -> int:
    """Whole-cell delta for a pointer displacement at the given zoom."""
    scale = cell_size * zoom
    if scale <= 0:
        return 0
    return round_half_up(delta_px / scale)

import pytest
from seating.enums import Orientation, TableType
from seating.geometry import (
    GridRect, cells_to_local, clamp_group_delta, clamp_rect, clamp_round, footprint, local_to_cells,
    pixel_delta_to_cells, round_half_up, snap_to_cell
)

@pytest.mark.parametrize("table_type, seats, orientation, expected", [
    (TableType.REGULAR, 12, Orientation.ROW, (3, 3)),
    (TableType.RESERVE, 8, Orientation.COLUMN, (3, 3)),
    (TableType.KNIGHT, 20, Orientation.ROW, (10, 2)),
    (TableType.KNIGHT, 20, Orientation.COLUMN, (2, 10)),
    (TableType.KNIGHT, 4, Orientation.ROW, (3, 2)),
    (TableType.KNIGHT, 13, Orientation.ROW, (7, 2)),
    (TableType.KNIGHT, None, Orientation.ROW, (10, 2)),
    (TableType.KNIGHT, 0, Orientation.COLUMN, (2, 10)),
])
def test_footprint(table_type, seats, orientation, expected):
    """Square tables are always 3x3; knight tables hold two seats per cell."""
    assert footprint(table_type, seats, orientation) == expected

def test_round_half_up_matches_browser_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0
    assert round_half_up(-1.5) == -1
    assert round_half_up(1.49) == 1

def test_clamp_rect_keeps_rect_inside_grid():
    assert clamp_rect(50, 35, -3, 40, 3, 3) == (0, 32)
    assert clamp_rect(50, 35, 48.6, 0, 3, 3) == (47, 0)
    assert clamp_rect(50, 35, 10.4, 10.5, 3, 3) == (10, 11)

def test_clamp_rect_oversized_rect_is_pinned_to_origin():
    assert clamp_rect(20, 20, 5, 5, 30, 30) == (0, 0)

def test_clamp_group_delta_truncates_at_edge():
    """The union box (x 40..48) can only move 2 cells right in a 50-wide grid."""
    rects = [GridRect(45, 0, 3, 3), GridRect(40, 5, 3, 3)]
    assert clamp_group_delta(50, 35, rects, 5, 0) == (2, 0)
    assert clamp_group_delta(50, 35, rects, -100, -100) == (-40, 0)
    assert clamp_group_delta(50, 35, [], 5, 5) == (0, 0)

def test_pixel_cell_conversion():
    assert cells_to_local(2, 3, zoom=0.5) == (24, 36)
    assert local_to_cells(36, 12) == (1.5, 0.5)
    assert pixel_delta_to_cells(12) == 1
    assert pixel_delta_to_cells(11) == 0
    assert pixel_delta_to_cells(48, zoom=2.0) == 1
    assert snap_to_cell(3.5) == 4

def test_grid_rect_intersects_is_non_strict():
    box = GridRect(0, 0, 2, 2)
    assert box.intersects(GridRect(2, 0, 1, 1))
    assert box.intersects(GridRect(1, 1, 5, 5))
    assert not box.intersects(GridRect(3, 0, 1, 1))

def test_grid_rect_union():
    assert GridRect.union([]) is None
    union = GridRect.union([GridRect(1, 2, 3, 3), GridRect(10, 0, 2, 10)])
    assert union == GridRect(1, 0, 11, 10)
    assert union.center_x == 6.5

@pytest.mark.parametrize("value, expected", [
    (float('inf'), 10), (float('-inf'), 2), (float('nan'), 2), (7.5, 8), (-40, 2), (1e12, 10),
])
def test_clamp_round(value, expected):
    assert clamp_round(value, 2, 10) == expected

def test_clamp_round_nan_default():
    assert clamp_round(float('nan'), 2, 10, default=6) == 6

def test_clamp_rect_non_finite():
    assert clamp_rect(50, 35, float('inf'), float('-inf'), 3, 3) == (47, 0)
    assert clamp_rect(50, 35, float('nan'), 5, 3, 3) == (0, 5)

def test_knight_footprint_with_non_finite_seats():
    assert footprint(TableType.KNIGHT, float('nan'), Orientation.ROW) == (10, 2)
    assert footprint(TableType.KNIGHT, float('inf'), Orientation.ROW) == (10, 2)

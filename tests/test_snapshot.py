"""
Tests for the persistence boundary: web_v2 documents, legacy pixel tables
and the canonical form used for dirty detection.
"""
import json
import logging
from datetime import datetime, timezone

import pytest
from seating.enums import Orientation, TableType
from seating.models import Label, Scene, Table, Zone
from seating.snapshot import (
    canonical_snapshot, export_snapshot, find_web_v2, merge_web_v2, partial_from_legacy,
    partial_from_row, partial_from_snapshot, project_legacy_tables, table_records
)
from seating.store import SceneStore

@pytest.fixture
def scene() -> Scene:
    return Scene(
        grid_cols=60,
        grid_rows=40,
        tables=(
            Table('t1', TableType.REGULAR, 12, Orientation.ROW, 5, 9, 1),
            Table('t2', TableType.KNIGHT, 16, Orientation.COLUMN, 20, 4, 2),
            Table('t3', TableType.RESERVE, 8, Orientation.ROW, 30, 30, None),
        ),
        zones=(Zone('z1', 'Dance Floor', 40, 20, 6, 4),),
        labels=(Label('l1', 'Stage', 2, 2),),
        table_counter=3,
    )

# --- web_v2 ---

def test_export_snapshot_document_shape(scene):
    now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    doc = export_snapshot(scene, now=now)

    assert doc['type'] == 'web_v2'
    assert doc['version'] == 2
    assert doc['grid'] == {'cols': 60, 'rows': 40, 'cellSize': 24}
    assert doc['tableCounter'] == 3
    assert doc['updatedAt'] == '2024-06-01T12:00:00+00:00'
    assert doc['tables'][1] == {
        'id': 't2', 'type': 'knight', 'seats': 16, 'orientation': 'column',
        'gridX': 20, 'gridY': 4, 'number': 2,
    }
    assert doc['zones'][0]['widthCells'] == 6
    assert doc['labels'][0]['text'] == 'Stage'
    json.dumps(doc)

def test_exported_snapshot_hydrates_to_the_same_scene(scene):
    store = SceneStore()
    store.hydrate(partial_from_snapshot(export_snapshot(scene)))
    assert store.scene == scene

def test_malformed_items_are_dropped_individually(caplog):
    doc = {
        'grid': {'cols': -5, 'rows': 'tall'},
        'tables': [
            {'id': 'ok', 'type': 'regular', 'seatCount': 12, 'gridX': 1, 'gridY': 1},
            {'id': 'bad-type', 'type': 'banquet', 'gridX': 1, 'gridY': 1},
            {'id': 'no-position', 'type': 'regular'},
        ],
        'zones': 'not a list',
    }
    with caplog.at_level(logging.WARNING, logger='seating.snapshot'):
        partial = partial_from_snapshot(doc)

    assert [t.id for t in partial['tables']] == ['ok']
    assert partial['tables'][0].seats == 12
    assert partial['tables'][0].orientation == Orientation.ROW
    assert partial['zones'] == ()
    assert (partial['grid_cols'], partial['grid_rows']) == (50, 35)
    assert partial['table_counter'] == 1
    assert len([r for r in caplog.records if 'Dropping malformed table' in r.getMessage()]) == 2

def test_missing_seats_fall_back_to_fixed_count():
    partial = partial_from_snapshot({'tables': [{'id': 'k', 'type': 'knight', 'gridX': 0, 'gridY': 0}]})
    assert partial['tables'][0].seats == 20

@pytest.mark.parametrize("annotations, found", [
    ([{'type': 'note'}, {'type': 'web_v2', 'version': 2, 'tables': []}], True),
    ([{'type': 'web_v2', 'version': 1}], False),
    ({'web_v2': {'type': 'web_v2', 'version': 2}}, True),
    ({'web_v2': 'broken'}, False),
    (None, False),
])
def test_find_web_v2(annotations, found):
    assert (find_web_v2(annotations) is not None) is found

def test_merge_web_v2_replaces_previous_entry():
    doc = {'type': 'web_v2', 'version': 2}
    merged = merge_web_v2([{'type': 'note'}, {'type': 'web_v2', 'version': 1}], doc)
    assert merged == [{'type': 'note'}, doc]

    assert merge_web_v2({'theme': 'dark'}, doc) == {'theme': 'dark', 'web_v2': doc}
    assert merge_web_v2(None, doc) == [doc]

# --- Legacy ---

def test_legacy_tables_are_converted_to_cells(caplog):
    rows = [
        {'id': 5, 'x': 400, 'y': 81, 'isKnight': True, 'seats': 20},
        None,
        {'x': 2000, 'y': 0, 'isReserve': True},
    ]
    with caplog.at_level(logging.INFO, logger='seating.snapshot'):
        partial = partial_from_legacy(rows)

    knight, reserve = partial['tables']
    assert (knight.id, knight.type, knight.grid_x, knight.grid_y) == ('table-legacy-5', TableType.KNIGHT, 10, 2)
    assert (reserve.id, reserve.number, reserve.seats) == ('table-legacy-2', 2, 8)
    assert (reserve.grid_x, reserve.grid_y) == (50, 0)
    assert (partial['grid_cols'], partial['grid_rows']) == (59, 35)
    assert partial['table_counter'] == 6
    assert "Converted 2 legacy tables" in caplog.text

def test_partial_from_row_prefers_web_v2():
    row = {
        'annotations': [{'type': 'web_v2', 'version': 2, 'grid': {'cols': 80, 'rows': 40}}],
        'tables': [{'id': 1, 'x': 0, 'y': 0}],
    }
    partial = partial_from_row(row)
    assert partial['grid_cols'] == 80
    assert partial['tables'] == ()

def test_partial_from_row_falls_back_to_legacy():
    partial = partial_from_row({'annotations': None, 'tables': [{'id': 3, 'x': 40, 'y': 40}]})
    assert [t.id for t in partial['tables']] == ['table-legacy-3']

@pytest.mark.parametrize("row", [None, {}, {'annotations': [], 'tables': []}])
def test_partial_from_row_without_data(row):
    assert partial_from_row(row) is None

def test_project_legacy_tables(scene):
    legacy = project_legacy_tables(scene)
    assert legacy[0] == {
        'id': 1, 'x': 200, 'y': 360, 'isKnight': False, 'isReserve': False,
        'rotation': 0, 'seats': 12, 'seated_guests': 0,
    }
    assert legacy[1]['isKnight'] is True
    assert legacy[2]['id'] == 3, "Unnumbered tables fall back to their position"

def test_table_records(scene):
    records = table_records('event-1', project_legacy_tables(scene))
    assert [r['shape'] for r in records] == ['square', 'rectangle', 'reserve']
    assert records[0]['name'] == 'Table 1'
    assert records[1]['capacity'] == 16
    assert all(r['event_id'] == 'event-1' for r in records)

# --- Dirty detection ---

def test_canonical_snapshot_ignores_item_order(scene):
    shuffled = scene.with_changes(tables=tuple(reversed(scene.tables)))
    assert canonical_snapshot(shuffled) == canonical_snapshot(scene)

def test_canonical_snapshot_sees_moves(scene):
    moved = scene.with_changes(labels=(Label('l1', 'Stage', 3, 2),))
    assert canonical_snapshot(moved) != canonical_snapshot(scene)

def test_fractional_wire_coordinates_round_half_up():
    partial = partial_from_snapshot({
        'tables': [{'id': 't', 'type': 'regular', 'gridX': 3.5, 'gridY': -0.6}],
        'zones': [{'id': 'z', 'name': 'Bar', 'gridX': 2.49, 'gridY': 1, 'widthCells': 4.5, 'heightCells': 3}],
        'labels': [{'id': 'l', 'text': 'Stage', 'gridX': '7', 'gridY': 0.5}],
    })
    table, zone, label = partial['tables'][0], partial['zones'][0], partial['labels'][0]
    assert (table.grid_x, table.grid_y) == (4, -1)
    assert (zone.grid_x, zone.width_cells) == (2, 5)
    assert (label.grid_x, label.grid_y) == (7, 1)

def test_non_finite_values_do_not_break_loading():
    partial = partial_from_snapshot({
        'grid': {'cols': float('inf'), 'rows': float('nan')},
        'tables': [
            {'id': 'far', 'type': 'regular', 'gridX': float('inf'), 'gridY': 0},
            {'id': 'ok', 'type': 'regular', 'gridX': 1, 'gridY': 1},
        ],
        'tableCounter': float('inf'),
    })
    assert [t.id for t in partial['tables']] == ['ok']
    assert (partial['grid_cols'], partial['grid_rows']) == (50, 35)
    assert partial['table_counter'] == 1

    legacy = partial_from_legacy([{'id': 1, 'x': float('inf'), 'y': float('nan')}])
    assert (legacy['tables'][0].grid_x, legacy['tables'][0].grid_y) == (0, 0)

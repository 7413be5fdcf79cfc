"""
Snapshot Persistence Boundary.

Converts between the in-memory Scene and the documents the remote store keeps:
the `web_v2` document stored in a seating map's annotations, and the legacy
pixel-based table list that older screens still read. Nothing here performs
I/O; callers fetch and upsert the documents themselves.
"""
import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from seating.config import (
    CELL_SIZE, DEFAULT_GRID_COLS, DEFAULT_GRID_ROWS, FIXED_SEATS, LEGACY_GRID_PADDING,
    LEGACY_PX_PER_CELL, SNAPSHOT_TYPE, SNAPSHOT_VERSION
)
from seating.enums import Orientation, TableType
from seating.geometry import round_half_up
from seating.models import Label, Scene, Table, Zone

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _positive_or(value: Any, default: int) -> int:
    if _is_number(value) and value > 0:
        return round_half_up(value)
    return default


# ==============================================================================
# --- web_v2 documents ---
# ==============================================================================

def export_snapshot(scene: Scene, cell_size: int = CELL_SIZE, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Serialises the scene as a web_v2 document."""
    stamp = now if now is not None else datetime.now(timezone.utc)
    return {
        'type': SNAPSHOT_TYPE,
        'version': SNAPSHOT_VERSION,
        'grid': {'cols': scene.grid_cols, 'rows': scene.grid_rows, 'cellSize': cell_size},
        'tables': [t.to_dict() for t in scene.tables],
        'zones': [z.to_dict() for z in scene.zones],
        'labels': [l.to_dict() for l in scene.labels],
        'tableCounter': scene.table_counter,
        'updatedAt': stamp.isoformat(),
    }


def _parse_items(raw: Any, parser, kind: str) -> tuple:
    if not isinstance(raw, list):
        return ()
    items = []
    for index, data in enumerate(raw):
        try:
            items.append(parser(data))
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logger.warning("Dropping malformed %s at index %d: %s", kind, index, e)
    return tuple(items)


def partial_from_snapshot(doc: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Builds a hydrate payload from a web_v2 document. Malformed items are
    dropped individually; missing or invalid grid sizes fall back to defaults.
    """
    grid = doc.get('grid')
    if not isinstance(grid, Mapping):
        grid = {}
    counter = doc.get('tableCounter')
    return {
        'grid_cols': _positive_or(grid.get('cols'), DEFAULT_GRID_COLS),
        'grid_rows': _positive_or(grid.get('rows'), DEFAULT_GRID_ROWS),
        'tables': _parse_items(doc.get('tables'), Table.from_dict, 'table'),
        'zones': _parse_items(doc.get('zones'), Zone.from_dict, 'zone'),
        'labels': _parse_items(doc.get('labels'), Label.from_dict, 'label'),
        'table_counter': counter if _is_number(counter) else 1,
    }


def find_web_v2(annotations: Any) -> Optional[Dict[str, Any]]:
    """
    Locates the web_v2 document inside a seating map's annotations, which are
    either a list of typed entries or a dict keyed by 'web_v2'.
    """
    if isinstance(annotations, list):
        return next(
            (a for a in annotations
             if isinstance(a, dict) and a.get('type') == SNAPSHOT_TYPE and a.get('version') == SNAPSHOT_VERSION),
            None,
        )
    if isinstance(annotations, dict):
        doc = annotations.get(SNAPSHOT_TYPE)
        return doc if isinstance(doc, dict) else None
    return None


def merge_web_v2(annotations: Any, doc: Dict[str, Any]):
    """Returns new annotations with `doc` replacing any previous web_v2 entry."""
    if isinstance(annotations, list):
        kept = [a for a in annotations if not (isinstance(a, dict) and a.get('type') == SNAPSHOT_TYPE)]
        return kept + [doc]
    if isinstance(annotations, dict):
        return {**annotations, SNAPSHOT_TYPE: doc}
    return [doc]


# ==============================================================================
# --- Legacy pixel tables ---
# ==============================================================================

def _legacy_number(value: Any) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def partial_from_legacy(rows: Sequence[Any]) -> Dict[str, Any]:
    """
    Converts legacy pixel tables into grid tables. The grid is grown so that
    the converted content fits with some padding.
    """
    tables: List[Table] = []
    for index, row in enumerate(r for r in rows if r):
        if not isinstance(row, Mapping):
            logger.warning("Skipping legacy table at index %d: not an object", index)
            continue
        if row.get('isReserve'):
            table_type = TableType.RESERVE
        elif row.get('isKnight'):
            table_type = TableType.KNIGHT
        else:
            table_type = TableType.REGULAR
        raw_id = row.get('id')
        number = raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else index + 1
        seats = int(_legacy_number(row.get('seats'))) or FIXED_SEATS[table_type]
        tables.append(Table(
            id=f"table-legacy-{number}",
            type=table_type,
            seats=seats,
            orientation=Orientation.ROW,
            grid_x=round_half_up(_legacy_number(row.get('x')) / LEGACY_PX_PER_CELL),
            grid_y=round_half_up(_legacy_number(row.get('y')) / LEGACY_PX_PER_CELL),
            number=number,
        ))

    max_number = max((t.number or 0 for t in tables), default=0)
    max_x = max((t.rect.right for t in tables), default=0)
    max_y = max((t.rect.bottom for t in tables), default=0)
    logger.info("Converted %d legacy tables to grid cells", len(tables))
    return {
        'grid_cols': max(DEFAULT_GRID_COLS, int(max_x) + LEGACY_GRID_PADDING),
        'grid_rows': max(DEFAULT_GRID_ROWS, int(max_y) + LEGACY_GRID_PADDING),
        'tables': tuple(tables),
        'zones': (),
        'labels': (),
        'table_counter': max_number + 1,
    }


def partial_from_row(row: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Picks the best source in a stored seating map row: the web_v2 document
    first, legacy pixel tables second. Returns None when neither is present.
    """
    if not row:
        return None
    doc = find_web_v2(row.get('annotations'))
    if doc is not None:
        return partial_from_snapshot(doc)
    legacy = row.get('tables')
    if isinstance(legacy, list) and legacy:
        return partial_from_legacy(legacy)
    return None


def project_legacy_tables(scene: Scene) -> List[Dict[str, Any]]:
    """Projects the scene's tables onto the legacy pixel format."""
    legacy = []
    for index, t in enumerate(scene.tables):
        legacy.append({
            'id': t.number if t.number is not None else index + 1,
            'x': round_half_up(t.grid_x * LEGACY_PX_PER_CELL),
            'y': round_half_up(t.grid_y * LEGACY_PX_PER_CELL),
            'isKnight': t.type == TableType.KNIGHT,
            'isReserve': t.type == TableType.RESERVE,
            'rotation': 0,
            'seats': t.seats,
            'seated_guests': 0,
        })
    return legacy


def table_records(event_id: str, legacy: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Flat table rows, one per legacy table, for the event's tables store."""
    records = []
    for t in legacy:
        if t['isKnight']:
            shape = 'rectangle'
        elif t['isReserve']:
            shape = 'reserve'
        else:
            shape = 'square'
        records.append({
            'event_id': event_id,
            'number': t['id'],
            'capacity': t['seats'],
            'shape': shape,
            'name': f"Table {t['id']}",
            'x': t['x'],
            'y': t['y'],
            'seated_guests': 0,
        })
    return records


# ==============================================================================
# --- Dirty detection ---
# ==============================================================================

def canonical_snapshot(scene: Scene) -> str:
    """Order-independent JSON form of the scene, used to detect unsaved changes."""
    payload = {
        'gridCols': scene.grid_cols,
        'gridRows': scene.grid_rows,
        'tables': [t.to_dict() for t in sorted(scene.tables, key=lambda t: t.id)],
        'zones': [z.to_dict() for z in sorted(scene.zones, key=lambda z: z.id)],
        'labels': [l.to_dict() for l in sorted(scene.labels, key=lambda l: l.id)],
        'tableCounter': scene.table_counter,
    }
    return json.dumps(payload, sort_keys=True)

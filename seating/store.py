"""
Scene Store Module.

Implements the seating editor's state machine as a pure reducer,
``apply(scene, selection, action) -> (scene, selection)``, plus the
``SceneStore`` facade that holds the current snapshot, exposes one command per
action and notifies subscribers whenever a transition produces a new value.

Every transition clamps instead of rejecting, treats unknown ids as no-ops and
never raises.
"""
import logging
import math
from dataclasses import dataclass, replace
from typing import Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Type

from seating import actions as act
from seating.config import (
    GRID_EXPAND_PADDING, LABEL_CELLS, MAX_GRID_SIZE, MAX_NEW_ZONE_HEIGHT, MAX_NEW_ZONE_WIDTH,
    MAX_TABLE_QUANTITY, MIN_GRID_SIZE, MIN_ZONE_SIZE, TABLE_GAP_CELLS
)
from seating.enums import ItemKind, Orientation, TableType
from seating.geometry import clamp, clamp_group_delta, clamp_rect, clamp_round, footprint, round_half_up
from seating.models import Label, Scene, Table, TableConfig, Zone, make_id
from seating.snapshot import canonical_snapshot

logger = logging.getLogger(__name__)

Selection = FrozenSet[str]
Reducer = Callable[[Scene, Selection, object], Tuple[Scene, Selection]]


def batch_layout(config: TableConfig) -> Tuple[int, int, int, int, int]:
    """
    Returns (quantity, step_x, step_y, group_w, group_h) for a batch of tables
    laid out in a line along the configured orientation with a 1-cell gap.
    """
    raw = config.quantity or 1
    if math.isnan(raw):
        raw = 1
    quantity = int(math.floor(clamp(raw, 1, MAX_TABLE_QUANTITY)))
    w, h = footprint(config.type, config.seat_count, config.orientation)
    step_x = w + TABLE_GAP_CELLS if config.orientation == Orientation.ROW else 0
    step_y = h + TABLE_GAP_CELLS if config.orientation == Orientation.COLUMN else 0
    group_w = w + (quantity - 1) * step_x
    group_h = h + (quantity - 1) * step_y
    return quantity, step_x, step_y, group_w, group_h


def _replace_at(items: tuple, index: int, new_item) -> tuple:
    return items[:index] + (new_item,) + items[index + 1:]


def _index_of(items: tuple, item_id: str) -> int:
    return next((i for i, item in enumerate(items) if item.id == item_id), -1)


def _as_number(value) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return round_half_up(value)


# ==============================================================================
# --- Reducers ---
# ==============================================================================

def _hydrate(scene: Scene, selection: Selection, action: act.Hydrate):
    partial: Mapping = action.partial or {}
    changes = {}
    for key in ('tables', 'zones', 'labels'):
        value = partial.get(key)
        if isinstance(value, (list, tuple)):
            changes[key] = tuple(value)
    for key in ('grid_cols', 'grid_rows', 'table_counter'):
        value = _as_number(partial.get(key))
        if value is not None:
            changes[key] = value
    return scene.with_changes(**changes), frozenset()


def _set_grid(scene: Scene, selection: Selection, action: act.SetGrid):
    cols = clamp_round(action.cols, MIN_GRID_SIZE, MAX_GRID_SIZE, default=scene.grid_cols)
    rows = clamp_round(action.rows, MIN_GRID_SIZE, MAX_GRID_SIZE, default=scene.grid_rows)
    # Never shrink below the largest table footprint.
    cols = min(MAX_GRID_SIZE, max([cols] + [t.size[0] for t in scene.tables]))
    rows = min(MAX_GRID_SIZE, max([rows] + [t.size[1] for t in scene.tables]))
    if cols == scene.grid_cols and rows == scene.grid_rows:
        return scene, selection

    # Shrinking must not leave anything hanging off the edge.
    tables = []
    for t in scene.tables:
        w, h = t.size
        x, y = clamp_rect(cols, rows, t.grid_x, t.grid_y, w, h)
        tables.append(Table(t.id, t.type, t.seats, t.orientation, x, y, t.number))
    zones = []
    for z in scene.zones:
        w = int(clamp(z.width_cells, MIN_ZONE_SIZE, cols))
        h = int(clamp(z.height_cells, MIN_ZONE_SIZE, rows))
        x, y = clamp_rect(cols, rows, z.grid_x, z.grid_y, w, h)
        zones.append(Zone(z.id, z.name, x, y, w, h))
    labels = []
    for l in scene.labels:
        x, y = clamp_rect(cols, rows, l.grid_x, l.grid_y, LABEL_CELLS, LABEL_CELLS)
        labels.append(Label(l.id, l.text, x, y))

    new_scene = scene.with_changes(
        grid_cols=cols, grid_rows=rows,
        tables=tuple(tables), zones=tuple(zones), labels=tuple(labels),
    )
    return new_scene, selection


def _fit_config(scene: Scene, config: TableConfig) -> TableConfig:
    """Caps a knight table's seats so its long side still fits on the grid."""
    if config.type != TableType.KNIGHT:
        return config
    room = scene.grid_cols if config.orientation == Orientation.ROW else scene.grid_rows
    return replace(config, seats=min(config.seat_count, 2 * room))


def _add_table(scene: Scene, selection: Selection, action: act.AddTable):
    config = _fit_config(scene, action.config)
    seats = config.seat_count
    quantity, step_x, step_y, group_w, group_h = batch_layout(config)
    w, h = footprint(config.type, seats, config.orientation)

    # Center the batch on the anchor, then clamp the whole group before the members.
    start_x, start_y = clamp_rect(
        scene.grid_cols, scene.grid_rows,
        action.anchor_x - group_w // 2, action.anchor_y - group_h // 2,
        group_w, group_h,
    )

    counter = scene.table_counter
    new_tables = []
    for i in range(quantity):
        x, y = clamp_rect(scene.grid_cols, scene.grid_rows, start_x + i * step_x, start_y + i * step_y, w, h)
        new_tables.append(Table(
            id=make_id(ItemKind.TABLE),
            type=config.type,
            seats=seats,
            orientation=config.orientation,
            grid_x=x,
            grid_y=y,
            number=counter,
        ))
        counter += 1

    new_scene = scene.with_changes(tables=scene.tables + tuple(new_tables), table_counter=counter)
    return new_scene, frozenset(t.id for t in new_tables)


def _add_zone(scene: Scene, selection: Selection, action: act.AddZone):
    w = clamp_round(action.width, MIN_ZONE_SIZE, min(MAX_NEW_ZONE_WIDTH, scene.grid_cols))
    h = clamp_round(action.height, MIN_ZONE_SIZE, min(MAX_NEW_ZONE_HEIGHT, scene.grid_rows))
    x, y = clamp_rect(scene.grid_cols, scene.grid_rows, action.anchor_x, action.anchor_y, w, h)
    zone = Zone(id=make_id(ItemKind.ZONE), name=action.name, grid_x=x, grid_y=y, width_cells=w, height_cells=h)
    return scene.with_changes(zones=scene.zones + (zone,)), frozenset({zone.id})


def _add_label(scene: Scene, selection: Selection, action: act.AddLabel):
    x, y = clamp_rect(scene.grid_cols, scene.grid_rows, action.anchor_x, action.anchor_y, LABEL_CELLS, LABEL_CELLS)
    label = Label(id=make_id(ItemKind.LABEL), text=action.text, grid_x=x, grid_y=y)
    return scene.with_changes(labels=scene.labels + (label,)), frozenset({label.id})


def _move_table(scene: Scene, selection: Selection, action: act.MoveTable):
    idx = _index_of(scene.tables, action.id)
    if idx < 0:
        return scene, selection
    moving = scene.tables[idx]

    is_group = len(selection) > 1 and action.id in selection
    if not is_group:
        w, h = moving.size
        x, y = clamp_rect(scene.grid_cols, scene.grid_rows, action.x, action.y, w, h)
        moved = Table(moving.id, moving.type, moving.seats, moving.orientation, x, y, moving.number)
        return scene.with_changes(tables=_replace_at(scene.tables, idx, moved)), selection

    # Group move: the dragged table's delta is applied to the selection's bounding box.
    # Targets past the grid saturate the group delta anyway, so bounding them first loses nothing.
    target_x = clamp_round(action.x, 0, scene.grid_cols, default=moving.grid_x)
    target_y = clamp_round(action.y, 0, scene.grid_rows, default=moving.grid_y)
    members = [t for t in scene.tables if t.id in selection]
    dx, dy = clamp_group_delta(
        scene.grid_cols, scene.grid_rows, [t.rect for t in members],
        target_x - moving.grid_x, target_y - moving.grid_y,
    )
    tables = []
    for t in scene.tables:
        if t.id not in selection:
            tables.append(t)
            continue
        w, h = t.size
        x, y = clamp_rect(scene.grid_cols, scene.grid_rows, t.grid_x + dx, t.grid_y + dy, w, h)
        tables.append(Table(t.id, t.type, t.seats, t.orientation, x, y, t.number))
    return scene.with_changes(tables=tuple(tables)), selection


def _move_zone(scene: Scene, selection: Selection, action: act.MoveZone):
    idx = _index_of(scene.zones, action.id)
    if idx < 0:
        return scene, selection
    z = scene.zones[idx]
    x, y = clamp_rect(scene.grid_cols, scene.grid_rows, action.x, action.y, z.width_cells, z.height_cells)
    moved = Zone(z.id, z.name, x, y, z.width_cells, z.height_cells)
    return scene.with_changes(zones=_replace_at(scene.zones, idx, moved)), selection


def _move_label(scene: Scene, selection: Selection, action: act.MoveLabel):
    idx = _index_of(scene.labels, action.id)
    if idx < 0:
        return scene, selection
    l = scene.labels[idx]
    x, y = clamp_rect(scene.grid_cols, scene.grid_rows, action.x, action.y, LABEL_CELLS, LABEL_CELLS)
    return scene.with_changes(labels=_replace_at(scene.labels, idx, Label(l.id, l.text, x, y))), selection


def _resize_zone(scene: Scene, selection: Selection, action: act.ResizeZone):
    idx = _index_of(scene.zones, action.id)
    if idx < 0:
        return scene, selection
    z = scene.zones[idx]
    w = clamp_round(action.width, MIN_ZONE_SIZE, scene.grid_cols, default=z.width_cells)
    h = clamp_round(action.height, MIN_ZONE_SIZE, scene.grid_rows, default=z.height_cells)
    # A bigger zone may no longer fit at its old origin.
    x, y = clamp_rect(scene.grid_cols, scene.grid_rows, z.grid_x, z.grid_y, w, h)
    return scene.with_changes(zones=_replace_at(scene.zones, idx, Zone(z.id, z.name, x, y, w, h))), selection


def _rename_zone(scene: Scene, selection: Selection, action: act.RenameZone):
    idx = _index_of(scene.zones, action.id)
    if idx < 0:
        return scene, selection
    z = scene.zones[idx]
    renamed = Zone(z.id, action.name, z.grid_x, z.grid_y, z.width_cells, z.height_cells)
    return scene.with_changes(zones=_replace_at(scene.zones, idx, renamed)), selection


def _rename_label(scene: Scene, selection: Selection, action: act.RenameLabel):
    idx = _index_of(scene.labels, action.id)
    if idx < 0:
        return scene, selection
    l = scene.labels[idx]
    return scene.with_changes(labels=_replace_at(scene.labels, idx, Label(l.id, action.text, l.grid_x, l.grid_y))), selection


def _renumber_table(scene: Scene, selection: Selection, action: act.RenumberTable):
    idx = _index_of(scene.tables, action.id)
    if idx < 0:
        return scene, selection
    t = scene.tables[idx]
    renumbered = Table(t.id, t.type, t.seats, t.orientation, t.grid_x, t.grid_y, action.number)
    return scene.with_changes(tables=_replace_at(scene.tables, idx, renumbered)), selection


def _remove_selected(scene: Scene, selection: Selection, action: act.RemoveSelected):
    if not selection:
        return scene, selection
    new_scene = scene.with_changes(
        tables=tuple(t for t in scene.tables if t.id not in selection),
        zones=tuple(z for z in scene.zones if z.id not in selection),
        labels=tuple(l for l in scene.labels if l.id not in selection),
    )
    return new_scene, frozenset()


def _remove_table(scene: Scene, selection: Selection, action: act.RemoveTable):
    tables = tuple(t for t in scene.tables if t.id != action.id)
    return scene.with_changes(tables=tables), selection - {action.id}


def _toggle_select(scene: Scene, selection: Selection, action: act.ToggleSelect):
    if scene.get_item(action.id) is None:
        return scene, selection
    if not action.multi:
        return scene, frozenset({action.id})
    return scene, selection ^ {action.id}


def _select_multiple(scene: Scene, selection: Selection, action: act.SelectMultiple):
    present = scene.item_ids()
    return scene, frozenset(i for i in action.ids if i in present)


def _clear_selection(scene: Scene, selection: Selection, action: act.ClearSelection):
    return scene, frozenset()


# Registry mapping Action classes to their reducer.
REDUCERS: Dict[Type, Reducer] = {
    act.Hydrate: _hydrate,
    act.SetGrid: _set_grid,
    act.AddTable: _add_table,
    act.AddZone: _add_zone,
    act.AddLabel: _add_label,
    act.MoveTable: _move_table,
    act.MoveZone: _move_zone,
    act.MoveLabel: _move_label,
    act.ResizeZone: _resize_zone,
    act.RenameZone: _rename_zone,
    act.RenameLabel: _rename_label,
    act.RenumberTable: _renumber_table,
    act.RemoveSelected: _remove_selected,
    act.RemoveTable: _remove_table,
    act.ToggleSelect: _toggle_select,
    act.SelectMultiple: _select_multiple,
    act.ClearSelection: _clear_selection,
}


def apply(scene: Scene, selection: Iterable[str], action: act.Action) -> Tuple[Scene, Selection]:
    """
    Pure transition function of the seating editor.
    Unknown action types leave both scene and selection untouched.
    """
    selection = frozenset(selection)
    reducer = REDUCERS.get(type(action))
    if reducer is None:
        return scene, selection
    return reducer(scene, selection, action)


# ==============================================================================
# --- Store Facade ---
# ==============================================================================

@dataclass(frozen=True)
class StoreSnapshot:
    """An immutable (scene, selection) pair published to subscribers."""
    scene: Scene
    selection: Selection


Listener = Callable[[StoreSnapshot], None]


class SceneStore:
    """
    Holds the current scene and selection and exposes a synchronous command
    interface. Renderers subscribe to snapshots and never mutate state.
    """

    def __init__(self, scene: Optional[Scene] = None, selection: Iterable[str] = ()):
        self._scene = scene if scene is not None else Scene()
        self._selection: Selection = frozenset(selection)
        self._listeners: List[Listener] = []
        self._saved_snapshot: Optional[str] = None

    # --- Read access ---

    @property
    def scene(self) -> Scene:
        return self._scene

    @property
    def selection(self) -> Selection:
        return self._selection

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(self._scene, self._selection)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Registers a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: act.Action) -> StoreSnapshot:
        logger.debug("Dispatching %s", type(action).__name__)
        scene, selection = apply(self._scene, self._selection, action)
        if scene is self._scene and selection == self._selection:
            return self.snapshot()
        self._scene, self._selection = scene, selection
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)
        return snap

    # --- Dirty tracking ---

    def mark_saved(self):
        """Remembers the current scene as the last persisted state."""
        self._saved_snapshot = canonical_snapshot(self._scene)

    @property
    def is_dirty(self) -> bool:
        if self._saved_snapshot is None:
            return False
        return self._saved_snapshot != canonical_snapshot(self._scene)

    # --- Commands ---

    def hydrate(self, partial: Mapping) -> StoreSnapshot:
        return self.dispatch(act.Hydrate(partial))

    def set_grid(self, cols: int, rows: int) -> StoreSnapshot:
        return self.dispatch(act.SetGrid(cols, rows))

    def add_table(self, config: TableConfig, anchor_x: float, anchor_y: float) -> StoreSnapshot:
        return self.dispatch(act.AddTable(config, anchor_x, anchor_y))

    def add_zone(self, name: str, anchor_x: float, anchor_y: float, width: float, height: float) -> StoreSnapshot:
        return self.dispatch(act.AddZone(name, anchor_x, anchor_y, width, height))

    def add_label(self, text: str, anchor_x: float, anchor_y: float) -> StoreSnapshot:
        return self.dispatch(act.AddLabel(text, anchor_x, anchor_y))

    def move_table(self, table_id: str, x: float, y: float) -> StoreSnapshot:
        return self.dispatch(act.MoveTable(table_id, x, y))

    def move_zone(self, zone_id: str, x: float, y: float) -> StoreSnapshot:
        return self.dispatch(act.MoveZone(zone_id, x, y))

    def move_label(self, label_id: str, x: float, y: float) -> StoreSnapshot:
        return self.dispatch(act.MoveLabel(label_id, x, y))

    def resize_zone(self, zone_id: str, width: float, height: float) -> StoreSnapshot:
        return self.dispatch(act.ResizeZone(zone_id, width, height))

    def rename_zone(self, zone_id: str, name: str) -> StoreSnapshot:
        return self.dispatch(act.RenameZone(zone_id, name))

    def rename_label(self, label_id: str, text: str) -> StoreSnapshot:
        return self.dispatch(act.RenameLabel(label_id, text))

    def renumber_table(self, table_id: str, number: Optional[int]) -> StoreSnapshot:
        return self.dispatch(act.RenumberTable(table_id, number))

    def remove_selected(self) -> StoreSnapshot:
        return self.dispatch(act.RemoveSelected())

    def remove_table(self, table_id: str) -> StoreSnapshot:
        return self.dispatch(act.RemoveTable(table_id))

    def toggle_select(self, item_id: str, multi: bool = False) -> StoreSnapshot:
        return self.dispatch(act.ToggleSelect(item_id, multi))

    def select_multiple(self, ids: Iterable[str]) -> StoreSnapshot:
        return self.dispatch(act.SelectMultiple(tuple(ids)))

    def clear_selection(self) -> StoreSnapshot:
        return self.dispatch(act.ClearSelection())

    # --- Editor helpers ---

    def center_cell(self) -> Tuple[int, int]:
        return self._scene.grid_cols // 2, self._scene.grid_rows // 2

    def ensure_grid_min(self, min_cols: float, min_rows: float) -> StoreSnapshot:
        """Grows (never shrinks) the grid to at least the given size."""
        cols = max(self._scene.grid_cols, round_half_up(min_cols))
        rows = max(self._scene.grid_rows, round_half_up(min_rows))
        if cols == self._scene.grid_cols and rows == self._scene.grid_rows:
            return self.snapshot()
        return self.set_grid(cols, rows)

    def add_table_centered(self, config: TableConfig) -> StoreSnapshot:
        """Adds a batch of tables at the grid center, growing the grid so it fits comfortably."""
        _, _, _, group_w, group_h = batch_layout(config)
        self.ensure_grid_min(group_w + GRID_EXPAND_PADDING, group_h + GRID_EXPAND_PADDING)
        cx, cy = self.center_cell()
        return self.add_table(config, cx, cy)

    def add_zone_centered(self, name: str, width: int, height: int) -> StoreSnapshot:
        self.ensure_grid_min(width + GRID_EXPAND_PADDING, height + GRID_EXPAND_PADDING)
        cx, cy = self.center_cell()
        return self.add_zone(name, cx - width // 2, cy - height // 2, width, height)

    def add_label_centered(self, text: str) -> StoreSnapshot:
        self.ensure_grid_min(30, 20)
        cx, cy = self.center_cell()
        return self.add_label(text, cx, cy)

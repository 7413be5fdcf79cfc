"""
Interaction Controller Module.

Turns a stream of pointer and keyboard events into discrete Scene Store
commands: single and grouped drags, zone resizing, marquee selection, inline
edits opened by a double activation, and keyboard deletion.

Coordinates passed in are local device pixels relative to the grid origin.
Timestamps are injected by the caller so the controller stays deterministic.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple, Union

from seating.config import CELL_SIZE, DOUBLE_ACTIVATION_MS, MARQUEE_THRESHOLD_PX
from seating.enums import EditMode, ItemKind, ResizeHandle
from seating.geometry import (
    GridRect, clamp_group_delta, clamp_rect, local_to_cells, pixel_delta_to_cells, snap_to_cell
)
from seating.guides import NO_GUIDES, GuideSet, compute_guides
from seating.models import SceneItem
from seating.store import SceneStore

logger = logging.getLogger(__name__)


# ==============================================================================
# --- Modes ---
# ==============================================================================

@dataclass(frozen=True)
class ItemRef:
    """The item under the pointer."""
    kind: ItemKind
    id: str


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    pointer_id: int
    item: ItemRef
    start_px: Tuple[float, float]
    group: Tuple[str, ...]
    origins: Mapping[str, Tuple[int, int]]


@dataclass(frozen=True)
class Resizing:
    pointer_id: int
    zone_id: str
    handle: ResizeHandle
    start_px: Tuple[float, float]
    start_w: int
    start_h: int


@dataclass(frozen=True)
class Marqueeing:
    pointer_id: int
    start_px: Tuple[float, float]
    current_px: Tuple[float, float]
    active: bool = False


Mode = Union[Idle, Dragging, Resizing, Marqueeing]
IDLE = Idle()


@dataclass(frozen=True)
class EditSession:
    item: ItemRef
    mode: EditMode
    value: str = ""


@dataclass(frozen=True)
class Activation:
    item_id: str
    timestamp_ms: float


@dataclass
class DragPreview:
    """Transient state of an in-progress drag, read by the renderer."""
    drafts: Dict[str, Tuple[int, int]] = field(default_factory=dict)
    live_delta: Tuple[float, float] = (0.0, 0.0)
    guides: GuideSet = NO_GUIDES


def marquee_cells(start_px: Tuple[float, float], current_px: Tuple[float, float],
                  zoom: float = 1.0, cell_size: int = CELL_SIZE) -> GridRect:
    """
    Converts a marquee in local pixels to a cell rectangle that covers every
    cell it touches: floor for the left/top edge, ceil for the right/bottom.
    """
    scale = cell_size * zoom
    left = math.floor(min(start_px[0], current_px[0]) / scale)
    top = math.floor(min(start_px[1], current_px[1]) / scale)
    right = math.ceil(max(start_px[0], current_px[0]) / scale)
    bottom = math.ceil(max(start_px[1], current_px[1]) / scale)
    return GridRect(left, top, right - left, bottom - top)


class InteractionController:
    """
    Pointer state machine sitting between raw input events and the store.
    Only one mode is active at a time; the pointer that started it owns it.
    """

    def __init__(self, store: SceneStore, zoom: float = 1.0, cell_size: int = CELL_SIZE):
        self.store = store
        self.zoom = zoom
        self.cell_size = cell_size
        self.mode: Mode = IDLE
        self.edit: Optional[EditSession] = None
        self.last_activation: Optional[Activation] = None
        self.preview = DragPreview()

    @property
    def scale(self) -> float:
        return self.cell_size * self.zoom

    @property
    def drafts(self) -> Dict[str, Tuple[int, int]]:
        return self.preview.drafts

    @property
    def guides(self) -> GuideSet:
        return self.preview.guides

    def reset(self):
        """Drops any in-flight gesture and edit without committing."""
        self.mode = IDLE
        self.edit = None
        self.last_activation = None
        self.preview = DragPreview()

    # --- Pointer events ---

    def pointer_down(self, x: float, y: float, pointer_id: int = 0, timestamp_ms: float = 0,
                     multi: bool = False, target: Optional[ItemRef] = None,
                     handle: Optional[ResizeHandle] = None):
        if not isinstance(self.mode, Idle):
            return

        if target is None:
            if self.edit is not None:
                return
            self.mode = Marqueeing(pointer_id, (x, y), (x, y))
            return

        scene = self.store.scene
        item = scene.get_item(target.id)
        if item is None:
            return

        if handle is not None:
            if target.kind == ItemKind.ZONE:
                self.mode = Resizing(pointer_id, item.id, handle, (x, y), item.width_cells, item.height_cells)
            return

        if self.edit is not None and self.edit.item.id == target.id:
            return

        last = self.last_activation
        if (last is not None and last.item_id == target.id
                and timestamp_ms - last.timestamp_ms <= DOUBLE_ACTIVATION_MS):
            self.last_activation = None
            self._begin_edit(target, item)
            return

        self.last_activation = Activation(target.id, timestamp_ms)
        self._begin_drag(pointer_id, x, y, multi, target)

    def pointer_move(self, x: float, y: float, pointer_id: int = 0):
        mode = self.mode
        if isinstance(mode, Idle) or mode.pointer_id != pointer_id:
            return
        if isinstance(mode, Dragging):
            self._update_drag(mode, x, y)
        elif isinstance(mode, Resizing):
            self._update_resize(mode, x, y)
        elif isinstance(mode, Marqueeing):
            self._update_marquee(mode, x, y)

    def pointer_up(self, x: float, y: float, pointer_id: int = 0):
        mode = self.mode
        if isinstance(mode, Idle) or mode.pointer_id != pointer_id:
            return

        if isinstance(mode, Dragging):
            self._commit_drag(mode)
            self.preview = DragPreview()
        elif isinstance(mode, Marqueeing):
            if not mode.active:
                self.store.clear_selection()

        self.mode = IDLE

    # --- Keyboard ---

    def key_down(self, key: str):
        if key in ('Delete', 'Backspace'):
            if self.edit is None and self.store.selection:
                self.store.remove_selected()
        elif key == 'Escape':
            self.cancel_edit()
        elif key == 'Enter':
            self.commit_edit()

    # --- Inline edit ---

    def set_edit_value(self, value: str):
        if self.edit is not None:
            self.edit = EditSession(self.edit.item, self.edit.mode, value)

    def cancel_edit(self):
        self.edit = None

    def commit_edit(self):
        """Applies the open edit, if any, and closes it."""
        edit = self.edit
        if edit is None:
            return
        self.edit = None

        if edit.item.kind == ItemKind.TABLE:
            number = _parse_number(edit.value)
            if number is not None and number > 0:
                self.store.renumber_table(edit.item.id, int(math.floor(number)))
            else:
                logger.debug("Discarded table number edit %r", edit.value)
        elif edit.item.kind == ItemKind.ZONE:
            self.store.rename_zone(edit.item.id, edit.value.strip())
        else:
            self.store.rename_label(edit.item.id, edit.value.strip())

    # --- Internals ---

    def _begin_edit(self, target: ItemRef, item: SceneItem):
        if target.kind == ItemKind.TABLE:
            value = "" if item.number is None else str(item.number)
            self.edit = EditSession(target, EditMode.NUMBER, value)
        elif target.kind == ItemKind.ZONE:
            self.edit = EditSession(target, EditMode.TEXT, item.name)
        else:
            self.edit = EditSession(target, EditMode.TEXT, item.text)

    def _begin_drag(self, pointer_id: int, x: float, y: float, multi: bool, target: ItemRef):
        store = self.store
        if multi:
            store.toggle_select(target.id, multi=True)
        elif target.id not in store.selection:
            store.toggle_select(target.id)

        scene = store.scene
        selection = store.selection
        if target.kind == ItemKind.TABLE and len(selection) > 1 and target.id in selection:
            members = [t for t in scene.tables if t.id in selection]
        else:
            members = [scene.get_item(target.id)]

        origins = {m.id: (m.grid_x, m.grid_y) for m in members}
        self.mode = Dragging(pointer_id, target, (x, y), tuple(origins), origins)
        self.preview = DragPreview(drafts=dict(origins))

    def _update_drag(self, mode: Dragging, x: float, y: float):
        scene = self.store.scene
        live_x, live_y = local_to_cells(x - mode.start_px[0], y - mode.start_px[1], self.zoom, self.cell_size)
        dx, dy = snap_to_cell(live_x), snap_to_cell(live_y)

        drafts = {}
        if len(mode.group) > 1:
            members = [t for t in scene.tables if t.id in mode.origins]
            dx, dy = clamp_group_delta(scene.grid_cols, scene.grid_rows, [t.rect for t in members], dx, dy)
            for t in members:
                ox, oy = mode.origins[t.id]
                w, h = t.size
                drafts[t.id] = clamp_rect(scene.grid_cols, scene.grid_rows, ox + dx, oy + dy, w, h)
        else:
            item = scene.get_item(mode.item.id)
            if item is None:
                return
            w, h = _item_size(item)
            ox, oy = mode.origins[item.id]
            drafts[item.id] = clamp_rect(scene.grid_cols, scene.grid_rows, ox + dx, oy + dy, w, h)

        guides = NO_GUIDES
        if mode.item.kind == ItemKind.TABLE and mode.item.id in drafts:
            draft_x, draft_y = drafts[mode.item.id]
            guides = compute_guides(scene.tables, mode.item.id, draft_x, draft_y, exclude_ids=mode.group)

        self.preview = DragPreview(drafts=drafts, live_delta=(live_x, live_y), guides=guides)

    def _commit_drag(self, mode: Dragging):
        draft = self.preview.drafts.get(mode.item.id)
        if draft is None:
            return
        x, y = draft
        if mode.item.kind == ItemKind.TABLE:
            self.store.move_table(mode.item.id, x, y)
        elif mode.item.kind == ItemKind.ZONE:
            self.store.move_zone(mode.item.id, x, y)
        else:
            self.store.move_label(mode.item.id, x, y)

    def _update_resize(self, mode: Resizing, x: float, y: float):
        dx = pixel_delta_to_cells(x - mode.start_px[0], self.zoom, self.cell_size)
        dy = pixel_delta_to_cells(y - mode.start_px[1], self.zoom, self.cell_size)
        width = mode.start_w + dx if mode.handle.resizes_width else mode.start_w
        height = mode.start_h + dy if mode.handle.resizes_height else mode.start_h
        self.store.resize_zone(mode.zone_id, width, height)

    def _update_marquee(self, mode: Marqueeing, x: float, y: float):
        active = mode.active or math.hypot(x - mode.start_px[0], y - mode.start_px[1]) >= MARQUEE_THRESHOLD_PX
        self.mode = Marqueeing(mode.pointer_id, mode.start_px, (x, y), active)
        if not active:
            return
        box = marquee_cells(mode.start_px, (x, y), self.zoom, self.cell_size)
        hits = [item.id for item in self.store.scene.items() if item.rect.intersects(box)]
        self.store.select_multiple(hits)


def _item_size(item: SceneItem) -> Tuple[int, int]:
    rect = item.rect
    return int(rect.w), int(rect.h)


def _parse_number(value: str) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None

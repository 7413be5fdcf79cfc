"""
Alignment Guide Engine.

While a table is being dragged, proposes vertical and horizontal guide lines
where the dragged table's edges or center come close to those of another
table. Guides are advisory only; they never move anything.
"""
from dataclasses import dataclass, field
from typing import Iterable, Sequence, Tuple

import numpy as np

from seating.config import GUIDE_TOLERANCE_CELLS, MAX_GUIDES
from seating.models import Table


@dataclass(frozen=True)
class GuideSet:
    """Guide positions in cells. `vertical` holds x values, `horizontal` holds y values."""
    vertical: Tuple[float, ...] = field(default_factory=tuple)
    horizontal: Tuple[float, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.vertical and not self.horizontal


NO_GUIDES = GuideSet()


def _edge_matches(a_start: float, a_size: float, starts: np.ndarray, sizes: np.ndarray,
                  tolerance: float) -> Tuple[float, ...]:
    """
    Compares one axis of the dragged rectangle against every other rectangle.

    Columns follow the pair order (start,start) (start,end) (center,center)
    (end,start) (end,end); the kept value is always the other table's
    coordinate. Row-major flattening keeps discovery order: table by table,
    pair by pair.
    """
    a_end = a_start + a_size
    a_center = a_start + a_size / 2
    ends = starts + sizes
    centers = starts + sizes / 2

    ours = np.array([a_start, a_start, a_center, a_end, a_end])
    theirs = np.column_stack([starts, ends, centers, starts, ends])
    mask = np.abs(theirs - ours) <= tolerance

    hits = theirs[mask]
    # dict.fromkeys dedupes while keeping first-seen order.
    unique = dict.fromkeys(float(v) for v in hits)
    return tuple(unique)[:MAX_GUIDES]


def compute_guides(tables: Sequence[Table], active_id: str, draft_x: float, draft_y: float,
                   exclude_ids: Iterable[str] = (), tolerance: float = GUIDE_TOLERANCE_CELLS) -> GuideSet:
    """
    Returns the alignment guides for the table `active_id` drafted at
    (draft_x, draft_y). Tables in `exclude_ids` (the rest of a drag group) are
    not used as references.
    """
    active = next((t for t in tables if t.id == active_id), None)
    if active is None:
        return NO_GUIDES

    excluded = set(exclude_ids)
    excluded.add(active_id)
    others = [t for t in tables if t.id not in excluded]
    if not others:
        return NO_GUIDES

    w, h = active.size
    sizes = np.array([t.size for t in others], dtype=float)
    xs = np.array([t.grid_x for t in others], dtype=float)
    ys = np.array([t.grid_y for t in others], dtype=float)

    vertical = _edge_matches(draft_x, w, xs, sizes[:, 0], tolerance)
    horizontal = _edge_matches(draft_y, h, ys, sizes[:, 1], tolerance)
    return GuideSet(vertical=vertical, horizontal=horizontal)

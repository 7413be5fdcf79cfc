"""
Viewport Controller Module.

Owns zoom level and scroll offset for the seating canvas: fit-to-content,
wheel and pinch zoom within mode-dependent bounds, and automatic re-fitting
when the content (not the window) changes.
"""
import math
from typing import Optional, Tuple

from seating.config import (
    CELL_SIZE, CONTENT_PADDING_CELLS, MAX_FIT_ZOOM, MAX_WHEEL_ZOOM, MAX_ZOOM, MIN_ZOOM,
    VIEWPORT_PADDING_PX, WHEEL_ZOOM_FACTOR
)
from seating.enums import ViewportMode
from seating.geometry import GridRect, clamp
from seating.models import Scene

ContentToken = Tuple[float, float, float, float, int, int, int]


def content_rect(scene: Scene, pad: int = CONTENT_PADDING_CELLS) -> GridRect:
    """
    Bounding box of every placed item, padded and clamped to the grid.
    An empty scene yields the whole grid.
    """
    box = GridRect.union(item.rect for item in scene.items())
    cols = max(1, scene.grid_cols)
    rows = max(1, scene.grid_rows)
    if box is None:
        return GridRect(0, 0, cols, rows)

    ox = clamp(math.floor(box.x) - pad, 0, max(0, cols - 1))
    oy = clamp(math.floor(box.y) - pad, 0, max(0, rows - 1))
    ex = clamp(math.ceil(box.right) + pad, 1, cols)
    ey = clamp(math.ceil(box.bottom) + pad, 1, rows)
    return GridRect(ox, oy, max(1, ex - ox), max(1, ey - oy))


def fit_zoom(content: GridRect, viewport_size: Optional[Tuple[float, float]],
             cell_size: int = CELL_SIZE, pad_px: float = VIEWPORT_PADDING_PX) -> float:
    """Largest zoom (never above 1) at which `content` fits inside the viewport."""
    if not viewport_size or not viewport_size[0] or not viewport_size[1]:
        return 1.0
    vw, vh = viewport_size
    sx = (vw - 2 * pad_px) / max(1, content.w * cell_size)
    sy = (vh - 2 * pad_px) / max(1, content.h * cell_size)
    return clamp(min(MAX_FIT_ZOOM, sx, sy), MIN_ZOOM, MAX_FIT_ZOOM)


def content_token(scene: Scene) -> ContentToken:
    rect = content_rect(scene)
    return (rect.x, rect.y, rect.w, rect.h, len(scene.tables), len(scene.zones), len(scene.labels))


class ViewportController:
    """
    Zoom and scroll state of one canvas.

    Read-only maps cannot be zoomed out past the fit level; editable maps may
    go down to the global minimum.
    """

    def __init__(self, mode: ViewportMode = ViewportMode.EDITABLE, cell_size: int = CELL_SIZE):
        self.mode = mode
        self.cell_size = cell_size
        self.zoom = 1.0
        self.scroll: Tuple[float, float] = (0.0, 0.0)
        self.viewport_size: Optional[Tuple[float, float]] = None
        self.content = GridRect(0, 0, 1, 1)
        self._fit = 1.0
        self._token: Optional[ContentToken] = None
        self._pinch_start_zoom = 1.0

    # --- Bounds ---

    @property
    def fit_zoom(self) -> float:
        return self._fit

    @property
    def min_zoom(self) -> float:
        return self._fit if self.mode == ViewportMode.READONLY else MIN_ZOOM

    @property
    def max_zoom(self) -> float:
        return min(MAX_ZOOM, max(self._fit, self._fit * 3))

    @property
    def max_wheel_zoom(self) -> float:
        # Anchored on the fit level so editable maps are not capped near MIN_ZOOM.
        return min(MAX_WHEEL_ZOOM, max(self._fit, self._fit * 1.7))

    # --- Layout ---

    def set_viewport_size(self, width: float, height: float):
        """Records a new viewport size. Bounds follow it; the zoom does not."""
        self.viewport_size = (width, height)
        self._fit = fit_zoom(self.content, self.viewport_size, self.cell_size)

    def sync(self, scene: Scene) -> bool:
        """
        Updates the content bounds from `scene` and re-fits when the content
        changed since the last fit. Returns True when a re-fit happened.
        """
        self.content = content_rect(scene)
        self._fit = fit_zoom(self.content, self.viewport_size, self.cell_size)
        if self.viewport_size is None:
            return False
        token = content_token(scene)
        if token == self._token:
            return False
        self._token = token
        self.zoom = self._fit
        self._pinch_start_zoom = self._fit
        self.scroll = (0.0, 0.0)
        return True

    # --- Input ---

    def wheel(self, delta_y: float, modifier: bool = False):
        """Modifier+wheel scrolls vertically; a plain wheel zooms."""
        if modifier:
            sx, sy = self.scroll
            self.scroll = (sx, max(0.0, sy + delta_y))
            return
        factor = WHEEL_ZOOM_FACTOR if delta_y < 0 else 1 / WHEEL_ZOOM_FACTOR
        self.zoom = clamp(self.zoom * factor, self.min_zoom, self.max_wheel_zoom)

    def begin_pinch(self):
        self._pinch_start_zoom = self.zoom or 1.0

    def pinch(self, scale: float):
        self.zoom = clamp(self._pinch_start_zoom * scale, self.min_zoom, self.max_zoom)

    def set_zoom(self, zoom: float):
        self.zoom = clamp(zoom, self.min_zoom, self.max_zoom)

"""
Plotting and Visualization Module.
Draws the seating grid and every placed item as plotly shapes, in cell units
with the y-axis reversed so row 0 sits at the top like on screen.
"""
import plotly.graph_objects as go
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from seating.config import (
    BACKGROUND_COLOR, GHOST_COLOR, GRID_COLOR, GUIDE_COLOR, MARQUEE_COLOR, PLOT_AREA_COLOR,
    SELECTION_COLOR, TABLE_COLORS, TABLE_LABELS, TEXT_COLOR, ZONE_BORDER_COLOR, ZONE_COLOR
)
from seating.geometry import GridRect
from seating.guides import GuideSet
from seating.interaction import InteractionController, Marqueeing, marquee_cells
from seating.models import Scene

# ==============================================================================
# --- Private Helper Functions ---
# ==============================================================================

def _rect_shape(rect: GridRect, fillcolor: str, line: Dict[str, Any], layer: str = 'above') -> Dict[str, Any]:
    return dict(
        type="rect",
        x0=rect.x, y0=rect.y, x1=rect.right, y1=rect.bottom,
        fillcolor=fillcolor, line=line, layer=layer
    )

def _outline(selected: bool, color: str, width: int = 1) -> Dict[str, Any]:
    if selected:
        return dict(color=SELECTION_COLOR, width=3)
    return dict(color=color, width=width)

# ==============================================================================
# --- Public API Functions ---
# ==============================================================================

def create_grid_shapes(cols: int, rows: int) -> List[Dict[str, Any]]:
    """Creates the plot-area background and one line per cell boundary."""
    shapes = [dict(
        type="rect", x0=0, y0=0, x1=cols, y1=rows,
        line=dict(color=GRID_COLOR, width=2), fillcolor=PLOT_AREA_COLOR, layer='below'
    )]
    for i in range(1, cols):
        shapes.append(dict(type="line", x0=i, y0=0, x1=i, y1=rows, line=dict(color=GRID_COLOR, width=1), layer='below'))
    for j in range(1, rows):
        shapes.append(dict(type="line", x0=0, y0=j, x1=cols, y1=j, line=dict(color=GRID_COLOR, width=1), layer='below'))
    return shapes

def create_zone_shapes(scene: Scene, selection: Iterable[str] = ()) -> List[Dict[str, Any]]:
    """Zones are drawn below tables so that overlapping tables stay visible."""
    selected = set(selection)
    return [
        _rect_shape(z.rect, ZONE_COLOR, _outline(z.id in selected, ZONE_BORDER_COLOR, 2), layer='below')
        for z in scene.zones
    ]

def create_table_shapes(scene: Scene, selection: Iterable[str] = ()) -> List[Dict[str, Any]]:
    selected = set(selection)
    return [
        _rect_shape(t.rect, TABLE_COLORS[t.type], _outline(t.id in selected, TEXT_COLOR))
        for t in scene.tables
    ]

def create_label_annotations(scene: Scene, selection: Iterable[str] = ()) -> List[Dict[str, Any]]:
    """
    Text annotations for table numbers, zone names and free labels.
    Selected labels get a highlighted border so a 1x1 anchor is still visible.
    """
    selected = set(selection)
    annotations = []
    for t in scene.tables:
        rect = t.rect
        annotations.append(dict(
            x=rect.center_x, y=rect.center_y, showarrow=False,
            text=f"<b>{t.number if t.number is not None else ''}</b><br>{t.seats}",
            font=dict(color=TEXT_COLOR, size=11)
        ))
    for z in scene.zones:
        annotations.append(dict(
            x=z.rect.center_x, y=z.grid_y + 0.5, showarrow=False,
            text=z.name, font=dict(color=TEXT_COLOR, size=12)
        ))
    for l in scene.labels:
        annotations.append(dict(
            x=l.rect.center_x, y=l.rect.center_y, showarrow=False,
            text=l.text, font=dict(color=TEXT_COLOR, size=13),
            bordercolor=SELECTION_COLOR if l.id in selected else 'rgba(0,0,0,0)', borderwidth=1
        ))
    return annotations

def create_ghost_shapes(scene: Scene, drafts: Mapping[str, Tuple[int, int]]) -> List[Dict[str, Any]]:
    """Dashed outlines at the drafted positions of items being dragged."""
    shapes = []
    for item_id, (x, y) in drafts.items():
        item = scene.get_item(item_id)
        if item is None:
            continue
        rect = GridRect(x, y, item.rect.w, item.rect.h)
        shapes.append(_rect_shape(rect, GHOST_COLOR, dict(color=SELECTION_COLOR, width=1, dash='dash')))
    return shapes

def create_guide_shapes(guides: GuideSet, cols: int, rows: int) -> List[Dict[str, Any]]:
    shapes = []
    for x in guides.vertical:
        shapes.append(dict(type="line", x0=x, y0=0, x1=x, y1=rows, line=dict(color=GUIDE_COLOR, width=1, dash='dot')))
    for y in guides.horizontal:
        shapes.append(dict(type="line", x0=0, y0=y, x1=cols, y1=y, line=dict(color=GUIDE_COLOR, width=1, dash='dot')))
    return shapes

def create_marquee_shape(box: GridRect) -> Dict[str, Any]:
    return _rect_shape(box, MARQUEE_COLOR, dict(color=SELECTION_COLOR, width=1, dash='dash'))

def create_item_trace(scene: Scene) -> go.Scatter:
    """
    One invisible-ish marker per item at its center. It carries the item id in
    customdata so hover shows what is under the cursor.
    """
    xs, ys, customdata = [], [], []
    for item in scene.items():
        rect = item.rect
        xs.append(rect.center_x)
        ys.append(rect.center_y)
        customdata.append([item.kind.value, item.id])

    hovertemplate = "<b>%{customdata[0]}</b><br>Cell: (%{x:.0f}, %{y:.0f})<extra></extra>"
    return go.Scatter(
        x=xs, y=ys, mode='markers',
        marker=dict(color=SELECTION_COLOR, size=4, opacity=0.3),
        customdata=customdata,
        hovertemplate=hovertemplate,
        name='Items', showlegend=False
    )

def create_scene_figure(scene: Scene, selection: Iterable[str] = (),
                        controller: Optional[InteractionController] = None) -> go.Figure:
    """Assembles the full canvas figure from the helpers above."""
    selection = frozenset(selection)
    shapes = create_grid_shapes(scene.grid_cols, scene.grid_rows)
    shapes.extend(create_zone_shapes(scene, selection))
    shapes.extend(create_table_shapes(scene, selection))

    if controller is not None:
        shapes.extend(create_ghost_shapes(scene, controller.drafts))
        shapes.extend(create_guide_shapes(controller.guides, scene.grid_cols, scene.grid_rows))
        mode = controller.mode
        if isinstance(mode, Marqueeing) and mode.active:
            box = marquee_cells(mode.start_px, mode.current_px, controller.zoom, controller.cell_size)
            shapes.append(create_marquee_shape(box))

    fig = go.Figure(data=[create_item_trace(scene)])
    fig.update_layout(
        shapes=shapes,
        annotations=create_label_annotations(scene, selection),
        plot_bgcolor=BACKGROUND_COLOR,
        paper_bgcolor=BACKGROUND_COLOR,
        margin=dict(l=10, r=10, t=10, b=10),
        dragmode='select',
        clickmode='event+select',
        xaxis=dict(range=[0, scene.grid_cols], showgrid=False, zeroline=False, showticklabels=False, constrain='domain'),
        yaxis=dict(range=[scene.grid_rows, 0], showgrid=False, zeroline=False, showticklabels=False,
                   scaleanchor='x', scaleratio=1),
    )
    return fig


def table_type_legend() -> List[Tuple[str, str]]:
    """(label, colour) pairs for the sidebar legend."""
    return [(TABLE_LABELS[t], color) for t, color in TABLE_COLORS.items()]

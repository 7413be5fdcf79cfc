import pytest
import plotly.graph_objects as go
from seating.config import GUIDE_COLOR, SELECTION_COLOR
from seating.enums import ItemKind, Orientation, TableType
from seating.guides import GuideSet
from seating.interaction import InteractionController, ItemRef
from seating.models import Label, Scene, Table, Zone
from seating.plotting import (
    create_ghost_shapes,
    create_grid_shapes,
    create_guide_shapes,
    create_item_trace,
    create_label_annotations,
    create_scene_figure,
    create_table_shapes,
    table_type_legend
)
from seating.store import SceneStore

@pytest.fixture
def sample_scene() -> Scene:
    """A fixture with one item of every kind."""
    return Scene(
        grid_cols=30,
        grid_rows=20,
        tables=(
            Table('t1', TableType.REGULAR, 12, Orientation.ROW, 2, 3, 1),
            Table('t2', TableType.KNIGHT, 20, Orientation.ROW, 10, 3, None),
        ),
        zones=(Zone('z1', 'Dance Floor', 5, 10, 6, 4),),
        labels=(Label('l1', 'Stage', 20, 15),),
        table_counter=2,
    )

def test_create_grid_shapes_counts():
    """One background rect plus a line per inner cell boundary."""
    shapes = create_grid_shapes(30, 20)
    assert shapes[0]['type'] == 'rect'
    assert (shapes[0]['x1'], shapes[0]['y1']) == (30, 20)
    assert len(shapes) == 1 + 29 + 19

def test_create_table_shapes_uses_footprint(sample_scene):
    shapes = create_table_shapes(sample_scene, selection={'t2'})
    knight = shapes[1]
    assert (knight['x0'], knight['y0'], knight['x1'], knight['y1']) == (10, 3, 20, 5)
    assert knight['line']['color'] == SELECTION_COLOR
    assert shapes[0]['line']['color'] != SELECTION_COLOR

def test_create_label_annotations_text(sample_scene):
    annotations = create_label_annotations(sample_scene, selection={'l1'})
    texts = [a['text'] for a in annotations]
    assert texts[0] == "<b>1</b><br>12"
    assert texts[1] == "<b></b><br>20", "Unnumbered tables show their seats only"
    assert 'Dance Floor' in texts and 'Stage' in texts
    assert annotations[-1]['bordercolor'] == SELECTION_COLOR

def test_create_ghost_shapes_skips_unknown_items(sample_scene):
    shapes = create_ghost_shapes(sample_scene, {'t1': (4, 4), 'gone': (0, 0)})
    assert len(shapes) == 1
    assert (shapes[0]['x0'], shapes[0]['y0'], shapes[0]['x1'], shapes[0]['y1']) == (4, 4, 7, 7)

def test_create_guide_shapes():
    shapes = create_guide_shapes(GuideSet(vertical=(4.5,), horizontal=(2.0, 8.0)), 30, 20)
    assert len(shapes) == 3
    assert shapes[0]['x0'] == shapes[0]['x1'] == 4.5
    assert shapes[0]['y1'] == 20
    assert all(s['line']['color'] == GUIDE_COLOR for s in shapes)

def test_create_item_trace_carries_ids(sample_scene):
    trace = create_item_trace(sample_scene)
    assert isinstance(trace, go.Scatter)
    assert [list(c) for c in trace.customdata] == [
        ['table', 't1'], ['table', 't2'], ['zone', 'z1'], ['label', 'l1']
    ]

def test_create_scene_figure_smoke(sample_scene):
    """Smoke test: the figure renders with a reversed y-axis."""
    fig = create_scene_figure(sample_scene, selection={'t1'})
    assert isinstance(fig, go.Figure)
    assert tuple(fig.layout.yaxis.range) == (20, 0)
    assert len(fig.layout.shapes) == 1 + 29 + 19 + 1 + 2

def test_create_scene_figure_draws_drag_preview(sample_scene):
    store = SceneStore(sample_scene)
    controller = InteractionController(store)
    controller.pointer_down(0, 0, target=ItemRef(ItemKind.TABLE, 't1'))
    controller.pointer_move(24 * 3, 0)

    plain = create_scene_figure(store.scene, store.selection)
    with_preview = create_scene_figure(store.scene, store.selection, controller)
    assert len(with_preview.layout.shapes) > len(plain.layout.shapes)

def test_table_type_legend():
    assert [label for label, _ in table_type_legend()] == ["Regular", "Reserve", "Knight"]

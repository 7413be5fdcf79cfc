import pytest
from unittest.mock import MagicMock, patch
from seating.interaction import InteractionController
from seating.state import SessionStore
from seating.store import SceneStore
from seating.viewport import ViewportController

@pytest.fixture
def mock_st():
    """Replaces streamlit with a mock whose session_state is a plain dict."""
    with patch("seating.state.st") as st:
        st.session_state = {}
        yield st

def test_session_store_defaults(mock_st):
    store = SessionStore()
    assert isinstance(store.scene_store, SceneStore)
    assert isinstance(store.controller, InteractionController)
    assert isinstance(store.viewport, ViewportController)
    assert store.controller.store is store.scene_store
    assert store.event_name == 'My Event'
    assert store.uploader_key == 0
    assert store.report_bytes is None
    assert not store.scene_store.is_dirty

def test_session_store_keeps_existing_state(mock_st):
    first = SessionStore()
    first.scene_store.add_label("Stage", 1, 1)
    first.event_name = "Gala"

    second = SessionStore()
    assert second.scene_store is first.scene_store
    assert second.event_name == "Gala"

def test_reset_starts_a_fresh_map(mock_st):
    store = SessionStore()
    old = store.scene_store
    old.add_label("Stage", 1, 1)
    store.event_name = "Gala"
    store.report_bytes = b"xlsx"
    store.annotations = [{'type': 'note'}]

    store.reset()

    assert store.scene_store is not old
    assert store.scene_store.scene.labels == ()
    assert store.controller.store is store.scene_store
    assert store.uploader_key == 1
    assert store.report_bytes is None
    assert store.annotations is None
    assert store.event_name == "Gala"

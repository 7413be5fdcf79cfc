"""
State Management Module.
Implements the 'Store' pattern to unify access to Streamlit's session state.
The scene itself lives in a SceneStore; this module only keeps it (and the
controllers bound to it) alive across reruns.
"""
import streamlit as st
from dataclasses import dataclass
from typing import Any, Optional, TypedDict

from seating.enums import ViewportMode
from seating.interaction import InteractionController
from seating.store import SceneStore
from seating.viewport import ViewportController

# --- TypedDict Definitions ---

class AppState(TypedDict, total=False):
    """
    Type definition for the entire application session state.
    """
    scene_store: SceneStore
    controller: InteractionController
    viewport: ViewportController
    event_id: str
    event_name: str
    annotations: Any
    snapshot_name: Optional[str]
    report_bytes: Optional[bytes]
    uploader_key: int


def _fresh_objects() -> AppState:
    store = SceneStore()
    store.mark_saved()
    return {
        'scene_store': store,
        'controller': InteractionController(store),
        'viewport': ViewportController(ViewportMode.EDITABLE),
    }


@dataclass
class SessionStore:
    """
    Centralized store for application state.
    Wraps st.session_state to provide typed access and centralized modification logic.
    """

    def __post_init__(self):
        """Initialize default state values if they don't exist."""
        defaults: AppState = {
            'event_id': 'local-event',
            'event_name': 'My Event',
            'annotations': None,
            'snapshot_name': None,
            'report_bytes': None,
            'uploader_key': 0,
        }
        if 'scene_store' not in st.session_state:
            defaults.update(_fresh_objects())

        for key, value in defaults.items():
            if key not in st.session_state:
                st.session_state[key] = value

    # --- Properties for Typed Access ---

    @property
    def scene_store(self) -> SceneStore:
        return st.session_state['scene_store']

    @property
    def controller(self) -> InteractionController:
        return st.session_state['controller']

    @property
    def viewport(self) -> ViewportController:
        return st.session_state['viewport']

    @property
    def event_id(self) -> str:
        return st.session_state.get('event_id', 'local-event')

    @event_id.setter
    def event_id(self, val: str):
        st.session_state['event_id'] = val

    @property
    def event_name(self) -> str:
        return st.session_state.get('event_name', '')

    @event_name.setter
    def event_name(self, val: str):
        st.session_state['event_name'] = val

    @property
    def annotations(self) -> Any:
        """Annotations of the last loaded seating map row, kept for merging on save."""
        return st.session_state.get('annotations')

    @annotations.setter
    def annotations(self, val: Any):
        st.session_state['annotations'] = val

    @property
    def snapshot_name(self) -> Optional[str]:
        return st.session_state.get('snapshot_name')

    @snapshot_name.setter
    def snapshot_name(self, val: Optional[str]):
        st.session_state['snapshot_name'] = val

    @property
    def report_bytes(self) -> Optional[bytes]:
        return st.session_state.get('report_bytes')

    @report_bytes.setter
    def report_bytes(self, data: Optional[bytes]):
        st.session_state['report_bytes'] = data

    @property
    def uploader_key(self) -> int:
        return st.session_state.get('uploader_key', 0)

    # --- Actions ---

    def reset(self):
        """Starts a fresh, empty seating map but keeps the event details."""
        for key, value in _fresh_objects().items():
            st.session_state[key] = value
        st.session_state['annotations'] = None
        st.session_state['snapshot_name'] = None
        st.session_state['report_bytes'] = None
        st.session_state['uploader_key'] = self.uploader_key + 1

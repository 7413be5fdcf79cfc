import json
import logging
import time
from datetime import date
from typing import Any, Dict, Optional

import streamlit as st

from seating.config import (
    CELL_SIZE, FIXED_SEATS, MAX_GRID_SIZE, MAX_NEW_ZONE_HEIGHT, MAX_NEW_ZONE_WIDTH,
    MAX_TABLE_QUANTITY, MIN_GRID_SIZE, MIN_ZONE_SIZE, SNAPSHOT_TYPE, TABLE_LABELS
)
from seating.enums import ItemKind, Orientation, TableType
from seating.interaction import ItemRef
from seating.models import TableConfig
from seating.plotting import create_scene_figure, table_type_legend
from seating.reporting import calculate_seat_summary, generate_excel_report
from seating.snapshot import (
    export_snapshot, merge_web_v2, partial_from_row, partial_from_snapshot,
    project_legacy_tables, table_records
)
from seating.state import SessionStore
from seating.utils import generate_standard_filename

logger = logging.getLogger(__name__)

# Assumed canvas size until the browser reports one.
DEFAULT_VIEWPORT = (1200, 820)


def _now_ms() -> float:
    return time.time() * 1000


class EditorView:
    """
    Renders the seating editor: sidebar forms on the left, the plotly canvas
    in the main area. Every change goes through the SceneStore commands.
    """
    def __init__(self, store: SessionStore):
        self.store = store

    @property
    def scene_store(self):
        return self.store.scene_store

    # --- Sidebar ---

    def render_sidebar(self):
        with st.sidebar:
            st.title("🪑 Seating Editor")
            self.store.event_name = st.text_input("Event Name", value=self.store.event_name)

            with st.expander("➕ Add Items", expanded=True):
                self._render_add_table_form()
                self._render_add_zone_form()
                self._render_add_label_form()

            with st.expander("🔲 Selection", expanded=True):
                self._render_inline_edit()
                self._render_selection_controls()

            with st.expander("📐 Grid", expanded=False):
                self._render_grid_form()

            with st.expander("💾 Load & Save", expanded=False):
                self._render_persistence()

            with st.expander("📥 Reporting", expanded=False):
                self._render_reporting()

    def _render_add_table_form(self):
        with st.form(key="add_table_form"):
            st.markdown("**Tables**")
            type_value = st.selectbox(
                "Table Type", TableType.values(),
                format_func=lambda v: f"{TABLE_LABELS[TableType(v)]} ({FIXED_SEATS[TableType(v)]} seats)"
            )
            seats = st.number_input("Seats (knight tables only)", min_value=1, max_value=80,
                                    value=FIXED_SEATS[TableType.KNIGHT])
            orientation = st.radio("Orientation", Orientation.values(), horizontal=True)
            quantity = st.number_input("Quantity", min_value=1, max_value=MAX_TABLE_QUANTITY, value=1)
            if st.form_submit_button("Add Tables"):
                table_type = TableType(type_value)
                config = TableConfig(
                    type=table_type,
                    seats=int(seats) if table_type == TableType.KNIGHT else None,
                    orientation=Orientation(orientation),
                    quantity=int(quantity),
                )
                self.scene_store.add_table_centered(config)
                st.rerun()

    def _render_add_zone_form(self):
        with st.form(key="add_zone_form"):
            st.markdown("**Zones**")
            name = st.text_input("Zone Name", value="Dance Floor")
            col1, col2 = st.columns(2)
            width = col1.number_input("Width", min_value=MIN_ZONE_SIZE, max_value=MAX_NEW_ZONE_WIDTH, value=8)
            height = col2.number_input("Height", min_value=MIN_ZONE_SIZE, max_value=MAX_NEW_ZONE_HEIGHT, value=6)
            if st.form_submit_button("Add Zone"):
                self.scene_store.add_zone_centered(name.strip(), int(width), int(height))
                st.rerun()

    def _render_add_label_form(self):
        with st.form(key="add_label_form"):
            st.markdown("**Labels**")
            text = st.text_input("Label Text", value="Stage")
            if st.form_submit_button("Add Label"):
                self.scene_store.add_label_centered(text.strip())
                st.rerun()

    def _render_inline_edit(self):
        controller = self.store.controller
        edit = controller.edit
        if edit is None:
            return
        label = "Table Number" if edit.item.kind == ItemKind.TABLE else "Name"
        value = st.text_input(label, value=edit.value, key=f"inline_edit_{edit.item.id}")
        controller.set_edit_value(value)
        col1, col2 = st.columns(2)
        if col1.button("Save", type="primary", use_container_width=True):
            controller.key_down('Enter')
            st.rerun()
        if col2.button("Cancel", use_container_width=True):
            controller.key_down('Escape')
            st.rerun()

    def _render_selection_controls(self):
        scene = self.scene_store.scene
        selection = self.scene_store.selection
        if not selection:
            st.caption("Click an item or drag a box on the canvas to select.")
            return

        st.write(f"{len(selection)} item(s) selected")
        if len(selection) == 1:
            item = scene.get_item(next(iter(selection)))
            if item is not None:
                self._render_item_editor(item)

        col1, col2 = st.columns(2)
        if col1.button("Delete", use_container_width=True):
            self.store.controller.key_down('Delete')
            st.rerun()
        if col2.button("Clear", use_container_width=True):
            self.scene_store.clear_selection()
            st.rerun()

    def _render_item_editor(self, item):
        store = self.scene_store
        with st.form(key=f"item_form_{item.id}"):
            if item.kind == ItemKind.TABLE:
                number = st.number_input("Number", min_value=1, value=item.number or 1)
            elif item.kind == ItemKind.ZONE:
                name = st.text_input("Name", value=item.name)
                col_w, col_h = st.columns(2)
                width = col_w.number_input("Width", min_value=MIN_ZONE_SIZE, value=item.width_cells)
                height = col_h.number_input("Height", min_value=MIN_ZONE_SIZE, value=item.height_cells)
            else:
                text = st.text_input("Text", value=item.text)
            col_x, col_y = st.columns(2)
            x = col_x.number_input("Column", min_value=0, value=item.grid_x)
            y = col_y.number_input("Row", min_value=0, value=item.grid_y)

            if st.form_submit_button("Apply"):
                if item.kind == ItemKind.TABLE:
                    store.renumber_table(item.id, int(number))
                    store.move_table(item.id, x, y)
                elif item.kind == ItemKind.ZONE:
                    store.rename_zone(item.id, name.strip())
                    store.resize_zone(item.id, width, height)
                    store.move_zone(item.id, x, y)
                else:
                    store.rename_label(item.id, text.strip())
                    store.move_label(item.id, x, y)
                st.rerun()

    def _render_grid_form(self):
        scene = self.scene_store.scene
        with st.form(key="grid_form"):
            col1, col2 = st.columns(2)
            cols = col1.number_input("Columns", min_value=MIN_GRID_SIZE, max_value=MAX_GRID_SIZE, value=scene.grid_cols)
            rows = col2.number_input("Rows", min_value=MIN_GRID_SIZE, max_value=MAX_GRID_SIZE, value=scene.grid_rows)
            if st.form_submit_button("Apply Grid Size"):
                self.scene_store.set_grid(cols, rows)
                st.rerun()

    def _render_persistence(self):
        uploaded = st.file_uploader("Load seating map (JSON)", type=["json"], key=f"snapshot_{self.store.uploader_key}")
        if uploaded is not None and uploaded.name != self.store.snapshot_name:
            self._load_snapshot(uploaded.name, uploaded.getvalue())

        row = self._build_row()
        st.download_button(
            label="Download Seating Map",
            data=json.dumps(row, indent=2, ensure_ascii=False),
            file_name=generate_standard_filename("Seating_Map", self.store.event_name, "json"),
            mime="application/json",
            on_click=self.scene_store.mark_saved,
        )
        if st.button("New Empty Map"):
            self.store.reset()
            st.rerun()

    def _load_snapshot(self, name: str, raw: bytes):
        try:
            doc = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            st.error(f"'{name}' is not a valid JSON file: {e}")
            return
        if not isinstance(doc, dict):
            st.error(f"'{name}' does not contain a seating map.")
            return

        # Either a bare web_v2 document or a stored seating map row.
        if doc.get('type') == SNAPSHOT_TYPE or 'grid' in doc:
            partial = partial_from_snapshot(doc)
        else:
            partial = partial_from_row(doc)
        if partial is None:
            st.error(f"'{name}' does not contain a seating map.")
            return

        self.scene_store.hydrate(partial)
        self.scene_store.mark_saved()
        self.store.controller.reset()
        self.store.annotations = doc.get('annotations')
        self.store.event_id = str(doc.get('event_id', self.store.event_id))
        self.store.snapshot_name = name
        logger.info("Loaded seating map from %s", name)
        st.sidebar.success(f"Loaded '{name}'.")

    def _build_row(self) -> Dict[str, Any]:
        """The seating map row the remote store would upsert."""
        scene = self.scene_store.scene
        legacy = project_legacy_tables(scene)
        return {
            'event_id': self.store.event_id,
            'num_tables': len(legacy),
            'tables': legacy,
            'annotations': merge_web_v2(self.store.annotations, export_snapshot(scene, CELL_SIZE)),
            'table_records': table_records(self.store.event_id, legacy),
        }

    def _render_reporting(self):
        if st.button("Generate Report for Download"):
            with st.spinner("Generating Excel report..."):
                self.store.report_bytes = generate_excel_report(self.scene_store.scene, self.store.event_name)
        st.download_button(
            label="Download Report",
            data=self.store.report_bytes if self.store.report_bytes is not None else b"",
            file_name=generate_standard_filename("Seating_Report", self.store.event_name, "xlsx", date.today()),
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            disabled=self.store.report_bytes is None,
            help="Click 'Generate Report' first to enable download."
        )

    # --- Main Canvas ---

    def render_main(self):
        scene_store = self.scene_store
        scene = scene_store.scene
        controller = self.store.controller
        viewport = self.store.viewport

        st.title(f"📋 {self.store.event_name or 'Seating Map'}")
        if scene_store.is_dirty:
            st.caption("Unsaved changes")

        summary = calculate_seat_summary(scene)
        total = summary[summary['Type'] == 'Total'].iloc[0]
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Tables", int(total['Tables']))
        col2.metric("Seats", int(total['Seats']))
        col3.metric("Zones", len(scene.zones))
        col4.metric("Labels", len(scene.labels))

        if viewport.viewport_size is None:
            viewport.set_viewport_size(*DEFAULT_VIEWPORT)
        viewport.sync(scene)
        zoom = st.slider("Zoom", min_value=float(viewport.min_zoom), max_value=float(viewport.max_zoom),
                         value=float(viewport.zoom), step=0.05)
        viewport.set_zoom(zoom)
        controller.zoom = viewport.zoom

        fig = create_scene_figure(scene, scene_store.selection, controller)
        fig.update_layout(height=int(scene.grid_rows * CELL_SIZE * viewport.zoom) + 20)
        event = st.plotly_chart(
            fig, use_container_width=True, key="seating_canvas",
            on_select="rerun", selection_mode=("points", "box"),
        )
        self._handle_canvas_event(event)

        st.caption("  ".join(f"■ {label}" for label, _ in table_type_legend()))

    def _handle_canvas_event(self, event: Optional[Any]):
        """
        Routes a plotly selection event through the interaction controller:
        a box becomes a marquee, a single clicked point becomes an activation.
        """
        if not event:
            return
        selection = event.get('selection') or {}
        signature = json.dumps(selection, sort_keys=True, default=str)
        if st.session_state.get('last_canvas_event') == signature:
            return
        st.session_state['last_canvas_event'] = signature

        controller = self.store.controller
        scale = controller.scale
        boxes = selection.get('box') or []
        points = selection.get('points') or []

        if boxes:
            box = boxes[-1]
            x0, x1 = min(box['x']), max(box['x'])
            y0, y1 = min(box['y']), max(box['y'])
            controller.pointer_down(x0 * scale, y0 * scale, timestamp_ms=_now_ms())
            controller.pointer_move(x1 * scale, y1 * scale)
            controller.pointer_up(x1 * scale, y1 * scale)
            st.rerun()
        elif len(points) == 1:
            target = self._point_target(points[0])
            if target is None:
                return
            px, py = points[0]['x'] * scale, points[0]['y'] * scale
            controller.pointer_down(px, py, timestamp_ms=_now_ms(), target=target)
            controller.pointer_up(px, py)
            st.rerun()

    def _point_target(self, point: Dict[str, Any]) -> Optional[ItemRef]:
        customdata = point.get('customdata')
        if customdata:
            return ItemRef(ItemKind(customdata[0]), customdata[1])
        # The item trace has one point per item, in scene order.
        items = list(self.scene_store.scene.items())
        index = point.get('point_index')
        if index is None or not 0 <= index < len(items):
            return None
        return ItemRef(items[index].kind, items[index].id)

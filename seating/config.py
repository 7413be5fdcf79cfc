"""
Configuration and Styling Module.

This module contains all configuration and styling variables for the seating
editor, including grid defaults, table rules, interaction tolerances and the
colour theme used by the plotting and reporting modules.
"""
from seating.enums import TableType

# --- Grid Constants (in cells) ---
# These define the default canvas a new seating map starts with.
DEFAULT_GRID_COLS = 50
DEFAULT_GRID_ROWS = 35
# Bounds accepted when the grid itself is resized.
MIN_GRID_SIZE = 20
MAX_GRID_SIZE = 300
# Edge length of one cell in device pixels at zoom 1.0.
CELL_SIZE = 24
# Extra cells added around new content when the grid auto-expands.
GRID_EXPAND_PADDING = 12


# --- Table Rules ---
FIXED_SEATS = {
    TableType.REGULAR: 12,
    TableType.RESERVE: 8,
    TableType.KNIGHT: 20,
}
TABLE_LABELS = {
    TableType.REGULAR: "Regular",
    TableType.RESERVE: "Reserve",
    TableType.KNIGHT: "Knight",
}
# Square tables occupy a fixed 3x3 footprint.
SQUARE_TABLE_CELLS = 3
# Knight tables are two cells deep; the long side never drops below 3.
KNIGHT_DEPTH_CELLS = 2
KNIGHT_MIN_LENGTH_CELLS = 3
TABLE_GAP_CELLS = 1
MAX_TABLE_QUANTITY = 20


# --- Zone Rules ---
MIN_ZONE_SIZE = 2
MAX_NEW_ZONE_WIDTH = 30
MAX_NEW_ZONE_HEIGHT = 20
# Labels are anchors without a footprint, treated as 1x1.
LABEL_CELLS = 1


# --- Interaction Constants ---
DOUBLE_ACTIVATION_MS = 320
MARQUEE_THRESHOLD_PX = 5
GUIDE_TOLERANCE_CELLS = 2
MAX_GUIDES = 6


# --- Viewport Constants ---
MIN_ZOOM = 0.2
MAX_ZOOM = 3.0
MAX_WHEEL_ZOOM = 2.0
MAX_FIT_ZOOM = 1.0
WHEEL_ZOOM_FACTOR = 1.06
CONTENT_PADDING_CELLS = 4
VIEWPORT_PADDING_PX = 44


# --- Persistence Constants ---
SNAPSHOT_TYPE = "web_v2"
SNAPSHOT_VERSION = 2
# Legacy maps stored table positions in pixels at roughly 40px per cell.
LEGACY_PX_PER_CELL = 40
LEGACY_GRID_PADDING = 6


# --- Style Theme: Banquet Hall ---
BACKGROUND_COLOR = '#F8FAFC'
PLOT_AREA_COLOR = '#FFFFFF'
GRID_COLOR = 'rgba(148,163,184,0.22)'
TEXT_COLOR = '#111827'
SELECTION_COLOR = '#2B8CEE'
GUIDE_COLOR = '#F43F5E'

# Fill colours per table type.
TABLE_COLORS = {
    TableType.REGULAR: '#DBEAFE',
    TableType.RESERVE: '#FEF3C7',
    TableType.KNIGHT: '#EDE9FE',
}
ZONE_COLOR = 'rgba(16,185,129,0.10)'
ZONE_BORDER_COLOR = 'rgba(16,185,129,0.55)'
GHOST_COLOR = 'rgba(43,140,238,0.22)'
MARQUEE_COLOR = 'rgba(43,140,238,0.10)'


# --- Reporting Constants ---
REPORT_HEADER_COLOR = '#1D4ED8'


class ExcelReportStyle:
    """Cell formats shared by every sheet of the seating report."""

    @staticmethod
    def get_formats(workbook) -> dict:
        return {
            'title': workbook.add_format({'bold': True, 'font_size': 16, 'font_color': REPORT_HEADER_COLOR}),
            'subtitle': workbook.add_format({'bold': True, 'font_size': 11}),
            'header': workbook.add_format({
                'bold': True, 'font_color': '#FFFFFF', 'bg_color': REPORT_HEADER_COLOR,
                'border': 1, 'align': 'center', 'valign': 'vcenter'
            }),
            'cell': workbook.add_format({'border': 1}),
            'total': workbook.add_format({'bold': True, 'border': 1, 'top': 2}),
        }

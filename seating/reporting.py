"""
Excel Reporting Module.

Generates a multi-sheet table roster for a seating map: a summary of table
counts and seats per type, the full table list with positions, and the zones
and labels placed on the grid. Formatting is done with xlsxwriter.
"""
import io
import logging
from datetime import datetime
from typing import Optional

import pandas as pd

from seating.config import TABLE_LABELS, ExcelReportStyle
from seating.enums import TableType
from seating.models import Scene

logger = logging.getLogger(__name__)

TABLE_COLUMNS = ['Number', 'Type', 'Seats', 'Orientation', 'Grid X', 'Grid Y', 'Width', 'Height', 'Id']
ZONE_COLUMNS = ['Kind', 'Name', 'Grid X', 'Grid Y', 'Width', 'Height', 'Id']

# ==============================================================================
# --- Helper Classes ---
# ==============================================================================

class ReportWriter:
    """Encapsulates Excel writing logic and formatting state."""

    def __init__(self, buffer: io.BytesIO):
        self.writer = pd.ExcelWriter(buffer, engine='xlsxwriter')
        self.workbook = self.writer.book
        self.formats = ExcelReportStyle.get_formats(self.workbook)

    def write_header(self, worksheet, event_name: str, now: Optional[datetime] = None):
        worksheet.set_row(0, 30)
        worksheet.merge_range('A1:D1', 'Seating Map Report', self.formats['title'])
        worksheet.write('A2', 'Event:', self.formats['subtitle'])
        worksheet.write('B2', event_name)
        worksheet.write('A3', 'Report Date:', self.formats['subtitle'])
        worksheet.write('B3', (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S"))

    def write_frame(self, df: pd.DataFrame, sheet_name: str, startrow: int = 0):
        """Writes `df` with themed header cells at `startrow`."""
        df.to_excel(self.writer, sheet_name=sheet_name, startrow=startrow + 1, header=False, index=False)
        worksheet = self.writer.sheets[sheet_name]
        for col_num, value in enumerate(df.columns.values):
            worksheet.write(startrow, col_num, value, self.formats['header'])
        return worksheet

    def close(self):
        self.writer.close()

# ==============================================================================
# --- Data Preparation ---
# ==============================================================================

def tables_dataframe(scene: Scene) -> pd.DataFrame:
    """One row per table, sorted by number with unnumbered tables last."""
    rows = []
    for t in scene.tables:
        w, h = t.size
        rows.append({
            'Number': t.number,
            'Type': TABLE_LABELS[t.type],
            'Seats': t.seats,
            'Orientation': t.orientation.value,
            'Grid X': t.grid_x,
            'Grid Y': t.grid_y,
            'Width': w,
            'Height': h,
            'Id': t.id,
        })
    df = pd.DataFrame(rows, columns=TABLE_COLUMNS)
    if not df.empty:
        df = df.sort_values(by='Number', na_position='last', kind='stable').reset_index(drop=True)
    return df

def zones_dataframe(scene: Scene) -> pd.DataFrame:
    """Zones followed by labels; labels report a 1x1 footprint."""
    rows = [
        {'Kind': 'Zone', 'Name': z.name, 'Grid X': z.grid_x, 'Grid Y': z.grid_y,
         'Width': z.width_cells, 'Height': z.height_cells, 'Id': z.id}
        for z in scene.zones
    ]
    rows.extend(
        {'Kind': 'Label', 'Name': l.text, 'Grid X': l.grid_x, 'Grid Y': l.grid_y,
         'Width': 1, 'Height': 1, 'Id': l.id}
        for l in scene.labels
    )
    return pd.DataFrame(rows, columns=ZONE_COLUMNS)

def calculate_seat_summary(scene: Scene) -> pd.DataFrame:
    """Table count and seat capacity per table type, plus a total row."""
    df = tables_dataframe(scene)
    summary = []
    for table_type in TableType:
        label = TABLE_LABELS[table_type]
        subset = df[df['Type'] == label]
        summary.append({'Type': label, 'Tables': len(subset), 'Seats': int(subset['Seats'].sum())})
    summary.append({'Type': 'Total', 'Tables': len(df), 'Seats': int(df['Seats'].sum())})
    return pd.DataFrame(summary, columns=['Type', 'Tables', 'Seats'])

# ==============================================================================
# --- Report Generation Logic ---
# ==============================================================================

def _create_summary_sheet(report: ReportWriter, scene: Scene, event_name: str):
    sheet_name = 'Summary'
    worksheet = report.workbook.add_worksheet(sheet_name)
    report.write_header(worksheet, event_name)

    param_df = pd.DataFrame({
        'Parameter': ['Grid Columns', 'Grid Rows', 'Zones', 'Labels', 'Next Table Number'],
        'Value': [scene.grid_cols, scene.grid_rows, len(scene.zones), len(scene.labels), scene.table_counter],
    })
    param_start_row = 5
    report.write_frame(param_df, sheet_name, startrow=param_start_row)

    summary_start_row = param_start_row + len(param_df) + 3
    worksheet.merge_range(summary_start_row - 1, 0, summary_start_row - 1, 2, 'Seat Summary', report.formats['subtitle'])
    summary_df = calculate_seat_summary(scene)
    report.write_frame(summary_df, sheet_name, startrow=summary_start_row)

    total_row = summary_start_row + len(summary_df)
    for col_num, value in enumerate(summary_df.iloc[-1].tolist()):
        worksheet.write(total_row, col_num, value, report.formats['total'])

    chart = report.workbook.add_chart({'type': 'column'})
    chart.add_series({
        'name': 'Seats by Table Type',
        'categories': [sheet_name, summary_start_row + 1, 0, total_row - 1, 0],
        'values': [sheet_name, summary_start_row + 1, 2, total_row - 1, 2],
        'data_labels': {'value': True},
    })
    chart.set_title({'name': 'Seats by Table Type'})
    chart.set_legend({'position': 'none'})
    chart.set_style(10)
    worksheet.insert_chart('E2', chart)
    worksheet.autofit()

def _create_tables_sheet(report: ReportWriter, scene: Scene):
    worksheet = report.write_frame(tables_dataframe(scene), 'Tables')
    worksheet.freeze_panes(1, 0)
    worksheet.autofit()

def _create_zones_sheet(report: ReportWriter, scene: Scene):
    worksheet = report.write_frame(zones_dataframe(scene), 'Zones & Labels')
    worksheet.autofit()

# ==============================================================================
# --- Public API Function ---
# ==============================================================================

def generate_excel_report(scene: Scene, event_name: str) -> bytes:
    output_buffer = io.BytesIO()
    report = ReportWriter(output_buffer)
    logger.info("Generating seating report for '%s' (%d tables)", event_name, len(scene.tables))
    _create_summary_sheet(report, scene, event_name)
    _create_tables_sheet(report, scene)
    _create_zones_sheet(report, scene)
    report.close()
    return output_buffer.getvalue()

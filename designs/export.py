"""
export.py -- Renders design submissions as an Excel workbook or CSV.

Both formats share one column layout (_COLUMNS) and one row builder
(_row_values) so the spreadsheet and the CSV never drift apart.

Formula injection (CWE-1236): customers control free-text fields such as
marking and side-stone descriptions. A cell starting with =, +, - or @ is
evaluated as a formula by spreadsheet applications -- and openpyxl itself
stores any string starting with "=" as a formula. _sanitize_cell() prefixes
such values with a tab so they are kept as text.
"""

import csv
import io
from datetime import date, datetime
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from designs.models import Design

SHEET_TITLE = "Jewelry Designs"

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv"

# (header, column width in characters)
_COLUMNS: list[tuple[str, int]] = [
    ("Design #", 16),
    ("Style", 15),
    ("Gold Karat", 12),
    ("Gold Weight (g)", 16),
    ("Stone Type", 12),
    ("Diamond Shape", 15),
    ("Carat Weight", 13),
    ("Clarity", 10),
    ("Side Stones", 36),
    ("Marking", 24),
    ("Logo File", 22),
    ("Media File", 22),
    ("Submitted By", 28),
    ("Date Created", 14),
]

HEADERS = [name for name, _ in _COLUMNS]

_FORMULA_PREFIXES = ("=", "+", "-", "@")


def _sanitize_cell(value: str) -> str:
    if value and value.startswith(_FORMULA_PREFIXES):
        return "\t" + value
    return value


def _format_date(iso: str) -> str:
    if not iso:
        return ""
    try:
        return datetime.fromisoformat(iso).date().isoformat()
    except ValueError:
        return iso[:10]


def _side_stones_text(design: Design) -> str:
    """One line per stone set: 'Round 0.25ct (halo)' joined with '; '."""
    parts = []
    for stone in design.side_stones:
        text = " ".join(p for p in (stone.shape, stone.weight) if p)
        if stone.description:
            text = f"{text} ({stone.description})" if text else stone.description
        if text:
            parts.append(text)
    return "; ".join(parts)


def _row_values(design: Design, owners: dict[int, str]) -> list[str]:
    values = [
        design.design_number,
        design.style,
        design.gold_karat,
        design.approx_gold_weight,
        design.stone_type,
        design.diamond_shape,
        design.carat_weight,
        design.clarity,
        _side_stones_text(design),
        design.marking,
        design.logo_file_name or "N/A",
        design.media_file_name or "N/A",
        owners.get(design.user_id, ""),
        _format_date(design.created_at),
    ]
    return [_sanitize_cell(v or "") for v in values]


# ---------------------------------------------------------------------------
# Excel export
# ---------------------------------------------------------------------------


def to_xlsx(designs: list[Design], owners: Optional[dict[int, str]] = None) -> bytes:
    """Render designs as an .xlsx workbook and return the file bytes.

    owners maps user_id -> email for the "Submitted By" column.
    """
    owners = owners or {}
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append(HEADERS)
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="1F2937", end_color="1F2937", fill_type="solid")
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(vertical="center")

    for design in designs:
        ws.append(_row_values(design, owners))

    for idx, (_, width) in enumerate(_COLUMNS, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width
    ws.freeze_panes = "A2"

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def to_csv(designs: list[Design], owners: Optional[dict[int, str]] = None) -> str:
    """Render designs as CSV with the same columns as to_xlsx()."""
    owners = owners or {}
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(HEADERS)
    for design in designs:
        writer.writerow(_row_values(design, owners))
    return buf.getvalue()


def export_filename(fmt: str, on: Optional[date] = None) -> str:
    """Return the download name, e.g. jewelry-designs-2024-05-01.xlsx."""
    on = on or date.today()
    return f"jewelry-designs-{on.isoformat()}.{fmt}"

"""
tests/test_export.py -- Tests for designs/export.py (xlsx and CSV rendering).

Formula injection (CWE-1236): marking and side-stone descriptions are
customer-controlled. A value starting with =, +, - or @ must come out of
both formats prefixed with a tab so spreadsheet applications treat it as
text.
"""

import csv
import io
from datetime import date

import pytest
from openpyxl import load_workbook

from designs.export import HEADERS, SHEET_TITLE, export_filename, to_csv, to_xlsx
from designs.models import Design, SideStone

# ---------------------------------------------------------------------------
# Test data helper
# ---------------------------------------------------------------------------


def _make_design(marking: str = "HK", **kw) -> Design:
    fields = dict(
        id=1,
        user_id=7,
        design_number="DN-2001",
        style="Pendant",
        gold_karat="22K",
        approx_gold_weight="6.8",
        stone_type="Emerald",
        diamond_shape="Cushion",
        carat_weight="2.1",
        clarity="VVS2",
        side_stones=[
            SideStone(id="a", description="halo", shape="Round", weight="0.3ct"),
            SideStone(id="b", shape="Baguette", weight="0.1ct"),
        ],
        marking=marking,
        logo_file_name="logo.png",
        created_at="2024-05-01T09:30:00+00:00",
    )
    fields.update(kw)
    return Design(**fields)


def _csv_rows(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------


class TestXlsx:
    def test_header_and_row(self) -> None:
        data = to_xlsx([_make_design()], owners={7: "buyer@jewelers.io"})
        ws = load_workbook(io.BytesIO(data)).active
        assert ws.title == SHEET_TITLE
        assert [c.value for c in ws[1]] == HEADERS
        row = {h: c.value for h, c in zip(HEADERS, ws[2])}
        assert row["Design #"] == "DN-2001"
        assert row["Gold Karat"] == "22K"
        assert row["Side Stones"] == "Round 0.3ct (halo); Baguette 0.1ct"
        assert row["Logo File"] == "logo.png"
        assert row["Media File"] == "N/A"
        assert row["Submitted By"] == "buyer@jewelers.io"
        assert row["Date Created"] == "2024-05-01"

    def test_header_styling(self) -> None:
        ws = load_workbook(io.BytesIO(to_xlsx([_make_design()]))).active
        assert ws["A1"].font.bold is True
        assert ws.freeze_panes == "A2"

    def test_one_row_per_design(self) -> None:
        designs = [_make_design(id=i, design_number=f"DN-{i}") for i in range(1, 4)]
        ws = load_workbook(io.BytesIO(to_xlsx(designs))).active
        assert ws.max_row == 4
        assert [ws.cell(row=r, column=1).value for r in range(2, 5)] == ["DN-1", "DN-2", "DN-3"]

    def test_formula_is_stored_as_text(self) -> None:
        ws = load_workbook(io.BytesIO(to_xlsx([_make_design(marking="=SUM(A1:A9)")]))).active
        cell = ws.cell(row=2, column=HEADERS.index("Marking") + 1)
        assert cell.data_type == "s"
        assert cell.value == "\t=SUM(A1:A9)"


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


class TestCsv:
    def test_same_columns_as_xlsx(self) -> None:
        rows = _csv_rows(to_csv([_make_design()], owners={7: "buyer@jewelers.io"}))
        assert rows[0] == HEADERS
        assert rows[1][0] == "DN-2001"
        assert rows[1][HEADERS.index("Submitted By")] == "buyer@jewelers.io"

    def test_unknown_owner_is_blank(self) -> None:
        rows = _csv_rows(to_csv([_make_design()]))
        assert rows[1][HEADERS.index("Submitted By")] == ""

    @pytest.mark.parametrize("payload", ["=CMD|'/C calc'!A0", "+1+1", "-2+3", "@SUM(A1)"])
    def test_dangerous_prefixes_neutralized(self, payload: str) -> None:
        rows = _csv_rows(to_csv([_make_design(marking=payload)]))
        assert rows[1][HEADERS.index("Marking")] == "\t" + payload

    def test_side_stone_description_sanitized(self) -> None:
        design = _make_design(side_stones=[SideStone(id="x", description="=HYPERLINK(\"http://evil\")")])
        rows = _csv_rows(to_csv([design]))
        assert rows[1][HEADERS.index("Side Stones")].startswith("\t=")

    def test_safe_value_unchanged(self) -> None:
        rows = _csv_rows(to_csv([_make_design(marking="HK 750")]))
        assert rows[1][HEADERS.index("Marking")] == "HK 750"

    def test_empty_list_has_header_only(self) -> None:
        assert _csv_rows(to_csv([])) == [HEADERS]


def test_export_filename() -> None:
    assert export_filename("xlsx", on=date(2024, 5, 1)) == "jewelry-designs-2024-05-01.xlsx"
    assert export_filename("csv", on=date(2024, 12, 31)) == "jewelry-designs-2024-12-31.csv"

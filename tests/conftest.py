# Shared pytest fixtures: gradebook grids and in-memory workbooks
from __future__ import annotations
from io import BytesIO
from typing import Dict, List

import pytest
from openpyxl import Workbook

from gradebook.models import CellValue, SheetRecordSet, StudentRecord

HEADER = ["STT", "Họ và tên", "ĐĐGTX", "", "", "ĐĐGGK", "ĐĐGCK", "ĐTBMHK1"]
SUB_HEADER = ["", "", "1", "2", "3", "", "", ""]


def make_grid(rows: List[List[str]], title_rows: int = 1) -> List[List[str]]:
    """Template grid: title rows, header, ĐĐGTX sub-header, then data rows."""
    titles = [["TRƯỜNG THPT", "", "", "", "", "", "", ""] for _ in range(title_rows)]
    return titles + [list(HEADER), list(SUB_HEADER)] + [list(r) for r in rows]


def xlsx_bytes(sheets: Dict[str, List[list]]) -> bytes:
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append([None if v == "" else v for v in row])
    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


def student(name: str, tx=(), gk="", ck="", tb="") -> StudentRecord:
    return StudentRecord(
        name=name,
        continuous_scores=tuple(CellValue.parse(str(v)) for v in tx),
        midterm_score=CellValue.parse(str(gk)),
        final_score=CellValue.parse(str(ck)),
        period_average=CellValue.parse(str(tb)),
    )


def sheet(name: str, *students: StudentRecord) -> SheetRecordSet:
    return SheetRecordSet(sheet_name=name, students=tuple(students))


@pytest.fixture()
def class_grid() -> List[List[str]]:
    return make_grid([
        ["1", "Nguyễn Văn An", "8", "7.5", "", "8", "9", "8.3"],
        ["2", "Trần Thị Bình", "6", "vắng", "7", "7", "6.5", "6.8"],
        ["", "", "", "", "", "", "", ""],
        ["3", "  Đỗ Chí  ", "9", "9", "9", "", "", ""],
    ])


@pytest.fixture()
def workbook_two_classes() -> bytes:
    ok = make_grid([
        ["1", "Nguyễn Văn An", 8, 7.5, "", 8, 9, 8.3],
        ["2", "Trần Thị Bình", 6, 7, 7, 7, 6.5, 6.8],
    ])
    bad = [["Ghi chú"], ["Không phải sổ điểm"]]
    return xlsx_bytes({"10A": ok, "Hướng dẫn": bad, "10B": ok})

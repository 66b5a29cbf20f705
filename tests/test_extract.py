from __future__ import annotations
from io import BytesIO

import pytest
from openpyxl import Workbook

from gradebook.errors import DecodeError, HeaderNotFoundError, NoReadableSheetError
from gradebook.extract import extract_file, extract_sheet
from gradebook.ingest import cell_text, decode_spreadsheet
from gradebook.models import CellValue
from conftest import make_grid, xlsx_bytes


def test_extract_sheet_rows_in_order(class_grid):
    rs = extract_sheet(class_grid, "10A")
    assert rs.sheet_name == "10A"
    assert rs.names == ["Nguyễn Văn An", "Trần Thị Bình", "Đỗ Chí"]


def test_extract_sheet_coerces_values(class_grid):
    an, binh, chi = extract_sheet(class_grid, "10A").students
    assert an.continuous_scores == (CellValue.of_number(8), CellValue.of_number(7.5), CellValue.empty())
    assert an.midterm_score == CellValue.of_number(8)
    assert an.period_average == CellValue.of_number(8.3)
    assert binh.continuous_scores[1] == CellValue.of_text("vắng")
    assert chi.midterm_score.is_empty
    assert chi.final_score.is_empty


def test_short_rows_read_as_empty():
    grid = make_grid([["1", "An", "8"]])
    rec = extract_sheet(grid, "s").students[0]
    assert rec.continuous_scores == (CellValue.of_number(8), CellValue.empty(), CellValue.empty())
    assert rec.period_average.is_empty


def test_missing_optional_columns_give_empty_values():
    grid = [["STT", "Họ tên"], ["", ""], ["1", "An"]]
    rec = extract_sheet(grid, "s").students[0]
    assert rec.continuous_scores == ()
    assert rec.midterm_score.is_empty


def test_header_not_found():
    grid = [["x"] for _ in range(10)]
    with pytest.raises(HeaderNotFoundError):
        extract_sheet(grid, "Bìa")


def test_extract_file_skips_unreadable_sheet(workbook_two_classes):
    fr = extract_file(workbook_two_classes, "diem_hk1.xlsx")
    assert fr.file_label == "diem_hk1.xlsx"
    assert fr.sheet_names == ["10A", "10B"]
    assert len(fr.warnings) == 1
    assert "Hướng dẫn" in fr.warnings[0]
    an = fr.sheets[0].students[0]
    assert an.continuous_scores[:2] == (CellValue.of_number(8), CellValue.of_number(7.5))
    assert an.final_score == CellValue.of_number(9)


def test_extract_file_without_readable_sheet():
    data = xlsx_bytes({"Bìa": [["Sổ điểm"]], "Ghi chú": [["..."]]})
    with pytest.raises(NoReadableSheetError):
        extract_file(data, "rong.xlsx")


def test_extract_file_corrupt_bytes():
    with pytest.raises(DecodeError):
        extract_file(b"not a workbook", "hong.xlsx")


def test_decode_rejects_unknown_extension():
    with pytest.raises(DecodeError):
        decode_spreadsheet(b"abc", "diem.pdf")


def _merged_workbook() -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "10A"
    ws.append(["STT", "Họ và tên", "ĐĐGTX", None, None, "ĐĐGGK"])
    ws.append([None, None, 1, 2, 3, None])
    ws.append([1, "An", "Miễn", None, None, 7])
    ws.append(["Giáo viên bộ môn ký tên", None, None, None, None, None])
    ws.merge_cells("C1:E1")
    ws.merge_cells("C3:E3")
    ws.merge_cells("A4:F4")
    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


def test_decode_keeps_merged_cells_raw():
    grids = decode_spreadsheet(_merged_workbook(), "lop.xlsx")
    assert list(grids) == ["10A"]
    grid = grids["10A"]
    assert grid[0] == ["STT", "Họ và tên", "ĐĐGTX", "", "", "ĐĐGGK"]
    assert grid[1] == ["", "", "1", "2", "3", ""]
    assert grid[2] == ["1", "An", "Miễn", "", "", "7"]
    assert grid[3] == ["Giáo viên bộ môn ký tên", "", "", "", "", ""]


def test_merged_footer_and_score_cells_do_not_leak():
    fr = extract_file(_merged_workbook(), "lop.xlsx")
    rs = fr.sheets[0]
    assert rs.names == ["An"]
    assert rs.students[0].continuous_scores == (CellValue.of_text("Miễn"), CellValue.empty(), CellValue.empty())
    assert rs.students[0].midterm_score == CellValue.of_number(7)


def test_decode_csv():
    text = "STT,Họ tên,ĐĐGGK\n,,\n1,An,8\n2,Bình,vắng\n"
    grids = decode_spreadsheet(text.encode("utf-8"), "lop.csv")
    rs = extract_sheet(grids["CSV"], "CSV")
    assert rs.names == ["An", "Bình"]
    assert rs.students[1].midterm_score == CellValue.of_text("vắng")


def test_decode_csv_with_title_row():
    text = "BẢNG ĐIỂM LỚP 10A\nSTT,Họ tên,ĐĐGGK\n,,\n1,An,8\n"
    grid = decode_spreadsheet(text.encode("utf-8"), "lop.csv")["CSV"]
    assert grid[0] == ["BẢNG ĐIỂM LỚP 10A", "", ""]
    assert grid[1] == ["STT", "Họ tên", "ĐĐGGK"]
    fr = extract_file(text.encode("utf-8"), "lop.csv")
    assert fr.sheets[0].names == ["An"]
    assert fr.sheets[0].students[0].midterm_score == CellValue.of_number(8)


def test_decode_csv_semicolon():
    text = "Sổ điểm HK1\nSTT;Họ tên;ĐĐGGK\n;;\n1;Bình;6.5\n"
    rs = extract_file(text.encode("utf-8"), "lop.csv").sheets[0]
    assert rs.names == ["Bình"]
    assert rs.students[0].midterm_score == CellValue.of_number(6.5)


@pytest.mark.parametrize("v, expected", [
    (None, ""),
    (1.0, "1"),
    (7.25, "7.25"),
    (float("nan"), ""),
    (3, "3"),
    (True, "TRUE"),
])
def test_cell_text(v, expected):
    assert cell_text(v) == expected

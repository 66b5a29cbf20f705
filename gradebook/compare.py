from __future__ import annotations
from typing import Callable, Dict, Iterable, List, Tuple

from loguru import logger

from .models import (
    AVERAGE_LABEL,
    FINAL_LABEL,
    MIDTERM_LABEL,
    CellValue,
    FileComparison,
    FileRecordSet,
    ScoreDifference,
    SheetComparison,
    SheetRecordSet,
    StudentRecord,
    continuous_label,
)
from .utils import norm_text

# (nhãn, cách lấy giá trị) theo thứ tự báo cáo sau các cột ĐĐGTX
SINGLE_COLUMNS: List[Tuple[str, Callable[[StudentRecord], CellValue]]] = [
    (MIDTERM_LABEL, lambda s: s.midterm_score),
    (FINAL_LABEL, lambda s: s.final_score),
    (AVERAGE_LABEL, lambda s: s.period_average),
]


def values_equal(a: CellValue, b: CellValue) -> bool:
    """
    1) cả hai trống -> bằng nhau
    2) cả hai đọc được thành số -> so sánh số chính xác (không epsilon)
    3) còn lại -> so sánh chuỗi đã strip
    """
    if a.is_empty and b.is_empty:
        return True
    x, y = a.as_number(), b.as_number()
    if x is not None and y is not None:
        return x == y
    return str(a).strip() == str(b).strip()


def _index_by_name(students: Iterable[StudentRecord]) -> Dict[str, StudentRecord]:
    # trùng tên sau chuẩn hoá: bản ghi sau ghi đè bản ghi trước
    return {norm_text(s.name): s for s in students}


def compare_sheets(sheet_a: SheetRecordSet, sheet_b: SheetRecordSet,
                   selected_columns: Iterable[str]) -> SheetComparison:
    selected = set(selected_columns)
    map_a = _index_by_name(sheet_a.students)
    map_b = _index_by_name(sheet_b.students)

    missing_in_a = tuple(s.name for s in sheet_b.students if norm_text(s.name) not in map_a)
    missing_in_b = tuple(s.name for s in sheet_a.students if norm_text(s.name) not in map_b)

    differences: List[ScoreDifference] = []
    for student_a in sheet_a.students:
        student_b = map_b.get(norm_text(student_a.name))
        if student_b is None:
            continue

        n_slots = max(len(student_a.continuous_scores), len(student_b.continuous_scores))
        for i in range(n_slots):
            label = continuous_label(i)
            if label not in selected:
                continue
            va, vb = student_a.continuous(i), student_b.continuous(i)
            if not values_equal(va, vb):
                differences.append(ScoreDifference(student_a.name, label, va, vb))

        for label, getter in SINGLE_COLUMNS:
            if label not in selected:
                continue
            va, vb = getter(student_a), getter(student_b)
            if not values_equal(va, vb):
                differences.append(ScoreDifference(student_a.name, label, va, vb))

    return SheetComparison(
        sheet_name=sheet_a.sheet_name,
        differences=tuple(differences),
        missing_in_a=missing_in_a,
        missing_in_b=missing_in_b,
    )


def compare_files(file_a: FileRecordSet, file_b: FileRecordSet,
                  multi_sheet: bool = False,
                  selected_columns: Iterable[str] = ()) -> FileComparison:
    """
    multi_sheet=False: sheet đầu của A so với sheet đầu của B, bất kể tên.
    multi_sheet=True: chỉ so các sheet cùng tên; sheet chỉ có ở một file bị bỏ qua.
    """
    selected = frozenset(selected_columns)
    results: List[SheetComparison] = []

    if multi_sheet:
        sheets_b = {s.sheet_name: s for s in file_b.sheets}
        for sheet_a in file_a.sheets:
            sheet_b = sheets_b.get(sheet_a.sheet_name)
            if sheet_b is not None:
                results.append(compare_sheets(sheet_a, sheet_b, selected))
    elif file_a.sheets and file_b.sheets:
        results.append(compare_sheets(file_a.sheets[0], file_b.sheets[0], selected))

    out = FileComparison(sheets=tuple(results))
    logger.info(
        "Đối chiếu {} / {}: {} sheet, {} khác biệt, {} chỉ có ở B, {} chỉ có ở A",
        file_a.file_label, file_b.file_label, len(results),
        out.total_differences, out.total_missing_in_a, out.total_missing_in_b,
    )
    return out

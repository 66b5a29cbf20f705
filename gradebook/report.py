from __future__ import annotations
from typing import List

import pandas as pd

from .models import CellValue, FileComparison, SheetComparison

EMPTY_MARK = "(trống)"
DIFF_COLUMNS = ["Học sinh", "Loại điểm", "File 1", "File 2"]


def display_value(v: CellValue) -> str:
    return EMPTY_MARK if v.is_empty else str(v)


def differences_frame(sheet: SheetComparison) -> pd.DataFrame:
    rows = [
        {
            "Học sinh": d.student_name,
            "Loại điểm": d.column_label,
            "File 1": display_value(d.value_a),
            "File 2": display_value(d.value_b),
        }
        for d in sheet.differences
    ]
    return pd.DataFrame(rows, columns=DIFF_COLUMNS)


def summary_frame(result: FileComparison) -> pd.DataFrame:
    # một dòng mỗi sheet + dòng tổng
    rows: List[dict] = []
    for s in result.sheets:
        rows.append({
            "Sheet": s.sheet_name,
            "Sự khác biệt": len(s.differences),
            "Chỉ có trong file 2": len(s.missing_in_a),
            "Chỉ có trong file 1": len(s.missing_in_b),
        })
    rows.append({
        "Sheet": "Tổng",
        "Sự khác biệt": result.total_differences,
        "Chỉ có trong file 2": result.total_missing_in_a,
        "Chỉ có trong file 1": result.total_missing_in_b,
    })
    return pd.DataFrame(rows)


def missing_frame(sheet: SheetComparison) -> pd.DataFrame:
    """Two-column table of students found in only one file, padded with blanks."""
    n = max(len(sheet.missing_in_a), len(sheet.missing_in_b))
    only_2 = list(sheet.missing_in_a) + [""] * (n - len(sheet.missing_in_a))
    only_1 = list(sheet.missing_in_b) + [""] * (n - len(sheet.missing_in_b))
    return pd.DataFrame({"Chỉ có trong file 1": only_1, "Chỉ có trong file 2": only_2})

"""
Đối chiếu hai phiên bản sổ điểm (Excel/CSV):
- giải mã bảng tính thành lưới ô
- dò hàng tiêu đề, đọc điểm từng học sinh
- so khớp tên đã chuẩn hoá, so sánh từng cột điểm
- bảng kết quả cho giao diện
"""
from .errors import (
    ComparisonPreconditionError,
    DecodeError,
    GradebookError,
    NoReadableSheetError,
    SheetStructureError,
)
from .models import ALL_COLUMNS, CellValue, FileComparison, FileRecordSet
from .extract import extract_file, extract_sheet
from .compare import compare_files, compare_sheets, values_equal
from .session import ComparisonSession

__all__ = [
    "ALL_COLUMNS",
    "CellValue",
    "FileComparison",
    "FileRecordSet",
    "extract_file",
    "extract_sheet",
    "compare_files",
    "compare_sheets",
    "values_equal",
    "ComparisonSession",
    "GradebookError",
    "DecodeError",
    "SheetStructureError",
    "NoReadableSheetError",
    "ComparisonPreconditionError",
]

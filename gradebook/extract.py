from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from .errors import NoReadableSheetError, SheetStructureError
from .header_detect import ColumnLayout, detect_layout
from .ingest import Grid, decode_spreadsheet
from .models import EMPTY, CellValue, FileRecordSet, SheetRecordSet, StudentRecord
from .utils import load_rules


def _cell(row: Sequence[str], col: Optional[int]) -> CellValue:
    if col is None:
        return EMPTY
    raw = row[col] if col < len(row) else ""
    return CellValue.parse(raw)


def _row_to_record(row: Sequence[str], layout: ColumnLayout) -> Optional[StudentRecord]:
    name = (row[layout.name] if layout.name < len(row) else "").strip()
    if not name:
        # hàng không có tên bị bỏ hẳn, không tạo bản ghi trống
        return None
    return StudentRecord(
        name=name,
        continuous_scores=tuple(_cell(row, c) for c in layout.slots),
        midterm_score=_cell(row, layout.midterm),
        final_score=_cell(row, layout.final),
        period_average=_cell(row, layout.average),
    )


def extract_sheet(grid: Grid, sheet_name: str, rules: Optional[Dict[str, Any]] = None) -> SheetRecordSet:
    """
    Lưới ô của một sheet -> danh sách học sinh theo đúng thứ tự hàng.

    Raises SheetStructureError (HeaderNotFoundError, SubHeaderMissingError,
    NameColumnNotFoundError) when the sheet does not follow the template.
    """
    layout = detect_layout(grid, sheet_name, rules)
    logger.debug(
        "Sheet {}: tiêu đề ở hàng {}, cột tên {}, ĐĐGTX {}, GK {}, CK {}, TB {}",
        sheet_name, layout.header_row, layout.name, layout.slots,
        layout.midterm, layout.final, layout.average,
    )

    students: List[StudentRecord] = []
    for row in grid[layout.data_start:]:
        rec = _row_to_record(row, layout)
        if rec is not None:
            students.append(rec)

    logger.debug("Sheet {}: {} học sinh", sheet_name, len(students))
    return SheetRecordSet(sheet_name=sheet_name, students=tuple(students))


def extract_file(data: bytes, display_name: str, rules: Optional[Dict[str, Any]] = None) -> FileRecordSet:
    """
    Đọc toàn bộ workbook. Sheet sai mẫu bị bỏ qua (ghi cảnh báo);
    nếu không còn sheet nào thì báo NoReadableSheetError.
    DecodeError từ bước giải mã được ném thẳng cho nơi gọi.
    """
    if rules is None:
        rules = load_rules()
    grids = decode_spreadsheet(data, display_name)

    sheets: List[SheetRecordSet] = []
    warnings: List[str] = []
    for sheet_name, grid in grids.items():
        try:
            sheets.append(extract_sheet(grid, sheet_name, rules))
        except SheetStructureError as e:
            logger.warning("Không thể đọc sheet \"{}\" của {}: {}", sheet_name, display_name, e)
            warnings.append(str(e))

    if not sheets:
        raise NoReadableSheetError("Không tìm thấy sheet nào có thể đọc được")

    logger.info("Đã đọc {} sheet từ {}", len(sheets), display_name)
    return FileRecordSet(file_label=display_name, sheets=tuple(sheets), warnings=tuple(warnings))

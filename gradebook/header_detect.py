from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .errors import HeaderNotFoundError, NameColumnNotFoundError, SubHeaderMissingError
from .utils import norm_header

DEFAULT_SCAN_ROWS = 7
DEFAULT_SLOT_RANGE = (1, 5)
NAME_PATTERNS = ["hoten", "hovaten"]
MIDTERM_PATTERNS = ["ddggk"]
FINAL_PATTERNS = ["ddgck"]
AVERAGE_PATTERNS = ["dtbmhk1", "tbmhk1"]


@dataclass(frozen=True)
class ColumnLayout:
    """Column indices resolved for one sheet. Only `name` is mandatory."""
    header_row: int
    sub_header_row: int
    name: int
    midterm: Optional[int] = None
    final: Optional[int] = None
    average: Optional[int] = None
    slots: List[int] = field(default_factory=list)  # cột ĐĐGTX, trái sang phải

    @property
    def data_start(self) -> int:
        return self.sub_header_row + 1


def _row_has_pattern(row: Sequence[str], patterns: Sequence[str]) -> bool:
    for cell in row:
        h = norm_header(cell)
        if h and any(p in h for p in patterns):
            return True
    return False


def find_header_row(grid: Sequence[Sequence[str]], sheet_name: str,
                    patterns: Sequence[str] = NAME_PATTERNS,
                    max_scan_rows: int = DEFAULT_SCAN_ROWS) -> int:
    """
    Dò tuần tự các hàng đầu (tối đa max_scan_rows), trả về hàng đầu tiên
    có ô chứa "họ tên"/"họ và tên". Vị trí hàng tiêu đề thay đổi theo file.
    """
    n = min(max_scan_rows, len(grid))
    for idx in range(n):
        if _row_has_pattern(grid[idx], patterns):
            return idx
    raise HeaderNotFoundError(sheet_name, f'Không tìm thấy hàng tiêu đề trong sheet "{sheet_name}"')


def find_column(headers: Sequence[str], patterns: Sequence[str]) -> Optional[int]:
    # khớp nguyên nhãn đã chuẩn hoá; mẫu theo thứ tự ưu tiên, mỗi mẫu lấy cột trái nhất
    normed = [norm_header(h) for h in headers]
    for p in patterns:
        for idx, h in enumerate(normed):
            if h == p:
                return idx
    return None


def _parse_slot(text: str) -> Optional[int]:
    t = text.strip()
    try:
        return int(t)
    except ValueError:
        return None


def slot_columns(sub_headers: Sequence[str], lo: int = 1, hi: int = 5) -> List[int]:
    """
    Cột nào ở hàng phụ có số nguyên trong [lo, hi] là một cột ĐĐGTX.
    Chỉ số slot = thứ tự cột, không phải con số ghi trên ô.
    """
    out = []
    for col, cell in enumerate(sub_headers):
        num = _parse_slot(cell)
        if num is not None and lo <= num <= hi:
            out.append(col)
    return out


def detect_layout(grid: Sequence[Sequence[str]], sheet_name: str,
                  rules: Optional[Dict[str, Any]] = None) -> ColumnLayout:
    rules = rules or {}
    name_patterns = rules.get("name_patterns", NAME_PATTERNS)
    header_idx = find_header_row(
        grid, sheet_name,
        patterns=name_patterns,
        max_scan_rows=int(rules.get("header_scan_rows", DEFAULT_SCAN_ROWS)),
    )

    # hàng ĐĐGTX 1..5 nằm ngay dưới hàng tiêu đề
    sub_idx = header_idx + 1
    if sub_idx >= len(grid):
        raise SubHeaderMissingError(sheet_name, f'Không tìm thấy hàng ĐĐGTX trong sheet "{sheet_name}"')

    headers = grid[header_idx]
    name_col = find_column(headers, name_patterns)
    if name_col is None:
        raise NameColumnNotFoundError(sheet_name, f'Không tìm thấy cột tên học sinh trong sheet "{sheet_name}"')

    lo, hi = rules.get("slot_range", DEFAULT_SLOT_RANGE)
    return ColumnLayout(
        header_row=header_idx,
        sub_header_row=sub_idx,
        name=name_col,
        midterm=find_column(headers, rules.get("midterm_patterns", MIDTERM_PATTERNS)),
        final=find_column(headers, rules.get("final_patterns", FINAL_PATTERNS)),
        average=find_column(headers, rules.get("average_patterns", AVERAGE_PATTERNS)),
        slots=slot_columns(grid[sub_idx], int(lo), int(hi)),
    )

from __future__ import annotations
import csv
import datetime as dt
from io import BytesIO, StringIO
from typing import Any, Dict, List

import pandas as pd
from loguru import logger
from openpyxl import load_workbook

from .errors import DecodeError

Grid = List[List[str]]

EXCEL_EXTS = (".xlsx", ".xlsm")
LEGACY_EXCEL_EXTS = (".xls",)
CSV_EXTS = (".csv",)
SUPPORTED_EXTS = EXCEL_EXTS + LEGACY_EXCEL_EXTS + CSV_EXTS


def cell_text(v: Any) -> str:
    """Render a decoded cell value as the text the extractor works on."""
    if v is None:
        return ""
    if isinstance(v, bool):
        return "TRUE" if v else "FALSE"
    if isinstance(v, float):
        if v != v:  # NaN từ pandas
            return ""
        # 1.0 -> "1" để hàng ĐĐGTX nhận ra số thứ tự cột
        return str(int(v)) if v.is_integer() else repr(v)
    if isinstance(v, (dt.datetime, dt.date)):
        return v.isoformat()
    return str(v)
# =========================

# Excel: đọc sheet thành ma trận ô thô
# =========================
def _sheet_to_grid(ws) -> Grid:
    # ô gộp: chỉ ô trên-trái có giá trị, các ô còn lại đọc là rỗng
    rows: Grid = []
    for r in range(1, ws.max_row + 1):
        rows.append([cell_text(ws.cell(r, c).value) for c in range(1, ws.max_column + 1)])
    return rows


def _read_xlsx(data: bytes) -> Dict[str, Grid]:
    wb = load_workbook(BytesIO(data), read_only=False, data_only=True)
    try:
        return {ws.title: _sheet_to_grid(ws) for ws in wb.worksheets}
    finally:
        wb.close()


def _frame_to_grid(df: pd.DataFrame) -> Grid:
    return [[cell_text(v) for v in row] for row in df.itertuples(index=False, name=None)]


def _read_xls(data: bytes) -> Dict[str, Grid]:
    # .xls cần xlrd (extra "excel-legacy")
    frames = pd.read_excel(BytesIO(data), sheet_name=None, header=None, dtype=object)
    return {str(name): _frame_to_grid(df) for name, df in frames.items()}
# =========================

# CSV: dò dấu phân cách, đọc thành ma trận
# =========================
CSV_DELIMITERS = [",", ";", "\t", "|"]


def _guess_delimiter(sample_text: str) -> str:
    # chỉ chấp nhận , ; tab |
    try:
        dialect = csv.Sniffer().sniff(sample_text, delimiters="".join(CSV_DELIMITERS))
        if dialect.delimiter:
            return dialect.delimiter
    except csv.Error:
        pass

    # fallback: dấu nào xuất hiện trung bình nhiều nhất mỗi dòng
    lines = [ln for ln in sample_text.splitlines() if ln.strip()][:20]
    if not lines:
        return ","
    scores = {d: sum(ln.count(d) for ln in lines) / len(lines) for d in CSV_DELIMITERS}
    best = max(CSV_DELIMITERS, key=lambda d: scores[d])
    return best if scores[best] > 0 else ","


def _read_csv(data: bytes) -> Dict[str, Grid]:
    # đọc KHÔNG có header để hàng tiêu đề nằm trong lưới như mọi hàng khác
    for enc in ("utf-8-sig", "cp1258", "latin-1"):
        try:
            text = data.decode(enc)
        except UnicodeDecodeError:
            continue
        delim = _guess_delimiter(text[:65536])
        # số cột = dòng dài nhất; dòng tiêu đề ngắn hơn được bù ô rỗng
        width = max((ln.count(delim) for ln in text.splitlines()), default=0) + 1
        df = pd.read_csv(
            StringIO(text),
            header=None,
            names=list(range(width)),
            sep=delim,
            engine="python",
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
        return {"CSV": _frame_to_grid(df)}
    raise DecodeError("Không đọc được file CSV")


def decode_spreadsheet(data: bytes, file_name: str = "") -> Dict[str, Grid]:
    """
    Bytes của bảng tính -> {tên sheet: lưới ô dạng chuỗi}, giữ thứ tự sheet trong workbook.

    Định dạng chọn theo đuôi file; không có đuôi thì coi là xlsx.
    Lỗi giải mã nào cũng được gói thành DecodeError.
    """
    name = (file_name or "").lower()
    if name and not name.endswith(SUPPORTED_EXTS):
        raise DecodeError(f"Định dạng file không được hỗ trợ: {file_name}")
    if not data:
        raise DecodeError(f"File rỗng: {file_name}")

    try:
        if name.endswith(CSV_EXTS):
            grids = _read_csv(data)
        elif name.endswith(LEGACY_EXCEL_EXTS):
            grids = _read_xls(data)
        else:
            grids = _read_xlsx(data)
    except DecodeError:
        raise
    except Exception as e:
        raise DecodeError(f"File bị hỏng hoặc không đọc được: {e}") from e

    logger.debug("Giải mã {}: {} sheet", file_name or "<bytes>", len(grids))
    return grids

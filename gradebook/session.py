from __future__ import annotations
import asyncio
from typing import Any, Dict, Iterable, Optional

from loguru import logger

from .compare import compare_files
from .errors import ComparisonPreconditionError
from .extract import extract_file
from .models import ALL_COLUMNS, FileComparison, FileRecordSet

SLOT_A = "a"
SLOT_B = "b"
SLOTS = (SLOT_A, SLOT_B)


class ComparisonSession:
    """
    Hai ô file (A, B) và kết quả đối chiếu gần nhất.

    Mỗi lần tải lên là một tác vụ async độc lập; tác vụ nào xong sau thì
    ghi đè cả ô của nó. Tải lỗi thì ô đó bị xoá, kết quả cũ giữ nguyên.
    """

    def __init__(self, rules: Optional[Dict[str, Any]] = None):
        self.rules = rules
        self._files: Dict[str, Optional[FileRecordSet]] = {s: None for s in SLOTS}
        self.result: Optional[FileComparison] = None

    def file(self, slot: str) -> Optional[FileRecordSet]:
        return self._files[slot]

    @property
    def ready(self) -> bool:
        return all(self._files[s] is not None for s in SLOTS)

    async def upload(self, slot: str, data: bytes, display_name: str) -> FileRecordSet:
        if slot not in self._files:
            raise KeyError(slot)
        try:
            # giải mã là bước duy nhất có thể treo lâu -> chạy ngoài event loop
            parsed = await asyncio.to_thread(extract_file, data, display_name, self.rules)
        except Exception:
            self._files[slot] = None
            logger.info("Xoá ô {} sau khi đọc {} thất bại", slot, display_name)
            raise
        self._files[slot] = parsed
        logger.info("Ô {} <- {} ({} sheet)", slot, display_name, len(parsed.sheets))
        return parsed

    def compare(self, multi_sheet: bool = False,
                selected_columns: Iterable[str] = ALL_COLUMNS) -> FileComparison:
        file_a, file_b = self._files[SLOT_A], self._files[SLOT_B]
        if file_a is None or file_b is None:
            raise ComparisonPreconditionError("Cần tải lên cả hai file trước khi đối chiếu")
        self.result = compare_files(file_a, file_b, multi_sheet, selected_columns)
        return self.result

    def reset(self) -> None:
        self._files = {s: None for s in SLOTS}
        self.result = None

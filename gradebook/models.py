"""Value objects shared by extraction and reconciliation.

Everything here is frozen: a new upload or a new comparison builds fresh
objects, nothing is updated in place.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

# Nhãn cột cố định (hiển thị cho người dùng và dùng làm khoá chọn cột)
CONTINUOUS_LABELS: Tuple[str, ...] = tuple(f"ĐĐGTX{i}" for i in range(1, 6))
MIDTERM_LABEL = "ĐĐGGK"
FINAL_LABEL = "ĐĐGCK"
AVERAGE_LABEL = "ĐTBMHK1"
ALL_COLUMNS: Tuple[str, ...] = CONTINUOUS_LABELS + (MIDTERM_LABEL, FINAL_LABEL, AVERAGE_LABEL)


def continuous_label(slot_index: int) -> str:
    """Label of a 0-based continuous-assessment slot (0 -> "ĐĐGTX1")."""
    return f"ĐĐGTX{slot_index + 1}"


def parse_number(text: str) -> Optional[float]:
    """Strict float parse of trimmed text; None for anything that is not a finite number."""
    t = text.strip()
    if not t or "_" in t:
        return None
    try:
        x = float(t)
    except ValueError:
        return None
    if not math.isfinite(x):
        return None
    return x


class CellKind(Enum):
    EMPTY = "empty"
    NUMBER = "number"
    TEXT = "text"


@dataclass(frozen=True)
class CellValue:
    """Score cell: a number, an empty cell, or verbatim text such as "vắng"."""
    kind: CellKind
    number: Optional[float] = None
    text: str = ""

    @classmethod
    def empty(cls) -> "CellValue":
        return cls(CellKind.EMPTY)

    @classmethod
    def of_number(cls, x: float) -> "CellValue":
        return cls(CellKind.NUMBER, number=float(x))

    @classmethod
    def of_text(cls, s: str) -> "CellValue":
        return cls(CellKind.TEXT, text=s)

    @classmethod
    def parse(cls, raw: Optional[str]) -> "CellValue":
        """Coerce raw cell text: number if it parses, empty if blank, trimmed text otherwise."""
        t = (raw or "").strip()
        if not t:
            return cls.empty()
        x = parse_number(t)
        if x is not None:
            return cls.of_number(x)
        return cls.of_text(t)

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    def as_number(self) -> Optional[float]:
        if self.kind is CellKind.NUMBER:
            return self.number
        if self.kind is CellKind.TEXT:
            return parse_number(self.text)
        return None

    def __str__(self) -> str:
        if self.kind is CellKind.NUMBER:
            # 8.0 -> "8", 7.25 -> "7.25"
            return str(int(self.number)) if self.number.is_integer() else repr(self.number)
        return self.text


EMPTY = CellValue.empty()


@dataclass(frozen=True)
class StudentRecord:
    name: str
    continuous_scores: Tuple[CellValue, ...] = ()
    midterm_score: CellValue = EMPTY
    final_score: CellValue = EMPTY
    period_average: CellValue = EMPTY

    def continuous(self, slot_index: int) -> CellValue:
        # slot thiếu ở một bên được coi là ô trống
        if slot_index < len(self.continuous_scores):
            return self.continuous_scores[slot_index]
        return EMPTY


@dataclass(frozen=True)
class SheetRecordSet:
    sheet_name: str
    students: Tuple[StudentRecord, ...] = ()

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.students]


@dataclass(frozen=True)
class FileRecordSet:
    file_label: str
    sheets: Tuple[SheetRecordSet, ...] = ()
    warnings: Tuple[str, ...] = ()  # lý do bỏ qua từng sheet

    @property
    def sheet_names(self) -> list[str]:
        return [s.sheet_name for s in self.sheets]


@dataclass(frozen=True)
class ScoreDifference:
    student_name: str  # tên theo file A
    column_label: str
    value_a: CellValue
    value_b: CellValue


@dataclass(frozen=True)
class SheetComparison:
    """Result for one sheet pair.

    missing_in_a: names present in B but absent from A.
    missing_in_b: names present in A but absent from B.
    """
    sheet_name: str
    differences: Tuple[ScoreDifference, ...] = ()
    missing_in_a: Tuple[str, ...] = ()
    missing_in_b: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FileComparison:
    sheets: Tuple[SheetComparison, ...] = ()

    @property
    def total_differences(self) -> int:
        return sum(len(s.differences) for s in self.sheets)

    @property
    def total_missing_in_a(self) -> int:
        return sum(len(s.missing_in_a) for s in self.sheets)

    @property
    def total_missing_in_b(self) -> int:
        return sum(len(s.missing_in_b) for s in self.sheets)

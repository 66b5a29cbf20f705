from __future__ import annotations
import os
import re
import json
import unicodedata
from pathlib import Path
from typing import Any, Dict

from loguru import logger

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_DATA_DIR = BASE_DIR / "data"

RULES_ENV = "GRADEBOOK_RULES"

_COMBINING_RE = re.compile(r"[\u0300-\u036f]")
_WS_RE = re.compile(r"\s+")


def load_json(path: Path, default: Any):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Không đọc được {}: {}", path, e)
        return default


def norm_text(s: Any) -> str:
    """
    Chuẩn hoá chuỗi để so khớp (tên học sinh):
    - lower
    - NFD, bỏ dấu (U+0300..U+036F)
    - đ/Đ -> d/D (nét gạch của đ không phải dấu kết hợp)
    - strip
    """
    if s is None:
        return ""
    s = unicodedata.normalize("NFD", str(s).lower())
    s = _COMBINING_RE.sub("", s)
    s = s.replace("đ", "d").replace("Đ", "D")
    return s.strip()


def norm_header(s: Any) -> str:
    # như norm_text nhưng bỏ hết khoảng trắng bên trong: "Họ và tên" -> "hovaten"
    return _WS_RE.sub("", norm_text(s))


def rules_path() -> Path:
    return DEFAULT_DATA_DIR / "rules.json"


def load_rules() -> Dict[str, Any]:
    """Built-in rules, shallow-merged with the JSON file named by GRADEBOOK_RULES."""
    rules = dict(load_json(rules_path(), {}))
    override = os.environ.get(RULES_ENV)
    if override:
        extra = load_json(Path(override), {})
        if isinstance(extra, dict):
            rules.update(extra)
        else:
            logger.warning("Bỏ qua {}: nội dung không phải object JSON", override)
    return rules

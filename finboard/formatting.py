"""
展示格式化：card / table / list 三种渲染方式共用的值格式与字段标签。
"""

import json
import math
import re
from typing import Any, Dict, List

from finboard.field_path import ARRAY_MARKER, split_path

# (0, CURRENCY_UPPER_BOUND) 区间内的数字按货币显示
CURRENCY_UPPER_BOUND = 1_000_000

_CASE_BOUNDARY = re.compile(r"(?=[A-Z])")
_WORD_START = re.compile(r"\b\w")


def _group_number(value: int | float) -> str:
    """千分位分组，小数最多保留 3 位且去掉末尾的 0。"""
    if isinstance(value, int):
        return f"{value:,}"
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "-∞" if value < 0 else "∞"
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_value(value: Any) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (int, float)):
        if 0 < value < CURRENCY_UPPER_BOUND:
            return f"${value:,.2f}"
        return _group_number(value)
    if isinstance(value, list):
        return f"[{len(value)} items]"
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def field_label(path: str) -> str:
    """
    由路径最后一段生成可读标签。

    "data.changePercent" -> "Change Percent"
    "items[].last_price" -> "Last Price"
    """
    segments = split_path(path)
    last = segments[-1] if segments else ""
    last = last.replace(ARRAY_MARKER, "")
    words = " ".join(part for part in _CASE_BOUNDARY.split(last) if part)
    words = words.replace("_", " ")
    return _WORD_START.sub(lambda m: m.group(0).upper(), words)


def display_rows(record: Dict[str, Any] | None, fields: List[str]) -> List[Dict[str, str]]:
    """按选择顺序生成 {field, label, value} 行，供前端渲染。"""
    if record is None:
        return []
    return [
        {
            "field": field,
            "label": field_label(field),
            "value": format_value(record.get(field)),
        }
        for field in fields
    ]

"""
字段路径：点分隔的 JSON 地址，`[]` 后缀表示取数组的第一个元素。
解析过程是全函数：任何输入都不会抛出异常，未命中时返回空标记 ""。
"""

import json
from typing import Any, Dict, List

EMPTY = ""
ARRAY_MARKER = "[]"
SEPARATOR = "."

# 内部哨兵，用于区分 "路径不存在" 与 JSON null
_MISSING = object()


def split_path(path: str) -> List[str]:
    """拆分路径，跳过空段（前导/末尾/连续的分隔符）。"""
    return [segment for segment in str(path).split(SEPARATOR) if segment]


def join_path(prefix: str, key: str) -> str:
    return f"{prefix}{SEPARATOR}{key}" if prefix else key


def _child(value: Any, key: str) -> Any:
    """空值安全的成员访问，对应 value?.[key]。"""
    if isinstance(value, dict):
        return value.get(key, _MISSING)
    if isinstance(value, list) and key.isascii() and key.isdigit():
        try:
            index = int(key)
        except ValueError:
            # 超过整数位数上限的下标
            return _MISSING
        return value[index] if index < len(value) else _MISSING
    return _MISSING


def _walk(document: Any, path: str) -> Any:
    current = document
    for segment in split_path(path):
        if segment.endswith(ARRAY_MARKER):
            key = segment[: -len(ARRAY_MARKER)]
            if key:
                current = _child(current, key)
                if current is _MISSING:
                    return _MISSING
            # 空数组或非数组保持不变，让后续段自然失败
            if isinstance(current, list) and current:
                current = current[0]
        else:
            current = _child(current, segment)
            if current is _MISSING:
                return _MISSING
    return current


def resolve(document: Any, path: str) -> Any:
    """
    按路径取值，保留原始类型（dict / list / 数字 / None ...）。

    Args:
        document: 已解析的 JSON 文档
        path: 字段路径，如 "data.items[].price"
    Returns:
        命中的值；路径不存在时返回 EMPTY
    """
    value = _walk(document, path)
    return EMPTY if value is _MISSING else value


def to_display(value: Any) -> str:
    """字段选择器中的预览文本：对象/数组/null 序列化为紧凑 JSON。"""
    if value is None or isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def value_at(document: Any, path: str) -> str:
    """resolve + to_display，未命中返回 ""。"""
    value = _walk(document, path)
    if value is _MISSING:
        return EMPTY
    return to_display(value)


def project(document: Any, fields: List[str]) -> Dict[str, Any]:
    """将选中的字段投影为扁平记录，未命中的字段为 EMPTY。"""
    return {field: resolve(document, field) for field in fields}

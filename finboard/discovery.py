"""
Schema 探测：对未知端点做一次探索性请求，把 JSON 结构展开为
扁平、确定顺序的字段路径列表，供字段选择器使用。
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from finboard.fetcher import DEFAULT_TIMEOUT, FetchError, fetch_json
from finboard.field_path import ARRAY_MARKER, join_path
from finboard.models import DiscoveryResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 4


def _collect(value: Any, path: str, depth: int, max_depth: int, out: Dict[str, None]):
    # depth = path 中已有的段数
    if isinstance(value, dict) and value and depth < max_depth:
        for key, child in value.items():
            _collect(child, join_path(path, str(key)), depth + 1, max_depth, out)
        return

    if isinstance(value, list) and value and isinstance(value[0], dict) and value[0] and depth < max_depth:
        # 数组只展开第一个元素的结构，`[]` 附加在当前段上，不增加深度
        first = value[0]
        for key, child in first.items():
            _collect(child, join_path(path + ARRAY_MARKER, str(key)), depth + 1, max_depth, out)
        return

    if path:
        out.setdefault(path, None)


def enumerate_fields(
    document: Any,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_fields: Optional[int] = None,
) -> List[str]:
    """
    展开文档中所有可寻址的叶子路径。

    - 非空对象逐键展开；
    - 首元素为非空对象的数组通过 `key[]` 展开；
    - 标量、空容器、标量数组以及到达深度上限的分支记录为叶子；
    - 顺序为首次出现顺序，重复路径只保留第一次。
    """
    out: Dict[str, None] = {}
    _collect(document, "", 0, max_depth, out)
    fields = list(out)
    if max_fields is not None and len(fields) > max_fields:
        logger.info(f"字段数 {len(fields)} 超过上限 {max_fields}，已截断")
        fields = fields[:max_fields]
    return fields


async def discover(
    url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_fields: Optional[int] = None,
) -> DiscoveryResult:
    """
    "Test connection"：一次请求，不重试，不返回部分字段。
    """
    try:
        document = await fetch_json(url, client=client, timeout=timeout)
    except FetchError as e:
        logger.warning(f"探测失败 [{url}]: {e.message}")
        return DiscoveryResult(success=False, error=e.message)

    fields = enumerate_fields(document, max_depth=max_depth, max_fields=max_fields)
    logger.info(f"探测成功 [{url}]: {len(fields)} 个字段")
    return DiscoveryResult(success=True, fields=fields, data=document)

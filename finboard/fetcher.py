"""
HTTP 抓取：对任意第三方 JSON 端点发起 GET，并把失败归类为
输入错误 / 传输错误 / 解析错误 三种异常。
"""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_HEADERS = {"Accept": "application/json"}


class FetchError(Exception):
    """抓取失败的基类，message 直接面向用户展示。"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InputError(FetchError):
    """URL 为空或格式非法，未发出任何请求。"""


class TransportError(FetchError):
    """网络失败、超时或非 2xx 状态码。"""


class ParseError(FetchError):
    """响应体不是合法 JSON。"""


def validate_url(url: str | None) -> str:
    """校验用户输入的 URL，返回去除首尾空白后的值。"""
    url = (url or "").strip()
    if not url:
        raise InputError("Please enter an API URL")
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise InputError(f"Invalid API URL: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InputError(f"Invalid API URL: {url}")
    return url


async def _get(client: httpx.AsyncClient, url: str, timeout: float) -> httpx.Response:
    try:
        response = await client.get(url, headers=DEFAULT_HEADERS, timeout=timeout)
        response.raise_for_status()
    except httpx.TimeoutException as e:
        raise TransportError(f"Request timed out after {timeout:g}s") from e
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        reason = e.response.reason_phrase
        raise TransportError(f"HTTP {status} {reason}".strip()) from e
    except httpx.HTTPError as e:
        raise TransportError(f"Request failed: {str(e) or type(e).__name__}") from e
    return response


async def fetch_json(
    url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """
    GET 并解析 JSON。

    Args:
        url: 目标地址
        client: 共享的 AsyncClient；为 None 时临时创建
        timeout: 单次请求超时（秒）
    Raises:
        InputError / TransportError / ParseError
    """
    url = validate_url(url)

    if client is None:
        async with httpx.AsyncClient(follow_redirects=True) as own_client:
            response = await _get(own_client, url, timeout)
    else:
        response = await _get(client, url, timeout)

    try:
        return response.json()
    except ValueError as e:
        logger.debug(f"JSON 解析失败 [{url}]: {e}")
        raise ParseError(f"Response is not valid JSON: {e}") from e

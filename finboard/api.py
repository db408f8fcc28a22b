"""
FastAPI 路由：暴露字段探测、预览与 widget 管理接口。
"""

import json
import logging
from typing import Any, Dict, List

import httpx
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from finboard.config_loader import AppConfig
from finboard.discovery import discover
from finboard.field_path import value_at
from finboard.formatting import display_rows
from finboard.models import StoredWidget
from finboard.widget_manager import WidgetManager
from finboard.widget_state import WidgetState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# 这些全局引用会在 main.py 中注入
_manager: WidgetManager | None = None
_config: AppConfig | None = None
_client: httpx.AsyncClient | None = None


def init_api(manager: WidgetManager, config: AppConfig, client: httpx.AsyncClient | None = None):
    """注入全局依赖（由 main.py 调用）。"""
    global _manager, _config, _client
    _manager = manager
    _config = config
    _client = client


class DiscoverRequest(BaseModel):
    url: str = ""


class PreviewRequest(BaseModel):
    data: Any = None
    path: str


def _require_widget(widget_id: str) -> StoredWidget:
    widget = _manager.get_widget(widget_id)
    if widget is None:
        raise HTTPException(404, f"Widget '{widget_id}' not found")
    return widget


def _state_payload(widget: StoredWidget, state: WidgetState) -> Dict[str, Any]:
    payload = state.model_dump(mode="json")
    payload["display_mode"] = widget.config.display_mode.value
    payload["rows"] = display_rows(state.record, widget.config.display_fields)
    return payload


# ── 字段探测 ──────────────────────────────────────────

@router.post("/discover")
async def discover_endpoint(request: DiscoverRequest) -> Dict[str, Any]:
    """测试连接并返回可选字段及其样例值。"""
    settings = _config.discovery
    result = await discover(
        request.url,
        client=_client,
        timeout=settings.timeout,
        max_depth=settings.max_depth,
        max_fields=settings.max_fields,
    )
    payload = result.model_dump(mode="json")
    payload["previews"] = {field: value_at(result.data, field) for field in result.fields}
    return payload


@router.post("/preview")
async def preview_field(request: PreviewRequest) -> Dict[str, str]:
    """在样例数据上预览单个字段的值。"""
    return {"value": value_at(request.data, request.path)}


# ── Widgets ───────────────────────────────────────────

@router.get("/widgets")
async def list_widgets() -> List[Dict[str, Any]]:
    return [w.model_dump(mode="json", by_alias=True) for w in _manager.list_widgets()]


@router.get("/widgets/{widget_id}")
async def get_widget(widget_id: str) -> Dict[str, Any]:
    return _require_widget(widget_id).model_dump(mode="json", by_alias=True)


@router.post("/widgets")
async def create_widget(widget: StoredWidget) -> Dict[str, Any]:
    """创建 widget 并立即开始轮询。"""
    if not widget.config.display_fields:
        raise HTTPException(400, "Select at least one field")
    try:
        saved = _manager.add_widget(widget)
    except ValueError as e:
        raise HTTPException(409, str(e))
    return saved.model_dump(mode="json", by_alias=True)


@router.put("/widgets/{widget_id}")
async def update_widget(widget_id: str, widget: StoredWidget) -> Dict[str, Any]:
    if widget.id != widget_id:
        raise HTTPException(400, "ID mismatch")
    _require_widget(widget_id)
    saved = _manager.update_widget(widget)
    return saved.model_dump(mode="json", by_alias=True)


@router.delete("/widgets/{widget_id}")
async def delete_widget(widget_id: str) -> Dict[str, str]:
    if _manager.remove_widget(widget_id):
        return {"message": f"Widget {widget_id} deleted"}
    raise HTTPException(404, f"Widget '{widget_id}' not found")


# ── 运行时状态 ────────────────────────────────────────

@router.get("/widgets/{widget_id}/state")
async def get_widget_state(widget_id: str) -> Dict[str, Any]:
    widget = _require_widget(widget_id)
    state = _manager.get_state(widget_id) or WidgetState(widget_id=widget_id)
    return _state_payload(widget, state)


@router.post("/widgets/{widget_id}/refresh")
async def refresh_widget(widget_id: str) -> Dict[str, Any]:
    """手动触发一次抓取并返回最新状态。"""
    widget = _require_widget(widget_id)
    state = await _manager.refresh(widget_id)
    if state is None:
        raise HTTPException(409, f"Widget '{widget_id}' is not polling")
    return _state_payload(widget, state)


@router.get("/widgets/{widget_id}/stream")
async def stream_widget_state(widget_id: str) -> StreamingResponse:
    """
    以 Server-Sent Events 推送状态快照。
    每个事件都按当前配置渲染；widget 被删除后流结束。
    """
    _require_widget(widget_id)
    poller = _manager.get_poller(widget_id)
    if poller is None:
        raise HTTPException(409, f"Widget '{widget_id}' is not polling")

    async def events():
        updates = poller.updates()
        try:
            async for state in updates:
                widget = _manager.get_widget(widget_id)
                if widget is None:
                    break
                yield f"data: {json.dumps(_state_payload(widget, state), ensure_ascii=False)}\n\n"
        finally:
            await updates.aclose()

    return StreamingResponse(events(), media_type="text/event-stream")

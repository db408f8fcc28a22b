"""
Widget 管理器：负责 widget 的生命周期，每个 widget 拥有一个 WidgetPoller。
widget 之间不共享可变状态，一个 widget 的失败不影响其他 widget。
"""

import logging
from typing import Dict, List, Optional

import httpx

from finboard.fetcher import DEFAULT_TIMEOUT
from finboard.models import StoredWidget
from finboard.poller import WidgetPoller
from finboard.widget_state import WidgetState
from finboard.widget_store import WidgetStore

logger = logging.getLogger(__name__)


class WidgetManager:
    """
    维护 widget_id -> WidgetPoller 的映射，并同步到 WidgetStore。
    所有方法需在事件循环中调用。
    """

    def __init__(
        self,
        store: WidgetStore,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._store = store
        self._client = client
        self._timeout = timeout
        # widget_id -> WidgetPoller
        self._pollers: Dict[str, WidgetPoller] = {}

    def _start_poller(self, widget: StoredWidget) -> WidgetPoller:
        poller = WidgetPoller(widget.id, client=self._client, timeout=self._timeout)
        self._pollers[widget.id] = poller
        poller.start(widget.config)
        return poller

    # ── 生命周期 ──────────────────────────────────────

    def start_all(self) -> int:
        """为所有已存储的 widget 启动轮询，返回启动数量。"""
        widgets = self._store.list_widgets()
        for widget in widgets:
            if widget.id not in self._pollers:
                self._start_poller(widget)
        logger.info(f"已启动 {len(widgets)} 个 widget 的轮询")
        return len(widgets)

    def add_widget(self, widget: StoredWidget) -> StoredWidget:
        """保存并开始轮询；id 已存在时抛出 ValueError。"""
        if widget.id in self._pollers or self._store.get_widget(widget.id) is not None:
            raise ValueError(f"Widget '{widget.id}' already exists")
        self._store.save_widget(widget)
        self._start_poller(widget)
        logger.info(f"[{widget.id}] Widget 已添加: {widget.title}")
        return widget

    def update_widget(self, widget: StoredWidget) -> StoredWidget:
        """只有 config 变化时才重启轮询，标题/位置变化不影响数据。"""
        self._store.save_widget(widget)
        poller = self._pollers.get(widget.id)
        if poller is None:
            self._start_poller(widget)
        elif poller.config != widget.config:
            logger.info(f"[{widget.id}] 配置已变更，重新开始轮询")
            poller.reconfigure(widget.config)
        return widget

    def remove_widget(self, widget_id: str) -> bool:
        poller = self._pollers.pop(widget_id, None)
        if poller is not None:
            poller.stop()
            poller.finish()
        removed = self._store.delete_widget(widget_id)
        if removed or poller is not None:
            logger.info(f"[{widget_id}] Widget 已移除")
            return True
        return False

    async def shutdown(self):
        """关闭所有 poller（应用退出时调用）。"""
        pollers = list(self._pollers.values())
        self._pollers.clear()
        for poller in pollers:
            await poller.close()
        logger.info(f"已停止 {len(pollers)} 个 widget 的轮询")

    # ── 查询 ──────────────────────────────────────────

    def list_widgets(self) -> List[StoredWidget]:
        return self._store.list_widgets()

    def get_widget(self, widget_id: str) -> Optional[StoredWidget]:
        return self._store.get_widget(widget_id)

    def get_poller(self, widget_id: str) -> Optional[WidgetPoller]:
        return self._pollers.get(widget_id)

    def get_state(self, widget_id: str) -> Optional[WidgetState]:
        poller = self._pollers.get(widget_id)
        return poller.state if poller else None

    async def refresh(self, widget_id: str) -> Optional[WidgetState]:
        """手动刷新单个 widget。"""
        poller = self._pollers.get(widget_id)
        if poller is None:
            return None
        return await poller.refresh()

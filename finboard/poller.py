"""
轮询管线：每个 widget 一个可取消的定时任务。
抓取 -> 解析 -> 投影 -> 发布，失败只影响当前 tick。
"""

import asyncio
import logging
import time
from typing import AsyncIterator, List, Optional, Set

import httpx

from finboard.fetcher import DEFAULT_TIMEOUT, FetchError, fetch_json
from finboard.field_path import project
from finboard.models import WidgetConfig
from finboard.widget_state import WidgetState, WidgetStatus

logger = logging.getLogger(__name__)


class WidgetPoller:
    """
    单个 widget 的轮询任务。

    start() 立即执行一次 tick，之后每 refresh_interval 毫秒无条件再执行一次；
    tick 之间允许重叠。每次 stop()/reconfigure() 都会递增 generation，
    旧 generation 的 tick 即使稍后返回，其结果也会被丢弃。
    """

    def __init__(
        self,
        widget_id: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.widget_id = widget_id
        self._client = client
        self._timeout = timeout
        self._config: Optional[WidgetConfig] = None
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self._listeners: List[asyncio.Queue] = []
        self.state = WidgetState(widget_id=widget_id)

    @property
    def config(self) -> Optional[WidgetConfig]:
        return self._config

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    # ── 生命周期 ──────────────────────────────────────

    def start(self, config: WidgetConfig):
        """开始新一轮轮询（需在事件循环中调用）。"""
        if self.running:
            raise RuntimeError(f"[{self.widget_id}] poller already running")
        self._config = config
        generation = self._generation
        self._timer = asyncio.create_task(self._run(generation, config))
        logger.info(f"[{self.widget_id}] 开始轮询 {config.api_endpoint} (every {config.refresh_interval}ms)")

    def stop(self):
        """停止定时器；进行中的 tick 可以跑完，但结果会被丢弃。"""
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            logger.info(f"[{self.widget_id}] 停止轮询")

    def reconfigure(self, config: WidgetConfig):
        """取消当前周期，清空旧状态，以新配置重新开始。"""
        self.stop()
        self._set_state(WidgetState(widget_id=self.widget_id))
        self.start(config)

    async def refresh(self) -> WidgetState:
        """手动触发一次 tick。"""
        if self._config is None:
            raise RuntimeError(f"[{self.widget_id}] poller has no configuration")
        await self._tick(self._generation, self._config)
        return self.state

    async def close(self):
        """停止并取消所有进行中的 tick（用于关闭应用）。"""
        self.stop()
        self.finish()
        tasks = list(self._inflight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ── 订阅 ──────────────────────────────────────────

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._listeners.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        if queue in self._listeners:
            self._listeners.remove(queue)

    def finish(self):
        """结束所有订阅者的状态序列（widget 被删除或应用关闭时）。"""
        for queue in self._listeners:
            queue.put_nowait(None)

    async def updates(self) -> AsyncIterator[WidgetState]:
        """惰性的状态序列：先给出当前快照，之后每次状态变化给出一个。"""
        queue = self.subscribe()
        try:
            yield self.state
            while True:
                state = await queue.get()
                if state is None:
                    return
                yield state
        finally:
            self.unsubscribe(queue)

    # ── 内部 ──────────────────────────────────────────

    async def _run(self, generation: int, config: WidgetConfig):
        interval = config.refresh_interval / 1000
        while generation == self._generation:
            task = asyncio.create_task(self._tick(generation, config))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            await asyncio.sleep(interval)

    async def _tick(self, generation: int, config: WidgetConfig):
        self._apply(generation, status=WidgetStatus.LOADING)
        try:
            document = await fetch_json(config.api_endpoint, client=self._client, timeout=self._timeout)
            record = project(document, config.display_fields)
        except FetchError as e:
            self._apply(generation, status=WidgetStatus.ERROR, error=e.message)
            return
        except Exception as e:
            logger.error(f"[{self.widget_id}] Tick failed: {e}", exc_info=True)
            self._apply(generation, status=WidgetStatus.ERROR, error=str(e) or type(e).__name__)
            return

        self._apply(
            generation,
            status=WidgetStatus.READY,
            record=record,
            error=None,
            last_updated=time.time(),
        )

    def _apply(self, generation: int, **changes) -> bool:
        """仅当 tick 仍属于当前配置时才写入状态。"""
        if generation != self._generation:
            logger.debug(f"[{self.widget_id}] 丢弃过期结果 (generation {generation} != {self._generation})")
            return False
        state = self.state.model_copy(update=changes)
        self._set_state(state)
        if state.status == WidgetStatus.ERROR:
            logger.warning(f"[{self.widget_id}] State -> {state.status.value}: {state.error}")
        elif state.status == WidgetStatus.READY:
            logger.info(f"[{self.widget_id}] State -> {state.status.value}: {len(state.record or {})} fields")
        return True

    def _set_state(self, state: WidgetState):
        self.state = state
        for queue in self._listeners:
            queue.put_nowait(state)


async def poll(
    config: WidgetConfig,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    widget_id: str = "adhoc",
) -> AsyncIterator[WidgetState]:
    """
    独立使用的惰性轮询序列，消费方关闭迭代器时自动停止。

        async for state in poll(config):
            ...
    """
    poller = WidgetPoller(widget_id, client=client, timeout=timeout)
    queue = poller.subscribe()
    poller.start(config)
    try:
        while True:
            state = await queue.get()
            if state is None:
                return
            yield state
    finally:
        poller.unsubscribe(queue)
        await poller.close()

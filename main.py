"""
FinBoard 主入口：启动 FastAPI 后端服务。
"""

import logging
import sys
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from finboard import api
from finboard.config_loader import AppConfig, load_config
from finboard.widget_manager import WidgetManager
from finboard.widget_store import WidgetStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan 事件处理：启动时恢复轮询，关闭时释放资源。"""
    manager: WidgetManager = app.state.manager

    # 启动时：为已存储的 widget 恢复轮询
    started = manager.start_all()
    if not started:
        logger.info("没有存储的 widget，跳过启动轮询")

    yield  # 应用运行中

    logger.info("正在关闭...")
    await manager.shutdown()
    if app.state.owns_client:
        await app.state.client.aclose()
    app.state.store.close()


def create_app(config: AppConfig | None = None, client: httpx.AsyncClient | None = None) -> FastAPI:
    """创建并配置 FastAPI 应用。"""
    if config is None:
        logger.info("正在加载配置...")
        config = load_config()

    app = FastAPI(
        title="FinBoard API",
        description="Custom API widgets: field discovery and polling",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── 初始化核心组件 ────────────────────────────────────────
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(follow_redirects=True)

    # Widget 配置持久化
    store = WidgetStore(config.data_path() / "widgets.json")

    # 轮询管理器
    manager = WidgetManager(store, client=client, timeout=config.polling.timeout)

    # 注入依赖到 API 模块
    api.init_api(manager=manager, config=config, client=client)

    # 注册 API 路由
    app.include_router(api.router)

    # 将组件存到 app.state，供 lifespan 访问
    app.state.config = config
    app.state.client = client
    app.state.owns_client = owns_client
    app.state.store = store
    app.state.manager = manager

    return app


def main():
    """主入口。"""
    config = load_config()

    logging.basicConfig(
        level=config.logging.level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    port = int(sys.argv[1]) if len(sys.argv) > 1 else config.server.port

    logger.info(f"🚀 启动 FinBoard 后端 (port={port})...")

    app = create_app(config)

    uvicorn.run(
        app,
        host=config.server.host,
        port=port,
        log_level="info",
    )


if __name__ == "__main__":
    main()

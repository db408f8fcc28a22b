"""
配置加载器：将 YAML 配置文件解析为 Pydantic 模型。
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ── 服务配置 ──────────────────────────────────────────

class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8400
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )


# ── 探测与轮询配置 ────────────────────────────────────

class DiscoveryConfig(BaseModel):
    timeout: float = 10.0  # 单次探测请求超时（秒）
    max_depth: int = Field(default=4, ge=1)  # 字段路径最大段数
    max_fields: Optional[int] = Field(default=None, ge=1)  # None 表示不限制宽度


class PollingConfig(BaseModel):
    timeout: float = 10.0  # 单次轮询请求超时（秒）


# ── 存储与日志 ────────────────────────────────────────

class StorageConfig(BaseModel):
    data_dir: str = "data"


class LoggingConfig(BaseModel):
    level: str = "INFO"


# ── 顶层配置 ──────────────────────────────────────────

class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def data_path(self) -> Path:
        """数据目录，相对路径基于 FINBOARD_ROOT。"""
        path = Path(self.storage.data_dir)
        if path.is_absolute():
            return path
        return Path(os.getenv("FINBOARD_ROOT", ".")) / path


# ── Loading ───────────────────────────────────────────

_CONFIG_SEARCH_PATHS = [
    "config/config.yaml",
    "config.yaml",
]


def find_config_root() -> Optional[Path]:
    """Find the root config file or directory."""
    base = Path(os.getenv("FINBOARD_ROOT", "."))
    config_dir = base / "config"
    if config_dir.is_dir():
        return config_dir

    for p in _CONFIG_SEARCH_PATHS:
        path = base / p
        if path.exists():
            return path

    # 找不到时按默认配置启动
    return None


def deep_merge_dict(base: dict, update: dict) -> dict:
    """Deep merge two dictionaries; lists and scalars from update overwrite."""
    for k, v in update.items():
        if isinstance(v, dict) and k in base and isinstance(base[k], dict):
            base[k] = deep_merge_dict(base[k], v)
        else:
            base[k] = v
    return base


def load_all_yamls(root: Path) -> dict:
    """Load and merge all YAML files under root (or root itself if it is a file)."""
    combined: dict = {}

    files = []
    if root.is_file():
        files.append(root)
    elif root.is_dir():
        files.extend(root.glob("**/*.yaml"))
        files.extend(root.glob("**/*.yml"))
        files.sort()

    for f in files:
        with open(f, "r", encoding="utf-8") as fp:
            content = yaml.safe_load(fp)
        if not content:
            continue
        if not isinstance(content, dict):
            raise ValueError(f"{f}: top-level YAML must be a mapping")
        deep_merge_dict(combined, content)
        logger.debug(f"已加载配置文件: {f}")

    return combined


def load_config(path: Optional[str | Path] = None) -> AppConfig:
    """
    Load and merge configuration from YAML files.
    """
    if path is None:
        path = find_config_root()
        if path is None:
            logger.info("未找到配置文件，使用默认配置")
            return AppConfig()
    path = Path(path)

    raw = load_all_yamls(path)
    return AppConfig.model_validate(raw)

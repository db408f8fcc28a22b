"""
Widget 运行时状态定义。
每个 tick 产出一个新的不可变快照。
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class WidgetStatus(str, Enum):
    IDLE = "idle"  # 尚未开始轮询
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"  # 上次抓取失败，record 保留上一次成功的数据


class WidgetState(BaseModel):
    """Widget 的运行时状态。"""
    model_config = ConfigDict(frozen=True)

    widget_id: str
    status: WidgetStatus = WidgetStatus.IDLE
    record: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    last_updated: float = 0.0

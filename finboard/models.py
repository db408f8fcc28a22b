"""
Data models for custom API widgets and discovery results.
"""

import time
import uuid
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finboard.fetcher import InputError, validate_url


class DisplayMode(str, Enum):
    CARD = "card"
    TABLE = "table"
    LIST = "list"


class WidgetConfig(BaseModel):
    """Configuration of a custom (dynamic API) widget.

    Serialized with the camelCase keys shared with the dashboard's
    import/export format.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    api_endpoint: str = Field(alias="apiEndpoint", description="JSON endpoint to poll")
    refresh_interval: int = Field(default=30000, alias="refreshInterval", gt=0, description="Milliseconds between ticks")
    display_fields: List[str] = Field(default_factory=list, alias="displayFields", description="Selected field paths, in selection order")
    display_mode: DisplayMode = Field(default=DisplayMode.CARD, alias="displayMode")

    @field_validator("api_endpoint")
    @classmethod
    def check_endpoint(cls, v: str) -> str:
        try:
            return validate_url(v)
        except InputError as e:
            raise ValueError(e.message) from e


class Position(BaseModel):
    """Grid placement of a widget."""
    x: int = Field(default=0, description="X position in grid columns")
    y: int = Field(default=0, description="Y position in grid rows")
    w: int = Field(default=4, description="Width in grid columns")
    h: int = Field(default=3, description="Height in grid rows")


def _new_widget_id() -> str:
    return f"widget-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


class StoredWidget(BaseModel):
    """A stored custom widget."""
    id: str = Field(default_factory=_new_widget_id)
    title: str = "Custom Widget"
    position: Position = Field(default_factory=Position)
    config: WidgetConfig


class DiscoveryResult(BaseModel):
    """Outcome of one "test connection" against an endpoint."""
    success: bool
    fields: List[str] = Field(default_factory=list)
    data: Any = Field(default=None, description="Parsed sample document")
    error: Optional[str] = None

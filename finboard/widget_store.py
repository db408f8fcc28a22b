"""
Widget 存储：基于 TinyDB 持久化自定义 widget 的配置。
抓取到的数据只保存在内存中，不落盘。
"""

import logging
from pathlib import Path
from typing import List, Optional

from tinydb import Query, TinyDB

from finboard.models import StoredWidget

logger = logging.getLogger(__name__)


class WidgetStore:
    """TinyDB 数据操作封装。"""

    def __init__(self, db_path: str | Path):
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)

        self.db = TinyDB(str(db_path), indent=2, ensure_ascii=False)
        self.widgets_table = self.db.table("widgets")
        logger.info(f"TinyDB 数据库已打开: {db_path}")

    # ── 写入 ──────────────────────────────────────────

    def save_widget(self, widget: StoredWidget) -> StoredWidget:
        """按 id 更新或插入。"""
        record = widget.model_dump(mode="json", by_alias=True)
        Widget = Query()
        self.widgets_table.upsert(record, Widget.id == widget.id)
        logger.debug(f"[{widget.id}] 配置已保存")
        return widget

    def delete_widget(self, widget_id: str) -> bool:
        Widget = Query()
        removed = self.widgets_table.remove(Widget.id == widget_id)
        return len(removed) > 0

    # ── 查询 ──────────────────────────────────────────

    def get_widget(self, widget_id: str) -> Optional[StoredWidget]:
        Widget = Query()
        results = self.widgets_table.search(Widget.id == widget_id)
        return StoredWidget.model_validate(results[0]) if results else None

    def list_widgets(self) -> List[StoredWidget]:
        """获取所有 widget（按插入顺序）。"""
        widgets = []
        for doc in self.widgets_table.all():
            try:
                widgets.append(StoredWidget.model_validate(doc))
            except ValueError as e:
                logger.error(f"[{doc.get('id')}] 存储的 widget 配置无效，已跳过: {e}")
        return widgets

    # ── 管理 ──────────────────────────────────────────

    def close(self):
        """关闭数据库。"""
        self.db.close()

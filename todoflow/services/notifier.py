"""
User-facing notifications (toast side channel)
"""

from collections import deque
from datetime import datetime
from typing import Deque, List, Optional

from pydantic import BaseModel, Field

from todoflow.utils.date_utils import utc_now
from todoflow.utils.error_handler import format_error_message
from todoflow.utils.logger import logger


class Notification(BaseModel):
    """One message for the user"""
    level: str  # "success" or "error"
    message: str
    detail: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class Notifier:
    """Logs notifications and keeps the most recent ones for the UI to drain"""

    def __init__(self, max_items: int = 50):
        self.logger = logger
        self._items: Deque[Notification] = deque(maxlen=max_items)

    def success(self, message: str):
        """Signal a completed operation"""
        self.logger.info(message)
        self._items.append(Notification(level="success", message=message))

    def error(self, message: str, error: Optional[Exception] = None):
        """Signal a failed operation"""
        detail = format_error_message(error) if error is not None else None
        self.logger.warning(f"{message}: {detail}" if detail else message)
        self._items.append(Notification(level="error", message=message, detail=detail))

    def drain(self) -> List[Notification]:
        """Return and forget pending notifications"""
        items = list(self._items)
        self._items.clear()
        return items

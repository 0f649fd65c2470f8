from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import to_iso


@dataclass(frozen=True)
class Notification:
    """Thông báo trong ứng dụng gửi tới một nhân viên."""

    notification_id: int
    recipient_id: int
    author: str
    content: str
    created_at: datetime
    link: Optional[str] = None
    is_read: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.notification_id,
            "author": self.author,
            "content": self.content,
            "link": self.link,
            "isRead": self.is_read,
            "createdAt": to_iso(self.created_at),
        }

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
    def create(
        self,
        *,
        recipient_id: int,
        author: str,
        content: str,
        link: Optional[str],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[Notification]:
        raise NotImplementedError

    def mark_read(self, user_id: int, notification_ids: Sequence[int]) -> int:
        raise NotImplementedError

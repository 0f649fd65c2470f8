from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Optional, Sequence

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from ..core.exceptions import ValidationError
from .dispatcher import BestEffortDispatcher
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Use case: in-app notifications (fire-and-forget delivery)."""

    def __init__(self, notifications: NotificationRepository, dispatcher: BestEffortDispatcher):
        self._notifications = notifications
        self._dispatcher = dispatcher

    def notify(self, *, recipient_id: int, author: str, content: str, link: Optional[str] = None) -> Optional[Future]:
        logger.debug("Queueing notification for user %s", recipient_id)
        return self._dispatcher.submit(
            self._notifications.create,
            recipient_id=int(recipient_id),
            author=author,
            content=content,
            link=link,
            created_at=now_utc(),
        )

    def list_for_user(self, user_id: int, *, limit: int = DEFAULT_NOTIFICATION_LIMIT):
        return list(self._notifications.list_for_user(int(user_id), limit=limit))

    def mark_as_read(self, user_id: int, notification_ids: Sequence) -> int:
        if not isinstance(notification_ids, (list, tuple)):
            raise ValidationError("notificationIds must be a list of ids.")
        try:
            ids = [int(i) for i in notification_ids]
        except (TypeError, ValueError):
            raise ValidationError("notificationIds must be a list of ids.")
        return self._notifications.mark_read(int(user_id), ids)

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import from_db, to_db
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Notification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        recipient_id: int,
        author: str,
        content: str,
        link: Optional[str],
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(recipient_id, author, content, link, is_read, created_at)
                VALUES(%s,%s,%s,%s,0,%s)
                """,
                (int(recipient_id), author, content, link, to_db(created_at)),
            )
            return int(cur.lastrowid)

    def list_for_user(self, user_id: int, *, limit: int) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id, recipient_id, author, content, link, is_read, created_at
                FROM notifications
                WHERE recipient_id=%s
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [
                Notification(
                    notification_id=int(r["notification_id"]),
                    recipient_id=int(r["recipient_id"]),
                    author=r["author"],
                    content=r["content"],
                    link=r.get("link"),
                    is_read=bool(r.get("is_read")),
                    created_at=from_db(r["created_at"]),
                )
                for r in fetchall(cur)
            ]

    def mark_read(self, user_id: int, notification_ids: Sequence[int]) -> int:
        ids = [int(i) for i in notification_ids]
        if not ids:
            return 0
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE notifications
                SET is_read=1
                WHERE recipient_id=%s AND notification_id IN ({placeholders})
                """,
                (int(user_id), *ids),
            )
            return int(cur.rowcount or 0)

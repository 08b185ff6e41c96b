from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import NewNotification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert_many(self, notifications: Sequence[NewNotification]) -> int:
        if not notifications:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO notifications(title, message, type, recipient_profile_id, related_id, action_type, priority)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                [
                    (n.title, n.message, n.type, n.recipient_profile_id, n.related_id, n.action_type, n.priority.value)
                    for n in notifications
                ],
            )
            return len(notifications)

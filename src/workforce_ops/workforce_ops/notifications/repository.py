from __future__ import annotations

from typing import Protocol, Sequence

from .model import NewNotification


class NotificationRepository(Protocol):
    def insert_many(self, notifications: Sequence[NewNotification]) -> int:
        """Returns number of rows inserted."""

        raise NotImplementedError

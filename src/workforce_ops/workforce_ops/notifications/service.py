from __future__ import annotations

import logging
from typing import Iterable

from ..core.exceptions import StoreError
from ..payroll.model import Payroll
from .model import NewNotification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


def payroll_created_message(p: Payroll) -> NewNotification:
    return NewNotification(
        title="New Payroll Created",
        message=(
            f"Your payroll for period {p.pay_period_start.isoformat()} to {p.pay_period_end.isoformat()} "
            f"has been created. Net amount: ${p.net_pay:.2f}"
        ),
        type="payroll_created",
        recipient_profile_id=p.profile_id,
        related_id=p.id,
    )


class NotificationService:
    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def notify_payrolls_created(self, payrolls: Iterable[Payroll]) -> int:
        """Best effort: a failed insert is logged and reported as 0, never raised."""

        items = [payroll_created_message(p) for p in payrolls]
        if not items:
            return 0
        try:
            return self._notifications.insert_many(items)
        except StoreError:
            logger.warning("failed to send %d payroll notifications", len(items), exc_info=True)
            return 0

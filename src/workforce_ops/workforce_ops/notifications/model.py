from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import NotificationPriority


@dataclass(frozen=True)
class NewNotification:
    title: str
    message: str
    type: str
    recipient_profile_id: int
    related_id: Optional[int] = None
    action_type: str = "none"
    priority: NotificationPriority = NotificationPriority.MEDIUM

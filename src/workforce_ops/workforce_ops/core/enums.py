from __future__ import annotations

from enum import Enum


class RosterStatus(str, Enum):
    """Trạng thái ca đã xếp (roster)."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class WorkingHourStatus(str, Enum):
    """Trạng thái giờ làm thực tế trong luồng duyệt."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class PayrollStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class LockState(str, Enum):
    """Hours lock: editable -> locked, no way back."""

    EDITABLE = "editable"
    LOCKED = "locked"


class WizardStage(str, Enum):
    COMMIT = "commit"
    DONE = "done"


class CommitStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

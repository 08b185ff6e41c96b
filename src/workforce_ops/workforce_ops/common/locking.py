"""Hours lock state machine.

``editable`` -> ``locked``; the transition is one-way. Roster rows carry the
flags in the store, working-hour rows derive them from their status.
"""

from __future__ import annotations

from typing import Protocol

from ..core.enums import LockState
from ..core.exceptions import LockedRecordError


class Lockable(Protocol):
    @property
    def is_editable(self) -> bool: ...

    @property
    def is_locked(self) -> bool: ...


def lock_state(record: Lockable) -> LockState:
    if record.is_editable and not record.is_locked:
        return LockState.EDITABLE
    return LockState.LOCKED


def ensure_editable(record: Lockable, *, action: str = "edit") -> None:
    """Raise before any write is attempted on a locked record."""
    if lock_state(record) is LockState.LOCKED:
        raise LockedRecordError(f"Cannot {action}: hours already approved")

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Profile, ProfilePage


class ProfileRepository(Protocol):
    def get_by_id(self, profile_id: int) -> Optional[Profile]:
        raise NotImplementedError

    def list_by_ids(self, profile_ids: Iterable[int]) -> Sequence[Profile]:
        raise NotImplementedError

    def search(
        self,
        *,
        search: str,
        sort_by: str,
        ascending: bool,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ProfilePage:
        """Case-insensitive substring match over full_name/email/role.

        ``offset``/``limit`` of None returns every match (export).
        """

        raise NotImplementedError

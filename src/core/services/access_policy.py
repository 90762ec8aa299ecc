"""Queue-scoping authorization policy for ticket listing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol, Sequence

DEFAULT_ELEVATED_PROFILES = frozenset({"admin", "superadmin"})


class QueueMember(Protocol):
    id: int


class ActingUser(Protocol):
    id: int
    profile: str
    queues: Sequence[QueueMember]


@dataclass(frozen=True)
class QueueAccessPolicy:
    """Decide which queues an acting user may list tickets from.

    Elevated users may narrow the listing to caller-supplied queue ids, or see
    every queue when they supply none. Everybody else is pinned to the queues
    they are assigned to, and caller-supplied ids are ignored for them.
    """

    elevated_profiles: frozenset[str] = field(default=DEFAULT_ELEVATED_PROFILES)

    def is_elevated(self, user: ActingUser) -> bool:
        return (user.profile or "").lower() in self.elevated_profiles

    def assigned_queue_ids(self, user: ActingUser) -> list[int]:
        return sorted({q.id for q in (user.queues or [])})

    def queue_scope(
        self, user: ActingUser, requested_ids: Optional[Iterable[int]] = None
    ) -> Optional[list[int]]:
        """Return the queue ids to filter on.

        ``None`` means no queue restriction and is only ever returned for
        elevated users that did not ask for specific queues. An empty list
        means nothing is visible.
        """
        requested = sorted({int(q) for q in (requested_ids or [])})
        if self.is_elevated(user):
            return requested or None
        return self.assigned_queue_ids(user)

    @classmethod
    def from_profiles(cls, profiles: Iterable[str]) -> "QueueAccessPolicy":
        return cls(frozenset(p.strip().lower() for p in profiles if p.strip()))

"""Explicit caller identity passed into every performer-side operation."""

from dataclasses import dataclass
from typing import Self

from live.domain import PerformerId


@dataclass(frozen=True)
class PerformerContext:
    """The authenticated performer on whose behalf an operation runs.

    The identity provider vouches for ``performer_id``; services trust it as
    given.
    """

    performer_id: PerformerId

    @classmethod
    def for_user(cls, user) -> Self:
        """Build a context from a Django user with a linked performer profile."""
        return cls(performer_id=PerformerId(user.performer.id))

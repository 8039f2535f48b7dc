from dataclasses import dataclass

from live.conf import LiveSettings
from live.services.profile_service import ProfileService
from live.services.queue_service import QueueService
from live.services.request_service import RequestLedgerService
from live.services.session_service import SessionService
from live.stores.interfaces import LiveStore


@dataclass(frozen=True)
class LiveServices:
    """The service graph for one store."""

    sessions: SessionService
    ledger: RequestLedgerService
    queue: QueueService
    profiles: ProfileService

    @classmethod
    def build(cls, store: LiveStore, settings: LiveSettings, **kwargs) -> "LiveServices":
        """Wire services over ``store``; ``now`` may be passed for tests."""
        sessions = SessionService(store, settings, **kwargs)
        return cls(
            sessions=sessions,
            ledger=RequestLedgerService(store, sessions, **kwargs),
            queue=QueueService(store, sessions, settings),
            profiles=ProfileService(store),
        )


__all__ = [
    "LiveServices",
    "ProfileService",
    "QueueService",
    "RequestLedgerService",
    "SessionService",
]

"""Per-performer change feed.

Stores publish a Change whenever a collection scoped to a performer is
mutated; observers (dashboards, audience pages, queue watchers) subscribe by
performer id. Delivery is synchronous on the publishing thread.
"""

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from live.domain import PerformerId

logger = logging.getLogger(__name__)


class Collection(Enum):
    SESSION_STATE = "session_state"
    REQUESTS = "requests"
    SONGS = "songs"
    TRANSACTIONS = "transactions"


class ChangeKind(Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class Change:
    performer_id: PerformerId
    collection: Collection
    kind: ChangeKind
    record_id: str | None = None


Observer = Callable[[Change], None]


class Subscription:
    """Handle returned by ChangeFeed.subscribe; close() stops delivery."""

    def __init__(self, feed: "ChangeFeed", performer_id: PerformerId, observer: Observer):
        self._feed = feed
        self.performer_id = performer_id
        self.observer = observer
        self.closed = False

    def close(self) -> None:
        if not self.closed:
            self._feed._remove(self)
            self.closed = True


class ChangeFeed:
    """Fan-out of store changes to observers of one performer."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: dict[PerformerId, list[Subscription]] = defaultdict(list)

    def subscribe(self, performer_id: PerformerId, observer: Observer) -> Subscription:
        subscription = Subscription(self, performer_id, observer)
        with self._lock:
            self._subscriptions[performer_id].append(subscription)
        return subscription

    def publish(self, change: Change) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions.get(change.performer_id, ()))
        for subscription in subscriptions:
            try:
                subscription.observer(change)
            except Exception:
                # A failing observer must not undo a committed write
                logger.exception(
                    f"Observer failed for {change.collection.value} "
                    f"{change.kind.value} on performer {change.performer_id}"
                )

    def subscriber_count(self, performer_id: PerformerId) -> int:
        with self._lock:
            return len(self._subscriptions.get(performer_id, ()))

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.performer_id)
            if not subscriptions:
                return
            if subscription in subscriptions:
                subscriptions.remove(subscription)
            if not subscriptions:
                del self._subscriptions[subscription.performer_id]


default_feed = ChangeFeed()

"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from rest_framework.test import APIClient

from live.conf import LiveSettings
from live.context import PerformerContext
from live.domain import Money, Performer, PerformerId, Song, SongId
from live.services import LiveServices
from live.stores.memory_store import InMemoryLiveStore


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 5, 1, 20, 0, tzinfo=dt_timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def live_settings() -> LiveSettings:
    return LiveSettings(offline_grace_seconds=0.05, tick_seconds=0.01)


@pytest.fixture
def store() -> InMemoryLiveStore:
    return InMemoryLiveStore()


@pytest.fixture
def services(store, live_settings, clock) -> LiveServices:
    return LiveServices.build(store, live_settings, now=clock)


@pytest.fixture
def performer(store) -> Performer:
    return store.add_performer(
        Performer(id=PerformerId(uuid4()), name="Ada Strings", url_slug="ada")
    )


@pytest.fixture
def ctx(performer) -> PerformerContext:
    return PerformerContext(performer.id)


@pytest.fixture
def make_song(store, performer):
    positions = iter(range(1000))

    def make(
        title: str = "Wonderwall",
        price: str = "5.00",
        tags: tuple[str, ...] = (),
        performer_id: PerformerId | None = None,
    ) -> Song:
        return store.add_song(
            Song(
                id=SongId(uuid4()),
                performer_id=performer_id or performer.id,
                title=title,
                original_artist="Oasis",
                price=Money(Decimal(price)),
                position=next(positions),
                tags=tags,
            )
        )

    return make


@pytest.fixture
def live_performer(services, ctx, make_song):
    """A performer with one song who is live with a cap of 5."""
    song = make_song()
    services.sessions.go_live(ctx, cap=5)
    return song

"""Tests for cache behavior.

Run with: pytest tests/test_cache.py -v
"""

import pytest
from decimal import Decimal

from django.core.cache import cache

from live import models
from live.domain import PerformerId
from live.stores.django_store import DjangoLiveStore, catalog_cache_key


@pytest.fixture
def performer_row(django_user_model):
    user = django_user_model.objects.create_user(username="ada", password="pw")
    return models.Performer.objects.create(user=user, name="Ada", url_slug="ada")


def add_song(performer_row, title: str) -> models.Song:
    return models.Song.objects.create(
        performer=performer_row,
        title=title,
        original_artist="Oasis",
        price=Decimal("5.00"),
    )


@pytest.mark.django_db
class TestCatalogCache:
    """Tests for catalog caching and invalidation on model changes."""

    def test_list_songs_populates_cache(self, performer_row):
        add_song(performer_row, "Wonderwall")
        performer_id = PerformerId(performer_row.id)

        DjangoLiveStore().list_songs(performer_id)

        assert [s.title for s in cache.get(catalog_cache_key(performer_id))] == [
            "Wonderwall"
        ]

    def test_song_save_invalidates_catalog_cache(self, performer_row):
        """Saving a song invalidates the live:{id}:catalog cache key."""
        store = DjangoLiveStore()
        performer_id = PerformerId(performer_row.id)
        song = add_song(performer_row, "Wonderwall")
        store.list_songs(performer_id)

        song.title = "Champagne Supernova"
        song.save()

        assert cache.get(catalog_cache_key(performer_id)) is None
        assert [s.title for s in store.list_songs(performer_id)] == [
            "Champagne Supernova"
        ]

    def test_song_delete_invalidates_catalog_cache(self, performer_row):
        store = DjangoLiveStore()
        performer_id = PerformerId(performer_row.id)
        song = add_song(performer_row, "Wonderwall")
        store.list_songs(performer_id)

        song.delete()

        assert store.list_songs(performer_id) == []

    def test_new_song_is_visible_immediately(self, performer_row):
        store = DjangoLiveStore()
        performer_id = PerformerId(performer_row.id)
        assert store.list_songs(performer_id) == []

        add_song(performer_row, "Wonderwall")

        assert len(store.list_songs(performer_id)) == 1

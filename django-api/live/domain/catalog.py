"""Audience-facing catalog filtering."""

from collections.abc import Iterable

from live.domain.models import Song


def visible_songs(catalog: Iterable[Song], active_tags: Iterable[str]) -> list[Song]:
    """Return the songs the audience may request under ``active_tags``.

    An empty tag set disables filtering. Otherwise a song is shown when one of
    its tags is active, and untagged songs are always shown. Catalog order is
    preserved.
    """
    active = frozenset(active_tags)
    songs = list(catalog)
    if not active:
        return songs
    return [song for song in songs if not song.tags or active.intersection(song.tags)]


def is_visible(song: Song, active_tags: Iterable[str]) -> bool:
    active = frozenset(active_tags)
    return not active or not song.tags or bool(active.intersection(song.tags))


def catalog_tags(catalog: Iterable[Song]) -> list[str]:
    """Distinct tags across the catalog, in first-seen order."""
    seen: dict[str, None] = {}
    for song in catalog:
        for tag in song.tags:
            seen.setdefault(tag, None)
    return list(seen)

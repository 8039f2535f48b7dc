"""Django signals for cache invalidation and change notification.

Changes are published only after the surrounding transaction commits, so
observers never see rows that could still roll back.
"""

from django.core.cache import cache
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from live.domain import PerformerId
from live.models import SessionState, Song, SongRequest, Transaction
from live.realtime import Change, ChangeKind, Collection, default_feed
from live.stores.django_store import catalog_cache_key


def _publish(instance, collection: Collection, created: bool | None) -> None:
    if created is None:
        kind = ChangeKind.DELETE
    else:
        kind = ChangeKind.INSERT if created else ChangeKind.UPDATE
    change = Change(
        performer_id=PerformerId(instance.performer_id),
        collection=collection,
        kind=kind,
        record_id=str(instance.pk),
    )
    transaction.on_commit(lambda: default_feed.publish(change))


@receiver(post_save, sender=SongRequest)
def request_saved(sender, instance, created, **kwargs):
    _publish(instance, Collection.REQUESTS, created)


@receiver(post_delete, sender=SongRequest)
def request_deleted(sender, instance, **kwargs):
    _publish(instance, Collection.REQUESTS, None)


@receiver(post_save, sender=SessionState)
def session_state_saved(sender, instance, created, **kwargs):
    _publish(instance, Collection.SESSION_STATE, created)


@receiver(post_save, sender=Transaction)
def transaction_saved(sender, instance, created, **kwargs):
    _publish(instance, Collection.TRANSACTIONS, created)


@receiver([post_save, post_delete], sender=Song)
def invalidate_catalog_cache(sender, instance, **kwargs):
    """Invalidate the performer's cached catalog when a song is saved or deleted."""
    cache.delete(catalog_cache_key(PerformerId(instance.performer_id)))
    _publish(instance, Collection.SONGS, kwargs.get("created"))

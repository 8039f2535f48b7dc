"""Profile service - the set-once public URL slug."""

import logging

from live.context import PerformerContext
from live.domain import Performer, UrlSlug
from live.domain.errors import ErrorCode, PerformerNotFoundError, ValidationError
from live.stores.interfaces import LiveStore

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, store: LiveStore) -> None:
        self._store = store

    def claim_url_slug(self, ctx: PerformerContext, slug: str) -> Performer:
        """Assign the performer's permanent page URL.

        Raises:
            ValidationError: If the slug is malformed or one is already set.
            ConflictError: If another performer owns the slug.
        """
        performer = self._store.get_performer(ctx.performer_id)
        if performer is None:
            raise PerformerNotFoundError(str(ctx.performer_id))
        if performer.url_slug:
            raise ValidationError(
                "Your page URL cannot be changed once set",
                code=ErrorCode.SLUG_ALREADY_SET,
            )
        try:
            url_slug = UrlSlug.normalize(slug or "")
        except ValueError as e:
            raise ValidationError(str(e)) from e

        performer = self._store.set_url_slug(ctx.performer_id, url_slug)
        logger.info(f"Performer {ctx.performer_id} claimed /{url_slug}")
        return performer

from live.domain.models import (
    Gig,
    Performer,
    RequestStatus,
    SessionState,
    Song,
    SongRequest,
    Transaction,
    TransactionType,
)
from live.domain.value_objects import (
    Money,
    PerformerId,
    RequestCap,
    RequestId,
    SongId,
    UrlSlug,
)

__all__ = [
    "Gig",
    "Performer",
    "RequestStatus",
    "SessionState",
    "Song",
    "SongRequest",
    "Transaction",
    "TransactionType",
    "Money",
    "PerformerId",
    "RequestCap",
    "RequestId",
    "SongId",
    "UrlSlug",
]

from live.handlers.views import (
    ArtistPageView,
    EarningsView,
    GoLiveView,
    GoOfflineView,
    LiveSettingsView,
    MarkPlayedView,
    QueueView,
    ReopenSongView,
    SongRequestCreateView,
    TipCreateView,
    UndoOfflineView,
    UrlSlugView,
)

__all__ = [
    "ArtistPageView",
    "EarningsView",
    "GoLiveView",
    "GoOfflineView",
    "LiveSettingsView",
    "MarkPlayedView",
    "QueueView",
    "ReopenSongView",
    "SongRequestCreateView",
    "TipCreateView",
    "UndoOfflineView",
    "UrlSlugView",
]

from django.urls import path

from live.handlers import (
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

urlpatterns = [
    # Audience
    path("artists/<slug:slug>", ArtistPageView.as_view(), name="artist-page"),
    path(
        "artists/<slug:slug>/requests",
        SongRequestCreateView.as_view(),
        name="song-request-create",
    ),
    path("artists/<slug:slug>/tips", TipCreateView.as_view(), name="tip-create"),
    # Performer
    path("live/queue", QueueView.as_view(), name="live-queue"),
    path("live/go-live", GoLiveView.as_view(), name="go-live"),
    path("live/go-offline", GoOfflineView.as_view(), name="go-offline"),
    path("live/undo-offline", UndoOfflineView.as_view(), name="undo-offline"),
    path("live/settings", LiveSettingsView.as_view(), name="live-settings"),
    path("live/requests/played", MarkPlayedView.as_view(), name="mark-played"),
    path(
        "live/songs/<str:song_id>/reopen",
        ReopenSongView.as_view(),
        name="reopen-song",
    ),
    path("live/earnings", EarningsView.as_view(), name="earnings"),
    path("profile/slug", UrlSlugView.as_view(), name="url-slug"),
]

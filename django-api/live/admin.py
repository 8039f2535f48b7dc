from django.contrib import admin

from live.models import Gig, Performer, SessionState, Song, SongRequest, Transaction


class SongInline(admin.TabularInline):
    model = Song
    extra = 1


class GigInline(admin.TabularInline):
    model = Gig
    extra = 0


class SessionStateInline(admin.StackedInline):
    model = SessionState
    can_delete = False


@admin.register(Performer)
class PerformerAdmin(admin.ModelAdmin):
    list_display = ["name", "url_slug", "created_at"]
    search_fields = ["name", "url_slug"]
    inlines = [SessionStateInline, SongInline, GigInline]


@admin.register(Song)
class SongAdmin(admin.ModelAdmin):
    list_display = ["title", "original_artist", "performer", "price", "position"]
    list_filter = ["performer"]
    search_fields = ["title", "original_artist"]


@admin.register(SongRequest)
class SongRequestAdmin(admin.ModelAdmin):
    list_display = [
        "song_title",
        "requester_name",
        "performer",
        "amount_paid",
        "tip",
        "status",
        "created_at",
    ]
    list_filter = ["status", "is_tip_only", "performer"]


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ["type", "amount", "details", "performer", "created_at"]
    list_filter = ["type", "performer"]
    readonly_fields = ["request_id"]

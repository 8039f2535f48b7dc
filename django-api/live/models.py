"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/.
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone


class Performer(models.Model):
    """Persistence model for performer profiles."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="performer"
    )
    name = models.CharField(max_length=255)
    url_slug = models.SlugField(max_length=100, unique=True, blank=True, null=True)
    bio = models.TextField(blank=True, default="")
    picture_url = models.URLField(max_length=500, blank=True, null=True)
    social_facebook = models.CharField(max_length=100, blank=True, default="")
    social_x = models.CharField(max_length=100, blank=True, default="")
    social_instagram = models.CharField(max_length=100, blank=True, default="")
    social_tiktok = models.CharField(max_length=100, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class Song(models.Model):
    """Persistence model for catalog songs."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    performer = models.ForeignKey(
        Performer, on_delete=models.CASCADE, related_name="songs"
    )
    title = models.CharField(max_length=255)
    original_artist = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    position = models.PositiveIntegerField(default=0)
    tags = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position"]
        indexes = [
            models.Index(
                fields=["performer", "position"], name="live_song_perf_pos_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.title} - {self.original_artist}"


class Gig(models.Model):
    """Persistence model for calendar entries."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    performer = models.ForeignKey(
        Performer, on_delete=models.CASCADE, related_name="gigs"
    )
    date = models.DateField()
    time = models.TimeField(blank=True, null=True)
    venue = models.CharField(max_length=255)
    address = models.CharField(max_length=500, blank=True, null=True)
    latitude = models.FloatField(blank=True, null=True)
    longitude = models.FloatField(blank=True, null=True)

    class Meta:
        ordering = ["-date"]

    def __str__(self) -> str:
        return f"{self.venue} - {self.date}"


class SessionState(models.Model):
    """Persistence model for a performer's live session."""

    performer = models.OneToOneField(
        Performer,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="session_state",
    )
    is_live = models.BooleanField(default=False)
    session_end_time = models.DateTimeField(blank=True, null=True)
    request_cap = models.PositiveIntegerField(default=0)
    active_tags = models.JSONField(default=list, blank=True)
    offline_requested_at = models.DateTimeField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.performer.name} - {'live' if self.is_live else 'offline'}"


class SongRequest(models.Model):
    """Persistence model for ledger entries."""

    class Status(models.TextChoices):
        PENDING = "pending"
        PLAYED = "played"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    performer = models.ForeignKey(
        Performer, on_delete=models.CASCADE, related_name="requests"
    )
    song = models.ForeignKey(
        Song,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="requests",
    )
    song_title = models.CharField(max_length=255)
    original_artist = models.CharField(max_length=255, blank=True, default="")
    requester_name = models.CharField(max_length=120)
    requester_email = models.EmailField(blank=True, null=True)
    note = models.TextField(blank=True, null=True)
    amount_paid = models.DecimalField(max_digits=10, decimal_places=2)
    tip = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING
    )
    is_tip_only = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["performer", "status", "is_tip_only"],
                name="live_request_queue_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.song_title} - {self.requester_name}"


class Transaction(models.Model):
    """Persistence model for earnings records.

    request_id is a plain value so that deleting requests never removes
    earnings.
    """

    class Type(models.TextChoices):
        REQUEST = "Request"
        TIP = "Tip"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    performer = models.ForeignKey(
        Performer, on_delete=models.CASCADE, related_name="transactions"
    )
    request_id = models.UUIDField()
    type = models.CharField(max_length=20, choices=Type.choices)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    details = models.CharField(max_length=500)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["request_id", "type"], name="unique_transaction_per_type"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.type} - {self.amount}"

"""Serializers for request parsing and for rendering domain models.

Input serializers only check shape and types; business rules are enforced
by the services so every rule produces the same domain error body.
"""

from rest_framework import serializers


class DomainIdField(serializers.Field):
    """Renders PerformerId/SongId/RequestId value objects as strings."""

    def to_representation(self, value):
        return str(value)


class MoneyField(serializers.Field):
    """Renders Money as a two-decimal string."""

    def to_representation(self, value):
        return str(value)


# Input


class SongRequestInputSerializer(serializers.Serializer):
    song_id = serializers.UUIDField()
    requester_name = serializers.CharField(max_length=120, allow_blank=True)
    amount_paid = serializers.DecimalField(max_digits=10, decimal_places=2)
    tip = serializers.DecimalField(max_digits=10, decimal_places=2, default=0)
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)


class TipInputSerializer(serializers.Serializer):
    requester_name = serializers.CharField(max_length=120, allow_blank=True)
    tip = serializers.DecimalField(max_digits=10, decimal_places=2)
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class GoLiveInputSerializer(serializers.Serializer):
    request_cap = serializers.IntegerField(required=False, min_value=0)
    active_tags = serializers.ListField(
        child=serializers.CharField(max_length=100), required=False
    )
    duration_minutes = serializers.IntegerField(required=False, min_value=1)


class LiveSettingsInputSerializer(serializers.Serializer):
    request_cap = serializers.IntegerField(required=False, min_value=0)
    active_tags = serializers.ListField(
        child=serializers.CharField(max_length=100), required=False
    )
    reset_tags = serializers.BooleanField(required=False, default=False)
    duration_minutes = serializers.IntegerField(required=False, min_value=1)


class MarkPlayedInputSerializer(serializers.Serializer):
    request_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class UrlSlugInputSerializer(serializers.Serializer):
    url_slug = serializers.CharField(max_length=100)


# Output


class SongSerializer(serializers.Serializer):
    """Serializer for Song domain model."""

    id = DomainIdField()
    title = serializers.CharField()
    original_artist = serializers.CharField()
    price = MoneyField()
    position = serializers.IntegerField()
    tags = serializers.ListField(child=serializers.CharField())


class CatalogEntrySerializer(serializers.Serializer):
    song = SongSerializer()
    is_played = serializers.BooleanField()


class GigSerializer(serializers.Serializer):
    """Serializer for Gig domain model."""

    id = serializers.UUIDField()
    date = serializers.DateField()
    time = serializers.TimeField(allow_null=True)
    venue = serializers.CharField()
    address = serializers.CharField(allow_null=True)
    latitude = serializers.FloatField(allow_null=True)
    longitude = serializers.FloatField(allow_null=True)


class PerformerSerializer(serializers.Serializer):
    """Serializer for Performer domain model."""

    id = DomainIdField()
    name = serializers.CharField()
    url_slug = serializers.CharField(allow_null=True)
    bio = serializers.CharField()
    picture_url = serializers.CharField(allow_null=True)
    socials = serializers.DictField(child=serializers.CharField())


class SessionStateSerializer(serializers.Serializer):
    """Serializer for SessionState domain model."""

    is_live = serializers.BooleanField()
    session_end_time = serializers.DateTimeField(allow_null=True)
    request_cap = serializers.IntegerField(source="request_cap.value")
    active_tags = serializers.SerializerMethodField()
    offline_pending = serializers.BooleanField()
    offline_requested_at = serializers.DateTimeField(allow_null=True)

    def get_active_tags(self, state) -> list[str]:
        return sorted(state.active_tags)


class SongRequestSerializer(serializers.Serializer):
    """Serializer for SongRequest domain model."""

    id = DomainIdField()
    song_id = DomainIdField(allow_null=True)
    song_title = serializers.CharField()
    original_artist = serializers.CharField()
    requester_name = serializers.CharField()
    note = serializers.CharField(allow_null=True)
    amount_paid = MoneyField()
    tip = MoneyField()
    status = serializers.CharField(source="status.value")
    is_tip_only = serializers.BooleanField()
    created_at = serializers.DateTimeField()


class RequestGroupSerializer(serializers.Serializer):
    song_id = DomainIdField(allow_null=True)
    song_title = serializers.CharField()
    original_artist = serializers.CharField()
    request_ids = serializers.ListField(child=DomainIdField())
    requesters = serializers.CharField()
    requester_count = serializers.IntegerField()
    notes = serializers.ListField(child=serializers.CharField())
    total_paid = MoneyField()
    total_tip = MoneyField()
    request_amount = MoneyField()
    first_requested_at = serializers.DateTimeField()
    last_requested_at = serializers.DateTimeField()


class QueueViewSerializer(serializers.Serializer):
    grouped_pending = RequestGroupSerializer(many=True)
    played_grouped = RequestGroupSerializer(many=True)
    tips = SongRequestSerializer(many=True)
    pending_count = serializers.IntegerField()
    remaining_capacity = serializers.IntegerField(allow_null=True)


class DashboardSerializer(serializers.Serializer):
    session = SessionStateSerializer()
    queue = QueueViewSerializer()
    all_tags = serializers.ListField(child=serializers.CharField())
    time_left = serializers.CharField(source="time_left_display")


class PublicQueueEntrySerializer(serializers.Serializer):
    song_title = serializers.CharField()
    requester_count = serializers.IntegerField()


class PublicPageSerializer(serializers.Serializer):
    performer = PerformerSerializer()
    is_live = serializers.BooleanField()
    accepting_requests = serializers.BooleanField()
    time_left = serializers.CharField(source="time_left_display")
    songs = CatalogEntrySerializer(many=True)
    queue = PublicQueueEntrySerializer(many=True)
    remaining_capacity = serializers.IntegerField(allow_null=True)
    gigs = GigSerializer(many=True)


class TransactionSerializer(serializers.Serializer):
    """Serializer for Transaction domain model."""

    id = serializers.UUIDField()
    request_id = DomainIdField()
    type = serializers.CharField(source="type.value")
    amount = MoneyField()
    details = serializers.CharField()
    created_at = serializers.DateTimeField()


class EarningsSerializer(serializers.Serializer):
    transactions = TransactionSerializer(many=True)
    gross = MoneyField()
    commission = MoneyField()
    net = MoneyField()

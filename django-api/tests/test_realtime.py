"""Tests for the change feed and queue watching.

Run with: pytest tests/test_realtime.py -v
"""

from uuid import uuid4

from live.domain import PerformerId
from live.realtime import Change, ChangeFeed, ChangeKind, Collection


def change(performer_id: PerformerId) -> Change:
    return Change(performer_id, Collection.REQUESTS, ChangeKind.INSERT)


class TestChangeFeed:
    """Tests for ChangeFeed."""

    def test_delivers_only_to_matching_performer(self):
        feed = ChangeFeed()
        mine, theirs = PerformerId(uuid4()), PerformerId(uuid4())
        received = []
        feed.subscribe(mine, received.append)

        feed.publish(change(theirs))
        feed.publish(change(mine))

        assert received == [change(mine)]

    def test_close_stops_delivery(self):
        feed = ChangeFeed()
        performer_id = PerformerId(uuid4())
        received = []
        subscription = feed.subscribe(performer_id, received.append)

        subscription.close()
        subscription.close()
        feed.publish(change(performer_id))

        assert received == []
        assert feed.subscriber_count(performer_id) == 0

    def test_failing_observer_does_not_block_others(self, caplog):
        feed = ChangeFeed()
        performer_id = PerformerId(uuid4())
        received = []

        def broken(_change):
            raise RuntimeError("boom")

        feed.subscribe(performer_id, broken)
        feed.subscribe(performer_id, received.append)
        feed.publish(change(performer_id))

        assert len(received) == 1
        assert "Observer failed" in caplog.text


class TestWatch:
    """Tests for QueueService.watch over the in-memory store."""

    def test_watch_pushes_fresh_queue_on_submit(self, services, ctx, live_performer):
        views = []
        subscription = services.queue.watch(ctx, views.append)

        services.ledger.submit(ctx.performer_id, live_performer.id, "Ann", "5")

        assert views[-1].pending_count == 1
        assert views[-1].remaining_capacity == 4
        subscription.close()

    def test_watch_sees_mark_played(self, services, ctx, live_performer):
        request = services.ledger.submit(ctx.performer_id, live_performer.id, "Ann", "5")
        views = []
        subscription = services.queue.watch(ctx, views.append)

        services.ledger.mark_played(ctx, [request.id])

        assert views
        assert views[-1].pending_count == 0
        assert len(views[-1].played_grouped) == 1
        subscription.close()

    def test_watch_sees_cap_change(self, services, ctx, live_performer):
        views = []
        subscription = services.queue.watch(ctx, views.append)

        services.sessions.set_request_cap(ctx, 2)

        assert views[-1].remaining_capacity == 2
        subscription.close()

    def test_closed_watch_receives_nothing(self, services, ctx, live_performer):
        views = []
        services.queue.watch(ctx, views.append).close()

        services.ledger.submit(ctx.performer_id, live_performer.id, "Ann", "5")

        assert views == []

"""Tests for the update pipeline (mocked feed client and publisher)."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from signage_feed.config import AppConfig
from signage_feed.decoder import FeedDecodeError
from signage_feed.feed_client import FeedClient, FeedError
from signage_feed.models import PublishResult
from signage_feed.pipeline import UpdatePipeline
from signage_feed.publisher import CatalogPublisher, RemoteRejection
from signage_feed.scheduler import UpdateScheduler

NOW = 1_760_000_000


def _ok_result(count=6):
    return PublishResult(
        success=True,
        items_updated=count,
        timestamp=datetime.now(timezone.utc),
        response={"ok": True},
    )


class TestUpdatePipeline:
    def _make_pipeline(self, config=None):
        config = config or AppConfig(catalog_group="test-group")
        feed = AsyncMock(spec=FeedClient)
        publisher = AsyncMock(spec=CatalogPublisher)
        publisher.publish.return_value = _ok_result()
        pipeline = UpdatePipeline(
            config=config, feed_client=feed, publisher=publisher, clock=lambda: NOW + 0.7
        )
        return pipeline, feed, publisher

    @pytest.mark.asyncio
    async def test_worked_example_end_to_end(self, make_feed):
        pipeline, feed, publisher = self._make_pipeline()
        feed.fetch_feed.return_value = make_feed(
            [
                ("F", [("D15N", NOW + 125)]),
                ("F", [("D15N", NOW + 3700)]),
                ("A", [("D15S", NOW + 300)]),
            ]
        )

        result = await pipeline.run_cycle()

        assert result.items_updated == 6
        items, group = publisher.publish.call_args.args
        assert group == "test-group"
        assert {k: v.minutes_away for k, v in items.items()} == {
            "queens_1": "2 min",
            "queens_2": "62 min",
            "queens_3": "--",
            "brooklyn_1": "--",
            "brooklyn_2": "--",
            "brooklyn_3": "--",
        }

    @pytest.mark.asyncio
    async def test_fetch_arrivals_uses_configured_directions(self, make_feed):
        pipeline, feed, _ = self._make_pipeline()
        feed.fetch_feed.return_value = make_feed(
            [("F", [("D15N", NOW + 60), ("D15S", NOW - 600), ("D15S", NOW + 240)])]
        )

        queens, brooklyn = await pipeline.fetch_arrivals()

        assert queens.label == "Queens-bound"
        assert [t.minutes_away for t in queens.next_three_trains] == ["1 min"]
        assert [t.minutes_away for t in brooklyn.next_three_trains] == ["4 min"]

    @pytest.mark.asyncio
    async def test_empty_feed_publishes_placeholders(self, make_feed):
        pipeline, feed, publisher = self._make_pipeline()
        feed.fetch_feed.return_value = make_feed([], alert_entities=1)

        await pipeline.run_cycle()

        items, _ = publisher.publish.call_args.args
        assert len(items) == 6
        assert {item.minutes_away for item in items.values()} == {"--"}

    @pytest.mark.asyncio
    async def test_feed_error_propagates(self):
        pipeline, feed, publisher = self._make_pipeline()
        feed.fetch_feed.side_effect = FeedError("Feed returned 503", status_code=503)

        with pytest.raises(FeedError):
            await pipeline.run_cycle()
        publisher.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_decode_error_propagates(self):
        pipeline, feed, publisher = self._make_pipeline()
        feed.fetch_feed.return_value = b"not a protobuf payload"

        with pytest.raises(FeedDecodeError):
            await pipeline.run_cycle()
        publisher.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_publish_error_propagates(self, make_feed):
        pipeline, feed, publisher = self._make_pipeline()
        feed.fetch_feed.return_value = make_feed([])
        publisher.publish.side_effect = RemoteRejection(401, "Invalid API key")

        with pytest.raises(RemoteRejection):
            await pipeline.run_cycle()


class TestScheduledPipeline:
    @pytest.mark.asyncio
    async def test_failed_cycle_does_not_affect_next(self, make_feed):
        config = AppConfig()
        feed = AsyncMock(spec=FeedClient)
        feed.fetch_feed.side_effect = [
            b"not a protobuf payload",
            make_feed([("F", [("D15S", NOW + 600)])]),
        ]
        publisher = AsyncMock(spec=CatalogPublisher)
        publisher.publish.side_effect = [_ok_result()]
        pipeline = UpdatePipeline(config, feed, publisher, clock=lambda: NOW)
        scheduler = UpdateScheduler(pipeline.run_cycle, interval=30)

        assert await scheduler.run_cycle() is False
        assert await scheduler.run_cycle() is True

        items, _ = publisher.publish.call_args.args
        assert items["brooklyn_1"].minutes_away == "10 min"
        status = scheduler.status()
        assert status.cycles_failed == 1
        assert status.cycles_succeeded == 1
        assert "decode" in status.last_error

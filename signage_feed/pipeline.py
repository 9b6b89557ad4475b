"""
Update pipeline: one fetch -> decode -> select -> format -> publish cycle.

Every stage lets its errors propagate; the scheduler decides what to do
with a failed cycle.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from signage_feed.config import AppConfig
from signage_feed.decoder import decode_feed
from signage_feed.feed_client import FeedClient
from signage_feed.formatter import format_catalog_items
from signage_feed.models import DirectionalArrivals, PublishResult
from signage_feed.publisher import CatalogPublisher
from signage_feed.selection import select_arrivals

logger = logging.getLogger(__name__)


class UpdatePipeline:
    """Turns the realtime feed into one catalog push."""

    def __init__(
        self,
        config: AppConfig,
        feed_client: FeedClient,
        publisher: CatalogPublisher,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._feed = feed_client
        self._publisher = publisher
        self._clock = clock

    async def fetch_arrivals(self) -> list[DirectionalArrivals]:
        """Fetch and decode the feed, then select arrivals per direction."""
        raw = await self._feed.fetch_feed()
        entities = decode_feed(raw)
        now = int(self._clock())
        arrivals = select_arrivals(
            entities,
            route_id=self._config.route_id,
            directions=self._config.directions,
            now=now,
            limit=self._config.slots_per_direction,
        )
        for direction in arrivals:
            logger.info(
                "%s (%s): %s",
                direction.label,
                direction.stop_id,
                ", ".join(t.minutes_away for t in direction.next_three_trains)
                or "no trains",
            )
        return arrivals

    async def run_cycle(self) -> PublishResult:
        """Run one full cycle and return the publish result."""
        logger.info("Starting catalog update")
        arrivals = await self.fetch_arrivals()
        items = format_catalog_items(
            arrivals,
            slots=self._config.slots_per_direction,
            placeholder=self._config.placeholder,
        )
        result = await self._publisher.publish(items, self._config.catalog_group)
        logger.info(
            "Catalog update complete: %d items pushed to %s",
            result.items_updated,
            self._config.catalog_group,
        )
        return result

"""
Shared test fixtures for signage-feed.

Provides:
- A GTFS-Realtime feed builder (protobuf bytes)
- Fake feed and catalog servers for E2E tests
- Temporary config files
"""

from typing import Iterable, Optional

import pytest
from google.transit import gtfs_realtime_pb2
from pytest_httpserver import HTTPServer

NOW = 1_760_000_000  # fixed reference epoch for deterministic tests


# ---------------------------------------------------------------------------
# Feed builder
# ---------------------------------------------------------------------------

def build_feed(
    trips: Iterable[tuple[str, list[tuple[Optional[str], Optional[int]]]]],
    alert_entities: int = 0,
) -> bytes:
    """
    Build a serialized FeedMessage.

    Args:
        trips: (route_id, [(stop_id, arrival_epoch), ...]) per trip update.
               A None stop_id or arrival leaves that field unset.
        alert_entities: Number of extra entities without a trip update.
    """
    feed = gtfs_realtime_pb2.FeedMessage()
    feed.header.gtfs_realtime_version = "2.0"
    feed.header.timestamp = NOW

    for i, (route_id, stops) in enumerate(trips):
        entity = feed.entity.add()
        entity.id = f"trip-{i + 1}"
        trip_update = entity.trip_update
        trip_update.trip.trip_id = f"0{i + 1}_{route_id}..N"
        trip_update.trip.route_id = route_id
        for stop_id, arrival in stops:
            stu = trip_update.stop_time_update.add()
            if stop_id is not None:
                stu.stop_id = stop_id
            if arrival is not None:
                stu.arrival.time = arrival

    for i in range(alert_entities):
        entity = feed.entity.add()
        entity.id = f"alert-{i + 1}"
        entity.alert.header_text.translation.add().text = "Delays"

    return feed.SerializeToString()


@pytest.fixture()
def make_feed():
    """Factory fixture returning build_feed."""
    return build_feed


# ---------------------------------------------------------------------------
# E2E fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def fake_upstream():
    """
    A real HTTP server impersonating both the feed provider and the catalog.

    Tests configure responses per path with expect_request().
    """
    server = HTTPServer(host="127.0.0.1")
    server.start()
    yield server
    server.clear()
    if server.is_running():
        server.stop()


@pytest.fixture()
def config_file(fake_upstream, tmp_path):
    """Write a temporary config.yaml pointing at the fake server."""
    base_url = f"http://{fake_upstream.host}:{fake_upstream.port}"
    config_content = f"""\
feed_url: "{base_url}/feed"
catalog_base_url: "{base_url}"
catalog_group: "test-group"
route_id: "F"
update_interval: 1
request_timeout: 2

directions:
  - key: "queens"
    label: "Queens-bound"
    stop_id: "D15N"
  - key: "brooklyn"
    label: "Brooklyn-bound"
    stop_id: "D15S"
"""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(config_content)
    return str(config_path)

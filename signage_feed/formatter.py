"""Map selected arrivals onto the fixed set of catalog item slots."""

from __future__ import annotations

from typing import Iterable

from signage_feed.models import CatalogItem, DirectionalArrivals

PLACEHOLDER = "--"


def item_id(prefix: str, slot: int) -> str:
    """Catalog item id for a 1-based slot, e.g. ``queens_1``."""
    return f"{prefix}_{slot}"


def format_catalog_items(
    directions: Iterable[DirectionalArrivals],
    slots: int = 3,
    placeholder: str = PLACEHOLDER,
) -> dict[str, CatalogItem]:
    """
    Build the catalog item mapping.

    Every direction always yields ``slots`` items; slots without an arrival
    carry the placeholder.
    """
    items: dict[str, CatalogItem] = {}
    for direction in directions:
        trains = direction.next_three_trains
        for slot in range(1, slots + 1):
            if slot <= len(trains):
                label = trains[slot - 1].minutes_away
            else:
                label = placeholder
            items[item_id(direction.key, slot)] = CatalogItem(minutes_away=label)
    return items


def catalog_payload(items: dict[str, CatalogItem]) -> dict[str, dict]:
    """JSON-ready form of the item mapping, as sent under ``data``."""
    return {key: item.model_dump(by_alias=True) for key, item in items.items()}

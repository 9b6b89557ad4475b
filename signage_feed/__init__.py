"""signage-feed: push realtime subway arrivals to a digital-signage catalog."""

__version__ = "1.0.0"

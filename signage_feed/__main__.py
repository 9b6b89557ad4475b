"""Run the signage-feed server: ``python -m signage_feed``."""

from __future__ import annotations

import os

import uvicorn

from signage_feed.config import load_config


def main() -> None:
    config = load_config()
    host = os.environ.get("HOST", "0.0.0.0")
    uvicorn.run("signage_feed.app:app", host=host, port=config.port)


if __name__ == "__main__":
    main()

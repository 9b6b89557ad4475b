"""
FastAPI application for signage-feed.

Lifespan manages the httpx client, publisher, pipeline and update scheduler.
Routes: / (documentation page), /example (manual push), /status, /health.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse, JSONResponse

from signage_feed.config import AppConfig, load_config
from signage_feed.feed_client import FeedClient
from signage_feed.formatter import catalog_payload
from signage_feed.models import CatalogItem, SchedulerStatus
from signage_feed.pipeline import UpdatePipeline
from signage_feed.publisher import CatalogError, CatalogPublisher
from signage_feed.scheduler import UpdateScheduler

logger = logging.getLogger(__name__)

TEMPLATE_PATH = Path(__file__).parent / "templates" / "index.html"

EXAMPLE_ITEMS = {
    "queens_1": "5 min",
    "queens_2": "12 min",
    "queens_3": "18 min",
    "brooklyn_1": "3 min",
    "brooklyn_2": "8 min",
    "brooklyn_3": "15 min",
}

# Global references set during lifespan
_config: Optional[AppConfig] = None
_publisher: Optional[CatalogPublisher] = None
_scheduler: Optional[UpdateScheduler] = None


def configure_logging() -> None:
    log_level = os.environ.get("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: load config, create HTTP client, publisher, scheduler."""
    global _config, _publisher, _scheduler

    configure_logging()

    _config = load_config()
    logger.info(
        "Loaded config: route=%s, directions=%s, group=%s, interval=%ss",
        _config.route_id,
        ", ".join(f"{d.key}:{d.stop_id}" for d in _config.directions),
        _config.catalog_group,
        _config.update_interval,
    )
    if not _config.catalog_api_key:
        logger.warning("NOVISIGN_API_KEY is not set; catalog pushes will be rejected")

    async with httpx.AsyncClient() as http_client:
        feed = FeedClient(
            http_client=http_client,
            feed_url=_config.feed_url,
            timeout=_config.request_timeout,
        )
        _publisher = CatalogPublisher(
            http_client=http_client,
            base_url=_config.catalog_url_base,
            api_key=_config.catalog_api_key,
            default_group=_config.catalog_group,
            timeout=_config.request_timeout,
        )
        pipeline = UpdatePipeline(config=_config, feed_client=feed, publisher=_publisher)
        _scheduler = UpdateScheduler(pipeline.run_cycle, _config.update_interval)
        _scheduler.start()
        logger.info("Signage feed ready")
        try:
            yield
        finally:
            logger.info("Shutting down...")
            await _scheduler.stop()

    _scheduler = None
    _publisher = None
    _config = None


app = FastAPI(
    title="Signage Feed",
    version="1.0.0",
    description="""
Pushes realtime subway arrivals to a digital-signage catalog.

Every update interval the service downloads the GTFS-Realtime feed, picks the
next three trains per direction and publishes them as catalog items
(`queens_1` .. `brooklyn_3`, each with a `minutesAway` field).
    """.strip(),
    lifespan=lifespan,
    openapi_tags=[
        {"name": "catalog", "description": "Catalog push endpoints"},
        {"name": "health", "description": "Service health and scheduler status"},
    ],
)


def _render_index(config: AppConfig) -> str:
    html = TEMPLATE_PATH.read_text(encoding="utf-8")
    interval = config.update_interval
    return (
        html.replace("{{CATALOG_ITEMS_GROUP}}", config.catalog_group)
        .replace("{{UPDATE_INTERVAL}}", f"{interval:g}")
        .replace("{{STUDIO_DOMAIN}}", config.catalog_domain)
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index():
    """Documentation page describing the catalog integration."""
    if _config is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    if not TEMPLATE_PATH.exists():
        return JSONResponse(
            status_code=500,
            content={
                "error": "index.html not found",
                "tip": f"Make sure index.html is in {TEMPLATE_PATH.parent}",
            },
        )
    try:
        return HTMLResponse(_render_index(_config))
    except OSError as exc:
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to load index.html", "message": str(exc)},
        )


@app.get("/example", tags=["catalog"], summary="Push example data")
async def push_example():
    """
    Push a fixed example item mapping to the configured catalog group.

    Useful to check credentials and creative bindings without waiting for
    live trains. Failures are reported to the caller with HTTP 500.
    """
    if _config is None or _publisher is None:
        raise HTTPException(status_code=503, detail="Service not ready")

    items = {key: CatalogItem(minutes_away=label) for key, label in EXAMPLE_ITEMS.items()}
    body = {"data": catalog_payload(items)}
    group = _config.catalog_group

    logger.info("Pushing example data to catalog group %s", group)
    try:
        result = await _publisher.publish(items, group)
    except CatalogError as exc:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to push example data to catalog",
                "message": str(exc),
                "exampleDataStructure": body["data"],
            },
        )

    return {
        "description": "Example data structure and live push to the catalog",
        "pushedTo": group,
        "apiUrl": _config.catalog_url(group),
        "method": "POST",
        "headers": {
            "Content-Type": "application/json",
            "X-API-KEY": "***hidden***",
        },
        "body": body,
        "result": result.model_dump(mode="json", by_alias=True),
        "howToUse": {
            "step1": "Add an api connection to the creative, add a text box widget",
            "step2": f'Select your items group: "{group}"',
            "step3": "Reference items by ID: {{queens_1.minutesAway}}",
            "step4": "Data has been pushed live - check the creative preview!",
        },
    }


@app.get(
    "/status",
    response_model=SchedulerStatus,
    tags=["health"],
    summary="Update scheduler status",
)
async def status():
    """Counters and last outcome of the background update loop."""
    if _scheduler is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return _scheduler.status()


@app.get("/health", tags=["health"], summary="Health check")
async def health():
    """Always returns HTTP 200. No dependencies checked."""
    return {"status": "healthy"}

"""
Configuration loading for signage-feed.

Loads non-secret settings from config.yaml, secrets and deployment
settings from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator

DEFAULT_CONFIG_PATH = "config.yaml"
DEFAULT_FEED_URL = (
    "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-bdfm"
)


class DirectionConfig(BaseModel):
    """One direction of travel, bound to a single stop identifier."""

    key: str = Field(min_length=1, pattern=r"^[A-Za-z0-9_-]+$")
    label: str
    stop_id: str = Field(min_length=1)


def _default_directions() -> list[DirectionConfig]:
    return [
        DirectionConfig(key="queens", label="Queens-bound", stop_id="D15N"),
        DirectionConfig(key="brooklyn", label="Brooklyn-bound", stop_id="D15S"),
    ]


class AppConfig(BaseModel):
    """Application configuration. Secrets come from env vars, rest from YAML."""

    # Secrets (from environment only)
    catalog_api_key: Optional[str] = None

    # Catalog settings
    catalog_domain: str = "app.novisign.com"
    catalog_base_url: Optional[str] = None
    catalog_group: str = Field(default="mta-f-train", min_length=1)

    # Feed settings
    feed_url: str = DEFAULT_FEED_URL
    route_id: str = Field(default="F", min_length=1)
    directions: list[DirectionConfig] = Field(
        default_factory=_default_directions, min_length=2, max_length=2
    )

    # Scheduling
    update_interval: float = Field(default=30.0, ge=1)
    request_timeout: float = Field(default=10.0, gt=0)

    # Output shape
    slots_per_direction: int = Field(default=3, ge=1)
    placeholder: str = "--"

    # Server
    port: int = Field(default=3000, ge=0, le=65535)

    @model_validator(mode="after")
    def validate_directions(self) -> "AppConfig":
        keys = [d.key for d in self.directions]
        duplicates = [k for k in keys if keys.count(k) > 1]
        if duplicates:
            raise ValueError(f"Duplicate direction keys: {set(duplicates)}")
        stop_ids = [d.stop_id for d in self.directions]
        duplicates = [s for s in stop_ids if stop_ids.count(s) > 1]
        if duplicates:
            raise ValueError(
                f"Directions must use distinct stop ids, got duplicates: {set(duplicates)}"
            )
        return self

    @property
    def catalog_url_base(self) -> str:
        """Base URL of the catalog API (scheme + host)."""
        if self.catalog_base_url:
            return self.catalog_base_url.rstrip("/")
        return f"https://{self.catalog_domain}"

    def catalog_url(self, group: Optional[str] = None) -> str:
        """Full catalog items URL for a group (default: configured group)."""
        return f"{self.catalog_url_base}/catalog/items/{group or self.catalog_group}"


def load_config(config_path: str | None = None) -> AppConfig:
    """
    Load configuration from YAML file + environment variables.

    Args:
        config_path: Path to config.yaml. If None, reads CONFIG_PATH env var
                     (default: config.yaml in current directory). A missing
                     default file means "use built-in defaults"; a missing
                     explicit path is an error.

    Returns:
        Validated AppConfig instance.
    """
    explicit = config_path is not None or "CONFIG_PATH" in os.environ
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)
    raw: dict | None = None
    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f)
    elif explicit:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError("Config root must be a mapping.")

    # Secrets from environment (never from YAML)
    config_data = {**raw, "catalog_api_key": os.environ.get("NOVISIGN_API_KEY")}

    domain = os.environ.get("NOVISIGN_STUDIO_DOMAIN")
    if domain:
        config_data["catalog_domain"] = domain

    port = os.environ.get("PORT")
    if port:
        config_data["port"] = port

    return AppConfig(**config_data)

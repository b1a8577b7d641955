"""
Configuration loading for the browser monitor.

Settings live in a YAML file (``monitor.yml`` by default) with one section
per component; a handful of environment variables override the file so
deployments can be tuned through ``.env``.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field

from .classifier import DEFAULT_SEARCH_ENGINE, DEFAULT_SEARCH_MARKER
from .router import ADDRESS_BAR_IDS, BROWSER_PACKAGES
from .tree import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "monitor.yml"


class MonitorSettings(BaseModel):
    log_file: str = "browser_data.txt"
    packages: List[str] = Field(default_factory=lambda: sorted(BROWSER_PACKAGES))
    address_bar_ids: List[str] = Field(default_factory=lambda: list(ADDRESS_BAR_IDS))
    search_marker: str = DEFAULT_SEARCH_MARKER
    search_engine: str = DEFAULT_SEARCH_ENGINE
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)


class ScraperSettings(BaseModel):
    interval_seconds: float = Field(default=10.0, ge=0)
    timeout_seconds: float = Field(default=5.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=1.0, ge=0)
    user_agent: str = "Mozilla/5.0 (Android)"
    snippet_length: int = Field(default=200, ge=1)


class WatchdogSettings(BaseModel):
    interval_seconds: float = Field(default=300.0, gt=0)
    timezone: str = "UTC"


class MonitorConfig(BaseModel):
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)
    scraper: ScraperSettings = Field(default_factory=ScraperSettings)
    watchdog: WatchdogSettings = Field(default_factory=WatchdogSettings)


def _apply_env(data: Dict[str, Any]) -> Dict[str, Any]:
    log_file = os.getenv("MONITOR_LOG_FILE")
    if log_file:
        data.setdefault("monitor", {})["log_file"] = log_file

    timezone = os.getenv("SCHEDULER_TIMEZONE")
    if timezone:
        data.setdefault("watchdog", {})["timezone"] = timezone

    return data


def load_config(config_path: Optional[str] = None) -> MonitorConfig:
    """Load configuration from YAML, falling back to defaults."""
    path = Path(config_path or os.getenv("MONITOR_CONFIG", DEFAULT_CONFIG_PATH))

    data: Dict[str, Any] = {}
    if path.exists():
        with path.open() as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        logger.debug(f"Loaded config from {path}")
    else:
        logger.warning(f"Config file not found: {path}, using defaults")

    return MonitorConfig.model_validate(_apply_env(data))

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

APP_DIR = Path(__file__).resolve().parent

# Bundled example roadmap, shown when the app starts.
DEFAULT_SOURCE = str(APP_DIR / "sample_inputs" / "react-roadmap.json")
DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


@dataclass(frozen=True)
class AppConfig:
    default_source: str = DEFAULT_SOURCE
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build the config from ROADMAP_* environment variables (blank means default)."""
        env = os.environ if environ is None else environ

        source = (env.get("ROADMAP_DEFAULT_SOURCE") or "").strip() or DEFAULT_SOURCE

        timeout = DEFAULT_FETCH_TIMEOUT
        raw_timeout = (env.get("ROADMAP_FETCH_TIMEOUT") or "").strip()
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
                if timeout <= 0:
                    raise ValueError("timeout must be positive")
            except ValueError:
                logger.warning("Ignoring ROADMAP_FETCH_TIMEOUT=%r, using %s seconds", raw_timeout, DEFAULT_FETCH_TIMEOUT)
                timeout = DEFAULT_FETCH_TIMEOUT

        level = (env.get("ROADMAP_LOG_LEVEL") or "").strip().upper() or DEFAULT_LOG_LEVEL
        if not isinstance(logging.getLevelName(level), int):
            logger.warning("Unknown ROADMAP_LOG_LEVEL=%r, using %s", level, DEFAULT_LOG_LEVEL)
            level = DEFAULT_LOG_LEVEL

        return cls(default_source=source, fetch_timeout=timeout, log_level=level)


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    # No-op once the root logger has handlers, so every rerun may call it.
    logging.basicConfig(level=level, format=LOG_FORMAT)

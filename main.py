"""Run the Userhub API under uvicorn."""

import os
from typing import Any

import uvicorn
from loguru import logger

from userhub.api.main import app
from userhub.core.config import Settings, get_settings
from userhub.core.logging import setup_logging

APP_IMPORT_STRING = "userhub.api.main:app"
UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def uvicorn_log_config(level: str) -> dict[str, Any]:
    """Route uvicorn's loggers through Loguru at the configured level."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {
            "default": {"class": "userhub.core.logging.InterceptHandler"},
        },
        "loggers": {
            name: {"handlers": ["default"], "level": level, "propagate": False}
            for name in UVICORN_LOGGERS
        },
    }


def resolve_port(settings: Settings) -> int:
    """Return ``$PORT`` when it holds a valid port, else ``settings.api_port``."""
    raw = os.environ.get("PORT", "").strip()
    if not raw:
        return settings.api_port
    if raw.isascii() and raw.isdigit() and len(raw) <= 5 and 0 < int(raw) < 65536:
        return int(raw)

    logger.warning(
        "Ignoring invalid PORT {!r}, using configured port {}",
        raw,
        settings.api_port,
    )
    return settings.api_port


def main() -> None:
    """Start the server. Debug mode reloads on code changes."""
    settings = get_settings()
    setup_logging(settings)

    port = resolve_port(settings)
    mode = "development mode with auto-reload" if settings.debug else "production mode"
    logger.info(
        "Starting {} on http://{}:{} ({}) - downstream API: {}",
        settings.app_name,
        settings.api_host,
        port,
        mode,
        settings.external_api_config.base_url,
    )

    # Reload needs the app as an import string
    uvicorn.run(
        APP_IMPORT_STRING if settings.debug else app,
        host=settings.api_host,
        port=port,
        reload=settings.debug,
        log_config=uvicorn_log_config(settings.log_config.log_level),
    )


if __name__ == "__main__":
    main()

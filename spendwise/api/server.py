"""Run the API under uvicorn with the configured host and port."""

from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI

from spendwise.api.app import create_app
from spendwise.config import get_settings, validate_all_settings


logger = structlog.get_logger(__name__)


def main(app: Optional[FastAPI] = None):
    """Serve the given app, or a freshly built one."""
    settings = get_settings().app
    app = app or create_app()

    status = validate_all_settings()
    for name in ("jwt", "storage", "app", "openai", "gemini"):
        if status.get(name, False):
            logger.info("service_ready", service=name)
        else:
            logger.warning("service_unavailable", service=name, reason=status.get(f"{name}_error"))

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

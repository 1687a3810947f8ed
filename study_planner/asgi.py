"""ASGI entry point: ``uvicorn study_planner.asgi:app``."""

import logging

from study_planner.core.config import LOG_LEVEL

# Setup logging
logging.basicConfig(level=LOG_LEVEL)

from study_planner.application import app, create_app  # noqa: E402

__all__ = ["app", "create_app"]

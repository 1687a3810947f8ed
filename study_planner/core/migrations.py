"""Alembic helpers used at application startup."""

from __future__ import annotations

import logging

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory

from study_planner.core.config import BASE_DIR

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = BASE_DIR / "migrations"


def build_alembic_config(database_url: str) -> Config:
    # 日本語: alembic.ini を持たず、スクリプト位置と URL をコードで指定 / English: No alembic.ini; script location and URL are set in code
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.set_main_option("sqlalchemy.url", database_url)
    return config


def head_revision(database_url: str) -> str | None:
    return ScriptDirectory.from_config(build_alembic_config(database_url)).get_current_head()


def upgrade_to_head(database_url: str) -> None:
    """Apply planner migrations up to the latest revision."""
    config = build_alembic_config(database_url)
    logger.info("Upgrading planner schema to %s", head_revision(database_url))
    command.upgrade(config, "head")

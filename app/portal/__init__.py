from __future__ import annotations

import logging
from typing import Any

from dotenv import load_dotenv
from sqlalchemy import inspect as sa_inspect

from app.portal.actors import Actor, system_actor
from app.portal.config import Settings, load_settings
from app.portal.db import init_db
from app.portal.models import Base


class Portal:
    """
    Composition root: settings plus the DB engine/sessionmaker in `extensions`.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.extensions: dict[str, Any] = {}
        self.logger = logging.getLogger("app.portal")
        self.schema_health_ok = True
        self.schema_health_missing: list[str] = []

    @property
    def notice_sync_actor(self) -> Actor:
        return system_actor(self.settings.notice_sync_actor_id)


def _configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("app.portal").setLevel(level)


def create_portal(settings: Settings | None = None) -> Portal:
    load_dotenv()
    settings = settings or load_settings()
    _configure_logging(settings)
    portal = Portal(settings)

    # Production guardrails (fail fast with clear logs)
    if settings.is_production:
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required in production.")
        if settings.database_url.startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")

    init_db(portal)
    _run_schema_health_check(portal)

    portal.logger.info("create_portal() complete; env=%s", settings.env)
    return portal


def create_schema(portal: Portal) -> None:
    """Create all tables directly (tests and local development; production uses Alembic)."""
    Base.metadata.create_all(bind=portal.extensions["sqlalchemy_engine"])
    _run_schema_health_check(portal)


def _run_schema_health_check(portal: Portal) -> None:
    # Detect drift between code expectations and DB schema.
    missing: list[str] = []
    engine = portal.extensions["sqlalchemy_engine"]
    insp = sa_inspect(engine)

    if not insp.has_table("static_pages"):
        missing.append("static_pages (table)")
    else:
        cols = {c["name"] for c in insp.get_columns("static_pages")}
        for col in ("revision", "draft_blocks", "published_blocks", "published_at"):
            if col not in cols:
                missing.append(f"static_pages.{col}")

    if not insp.has_table("audit_events"):
        missing.append("audit_events (table)")

    portal.schema_health_missing = missing
    portal.schema_health_ok = not missing
    if missing:
        portal.logger.warning("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))

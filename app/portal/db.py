from __future__ import annotations

import logging
from contextlib import contextmanager
from collections.abc import Generator
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

if TYPE_CHECKING:
    from app.portal import Portal

logger = logging.getLogger(__name__)


def init_db(portal: "Portal") -> None:
    settings = portal.settings
    db_url = settings.database_url
    is_postgres = db_url.startswith("postgres")
    engine_kwargs: dict[str, object] = {
        "future": True,
        "pool_pre_ping": True,
        "echo": settings.sql_echo,
    }
    if is_postgres:
        engine_kwargs.update(
            {
                "pool_recycle": 1800,
                "pool_size": 5,
                "max_overflow": 10,
                "pool_timeout": 30,
            }
        )
    engine = create_engine(db_url, **engine_kwargs)
    if not settings.is_production:
        @event.listens_for(engine, "checkout")
        def _receive_checkout(dbapi_connection, connection_record, connection_proxy):  # type: ignore[no-redef]
            logger.debug("DB connection checkout from pool")
    portal.extensions["sqlalchemy_engine"] = engine
    portal.extensions["sqlalchemy_sessionmaker"] = sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )


@contextmanager
def session_scope(portal: "Portal") -> Generator[Session, None, None]:
    """
    Unit-of-work helper: yields a session and commits/rolls back.
    Service functions only flush; the caller owns the transaction.
    """
    sm = portal.extensions["sqlalchemy_sessionmaker"]
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    # Naive UTC, matching DateTime(timezone=False) columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    pass


class AuditEvent(Base):
    """
    Append-only audit trail event.
    Keep this table intentionally generic; module-specific tables can refer to it by id if needed.
    """

    __tablename__ = "audit_events"
    __table_args__ = (
        UniqueConstraint("request_id", "id", name="uq_audit_request_id_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_id: Mapped[str | None] = mapped_column(String(320), nullable=True)
    actor_is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "page.publish"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "StaticPage"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)  # string for flexibility (uuid/int)

    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.portal.modules.static_pages.models import StaticPage  # noqa: E402,F401

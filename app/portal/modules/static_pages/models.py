from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, validates

from app.portal.models import Base, utcnow
from app.portal.modules.static_pages.snapshots import PageSnapshot, has_unpublished_changes


# JSONB on Postgres, plain JSON elsewhere (SQLite in tests).
PageJSON = JSON().with_variant(JSONB(), "postgresql")


class StaticPage(Base):
    __tablename__ = "static_pages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Stable URL identifier; write-once.
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)

    # Draft (what editors change)
    draft_header: Mapped[dict[str, Any]] = mapped_column(PageJSON, nullable=False)
    draft_blocks: Mapped[list[dict[str, Any]]] = mapped_column(PageJSON, nullable=False, default=list)
    draft_updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
    draft_updated_by: Mapped[str | None] = mapped_column(String(320), nullable=True)

    # Published snapshot (what citizens see); all null until the first publish
    published_header: Mapped[dict[str, Any] | None] = mapped_column(PageJSON, nullable=True)
    published_blocks: Mapped[list[dict[str, Any]] | None] = mapped_column(PageJSON, nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    published_by: Mapped[str | None] = mapped_column(String(320), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
    created_by: Mapped[str | None] = mapped_column(String(320), nullable=True)

    # Optimistic concurrency: bumped by SQLAlchemy on every UPDATE; stale writers get StaleDataError.
    revision: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": revision}

    @validates("slug")
    def _validate_slug_write_once(self, key: str, value: str) -> str:
        current = self.__dict__.get("slug")
        if current is not None and current != value:
            raise ValueError(f"Slug is immutable (page {self.id}: {current!r})")
        return value

    @property
    def draft(self) -> PageSnapshot:
        return PageSnapshot.from_json(self.draft_header, self.draft_blocks)

    @property
    def published(self) -> PageSnapshot | None:
        if self.published_header is None or self.published_blocks is None:
            return None
        return PageSnapshot.from_json(self.published_header, self.published_blocks)

    @property
    def is_published(self) -> bool:
        return self.published is not None

    @property
    def has_unpublished_changes(self) -> bool:
        return has_unpublished_changes(self.draft, self.published)

    def set_draft(self, snapshot: PageSnapshot, *, updated_by: str | None, now: datetime) -> None:
        # Always assign fresh JSON values so the ORM sees the change.
        self.draft_header = snapshot.header_json()
        self.draft_blocks = snapshot.blocks_json()
        self.draft_updated_at = now
        self.draft_updated_by = updated_by

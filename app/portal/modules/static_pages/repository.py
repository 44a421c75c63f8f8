from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.orm.exc import StaleDataError

from app.portal.modules.static_pages.errors import PageNotFound, RevisionConflict
from app.portal.modules.static_pages.models import StaticPage

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def get_page(s: "Session", page_id: int) -> StaticPage:
    page = s.get(StaticPage, page_id)
    if page is None:
        raise PageNotFound(f"Page {page_id} not found")
    return page


def get_page_by_slug(s: "Session", slug: str) -> StaticPage:
    page = s.query(StaticPage).filter(StaticPage.slug == slug).one_or_none()
    if page is None:
        raise PageNotFound(f"Page {slug!r} not found")
    return page


def slug_exists(s: "Session", slug: str) -> bool:
    return s.query(StaticPage.id).filter(StaticPage.slug == slug).first() is not None


def list_pages(s: "Session", *, page: int = 1, per_page: int = 50) -> tuple[list[StaticPage], int]:
    page = max(page, 1)
    per_page = min(max(per_page, 1), 200)
    q = s.query(StaticPage)
    total = q.count()
    items = q.order_by(StaticPage.slug.asc()).offset((page - 1) * per_page).limit(per_page).all()
    return items, total


def list_published_pages(s: "Session") -> list[StaticPage]:
    return (
        s.query(StaticPage)
        .filter(StaticPage.published_at.is_not(None))
        .order_by(StaticPage.slug.asc())
        .all()
    )


def get_published_page(s: "Session", slug: str) -> StaticPage:
    page = (
        s.query(StaticPage)
        .filter(StaticPage.slug == slug, StaticPage.published_at.is_not(None))
        .one_or_none()
    )
    if page is None or page.published is None:
        raise PageNotFound(f"Published page {slug!r} not found")
    return page


def delete_page(s: "Session", page_id: int) -> StaticPage:
    page = get_page(s, page_id)
    s.delete(page)
    s.flush()
    return page


def check_revision(page: StaticPage, expected_revision: int | None) -> None:
    """Reject writes based on a stale read. `None` skips the check (per-block operations)."""
    if expected_revision is not None and expected_revision != page.revision:
        raise RevisionConflict(page.id, expected_revision, page.revision)


def flush_page(s: "Session", page: StaticPage) -> None:
    try:
        s.flush()
    except StaleDataError as e:
        raise RevisionConflict(page.id) from e

"""
Publish lifecycle.

Unpublished -> Published-Current <-> Published-Stale -> (unpublish) -> Unpublished

Publishing validates the entire draft and, only if it is clean, promotes a deep
copy of it as the published snapshot. A failed publish changes nothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.portal.actors import Actor
from app.portal.audit import record_event
from app.portal.models import utcnow
from app.portal.modules.static_pages import repository
from app.portal.modules.static_pages.errors import NoPublishedSnapshot, ValidationFailed
from app.portal.modules.static_pages.models import StaticPage
from app.portal.modules.static_pages.validation import validate_for_publish

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

UNPUBLISHED = "unpublished"
PUBLISHED_CURRENT = "published_current"
PUBLISHED_STALE = "published_stale"


def lifecycle_state(page: StaticPage) -> str:
    if page.published is None:
        return UNPUBLISHED
    return PUBLISHED_STALE if page.has_unpublished_changes else PUBLISHED_CURRENT


def publish_page(
    s: "Session",
    page_id: int,
    *,
    actor: Actor,
    expected_revision: int | None = None,
) -> StaticPage:
    """
    Promote the draft. Raises ValidationFailed with every field-level error if the
    draft is not publishable. A publish with no draft changes still succeeds and
    moves `published_at` forward.
    """
    page = repository.get_page(s, page_id)
    repository.check_revision(page, expected_revision)

    draft = page.draft
    errors = validate_for_publish(draft.header_json(), draft.blocks)
    if errors:
        logger.warning(
            "page.publish rejected page_id=%s slug=%s errors=%s",
            page.id,
            page.slug,
            [e.field for e in errors],
        )
        raise ValidationFailed(errors, "Page cannot be published")

    previous_state = lifecycle_state(page)
    page.published_header = draft.header_json()
    page.published_blocks = draft.blocks_json()
    page.published_at = utcnow()
    page.published_by = actor.id

    record_event(
        s,
        actor=actor,
        action="page.publish",
        entity_type="StaticPage",
        entity_id=str(page.id),
        metadata={
            "slug": page.slug,
            "block_count": len(draft.blocks),
            "previous_state": previous_state,
        },
    )
    repository.flush_page(s, page)
    logger.info("page.publish page_id=%s slug=%s actor=%s", page.id, page.slug, actor.id)
    return page


def unpublish_page(
    s: "Session",
    page_id: int,
    *,
    actor: Actor,
    reason: str | None = None,
    expected_revision: int | None = None,
) -> StaticPage:
    """
    Withdraw the published snapshot; the draft is untouched. `published_at` is
    cleared with it and the last publish time is kept in the audit trail.
    """
    page = repository.get_page(s, page_id)
    repository.check_revision(page, expected_revision)
    if page.published is None:
        raise NoPublishedSnapshot(f"Page {page.id} is not published")

    last_published_at = page.published_at
    last_published_by = page.published_by
    page.published_header = None
    page.published_blocks = None
    page.published_at = None
    page.published_by = None

    record_event(
        s,
        actor=actor,
        action="page.unpublish",
        entity_type="StaticPage",
        entity_id=str(page.id),
        reason=reason,
        metadata={
            "slug": page.slug,
            "last_published_at": last_published_at.isoformat() if last_published_at else None,
            "last_published_by": last_published_by,
        },
    )
    repository.flush_page(s, page)
    logger.info("page.unpublish page_id=%s slug=%s actor=%s", page.id, page.slug, actor.id)
    return page

"""
Notice synchronization boundary.

The inbox/notice subsystem owns `notice` blocks. It feeds messages in here and
they are applied through the same block primitives editors use, under a system
actor: notice blocks may be created, updated and removed, but a block an editor
has locked stays pinned and the message is skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.portal.actors import Actor
from app.portal.audit import record_event
from app.portal.modules.static_pages import repository, service
from app.portal.modules.static_pages.blocks import ContentBlock
from app.portal.modules.static_pages.errors import (
    ContentLocked,
    PageNotFound,
    StructureLocked,
    SystemManagedType,
)
from app.portal.modules.static_pages.snapshots import PageSnapshot

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

NOTICE_TYPE = "notice"
UPSERT = "upsert"
WITHDRAW = "withdraw"


@dataclass(frozen=True)
class NoticeMessage:
    action: str  # "upsert" | "withdraw"
    page_slug: str
    notice_id: str
    content: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class NoticeSyncResult:
    applied: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)  # (notice_id, reason)


def _require_system(actor: Actor) -> None:
    if not actor.is_system:
        raise SystemManagedType("Notice blocks are managed by the notice sync boundary only")


def find_notice_block(snapshot: PageSnapshot, notice_id: str) -> ContentBlock | None:
    for block in snapshot.blocks:
        if block.type == NOTICE_TYPE and block.content.get("notice_id") == notice_id:
            return block
    return None


def upsert_notice(
    s: "Session",
    page_id: int,
    notice_id: str,
    content: Mapping[str, Any],
    *,
    actor: Actor,
) -> ContentBlock:
    """Create the notice block for `notice_id`, or replace its content if it already exists."""
    _require_system(actor)
    page = repository.get_page(s, page_id)
    payload = {**dict(content), "notice_id": notice_id}

    existing = find_notice_block(page.draft, notice_id)
    if existing is None:
        return service.insert_block(s, page_id, NOTICE_TYPE, payload, actor=actor)
    if existing.content == payload:
        return existing

    page = service.replace_block_content(s, page_id, existing.id, payload, actor=actor)
    return page.draft.find(existing.id)


def withdraw_notice(s: "Session", page_id: int, notice_id: str, *, actor: Actor) -> bool:
    """Remove the notice block for `notice_id`. Returns False if the page has none."""
    _require_system(actor)
    page = repository.get_page(s, page_id)
    existing = find_notice_block(page.draft, notice_id)
    if existing is None:
        return False
    service.drop_block(s, page_id, existing.id, actor=actor)
    return True


def apply_notice_messages(
    s: "Session",
    messages: Iterable[NoticeMessage],
    *,
    actor: Actor,
) -> NoticeSyncResult:
    """
    Apply a batch of notice messages. Pinned (locked) notices and unknown pages
    are skipped and reported; any other error propagates.
    """
    _require_system(actor)
    result = NoticeSyncResult()

    for msg in messages:
        try:
            page = repository.get_page_by_slug(s, msg.page_slug)
            if msg.action == UPSERT:
                before = find_notice_block(page.draft, msg.notice_id)
                after = upsert_notice(s, page.id, msg.notice_id, msg.content, actor=actor)
                if before is not None and before == after:
                    result.unchanged.append(msg.notice_id)
                    continue
            elif msg.action == WITHDRAW:
                if not withdraw_notice(s, page.id, msg.notice_id, actor=actor):
                    result.unchanged.append(msg.notice_id)
                    continue
            else:
                result.skipped.append((msg.notice_id, "unknown_action"))
                logger.warning("notice.sync unknown action=%r notice_id=%s", msg.action, msg.notice_id)
                continue
        except (StructureLocked, ContentLocked) as e:
            result.skipped.append((msg.notice_id, e.code))
            logger.warning("notice.sync skipped pinned notice_id=%s slug=%s reason=%s", msg.notice_id, msg.page_slug, e.code)
            continue
        except PageNotFound:
            result.skipped.append((msg.notice_id, "page_not_found"))
            logger.warning("notice.sync skipped notice_id=%s unknown slug=%s", msg.notice_id, msg.page_slug)
            continue
        result.applied.append(msg.notice_id)

    record_event(
        s,
        actor=actor,
        action="notice.sync",
        entity_type="StaticPage",
        metadata={
            "applied": len(result.applied),
            "unchanged": len(result.unchanged),
            "skipped": [list(x) for x in result.skipped],
        },
    )
    s.flush()
    logger.info(
        "notice.sync applied=%d unchanged=%d skipped=%d",
        len(result.applied),
        len(result.unchanged),
        len(result.skipped),
    )
    return result

"""
Draft editor.

Every mutation reads the page, checks the optional expected revision, applies
the lock guard and draft-level validation to an immutable snapshot, and only
then writes the new draft. Nothing is written when a check fails.

`add_block`, `remove_block` and `update_block_content` are the editor-facing
operations and always refuse system-managed types. `insert_block`,
`drop_block` and `replace_block_content` are the shared primitives behind
them; the notice sync boundary calls those directly as a system actor.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from app.portal.actors import Actor
from app.portal.audit import record_event
from app.portal.models import utcnow
from app.portal.modules.static_pages import locks, ordering, repository
from app.portal.modules.static_pages.blocks import (
    ContentBlock,
    PageHeader,
    default_content,
    is_addable,
    is_system_managed,
    new_block_id,
)
from app.portal.modules.static_pages.errors import (
    BlockNotFound,
    DuplicateSlug,
    PageValidationError,
    RevisionRequired,
    SystemManagedType,
    ValidationFailed,
)
from app.portal.modules.static_pages.models import StaticPage
from app.portal.modules.static_pages.snapshots import PageSnapshot
from app.portal.modules.static_pages.validation import validate_block, validate_header, validate_slug

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _audit(s: "Session", page: StaticPage, actor: Actor, action: str, **metadata: Any) -> None:
    record_event(
        s,
        actor=actor,
        action=action,
        entity_type="StaticPage",
        entity_id=str(page.id),
        metadata={"slug": page.slug, **metadata},
    )


def _commit_draft(
    s: "Session",
    page: StaticPage,
    snapshot: PageSnapshot,
    *,
    actor: Actor,
    action: str,
    **metadata: Any,
) -> StaticPage:
    page.set_draft(snapshot, updated_by=actor.id, now=utcnow())
    _audit(s, page, actor, action, **metadata)
    repository.flush_page(s, page)
    logger.info("%s page_id=%s slug=%s actor=%s revision=%s", action, page.id, page.slug, actor.id, page.revision)
    return page


def _load(s: "Session", page_id: int, expected_revision: int | None) -> StaticPage:
    page = repository.get_page(s, page_id)
    repository.check_revision(page, expected_revision)
    return page


def _find_block(snapshot: PageSnapshot, block_id: str) -> ContentBlock:
    block = snapshot.find(block_id)
    if block is None:
        raise BlockNotFound(f"Block {block_id} not found")
    return block


def _validate_draft_block(block: ContentBlock) -> None:
    errors = validate_block(block, require_complete=False)
    if errors:
        raise ValidationFailed(errors, "Invalid block content")


def _coerce_content(content: Any) -> dict[str, Any]:
    if not isinstance(content, Mapping):
        raise PageValidationError("Block content must be an object")
    return dict(content)


def _validated_header(data: Mapping[str, Any]) -> PageHeader:
    errors = validate_header(data, require_complete=False)
    if errors:
        raise ValidationFailed(errors, "Invalid header")
    return PageHeader.from_dict(data)


# ============================================================
# Pages
# ============================================================


def create_page(
    s: "Session",
    slug: str,
    header: Mapping[str, Any],
    blocks: Sequence[Mapping[str, Any]] | None = None,
    *,
    actor: Actor,
) -> StaticPage:
    """Create an unpublished page. Initial blocks are laid out densely and start unlocked."""
    validate_slug(slug)
    if repository.slug_exists(s, slug):
        raise DuplicateSlug(f"Slug {slug!r} already exists")

    draft_header = _validated_header(header or {})

    initial: list[ContentBlock] = []
    for data in blocks or []:
        block_type = data.get("type")
        locks.ensure_can_author(block_type, actor)
        if block_type == "map":
            locks.ensure_map_capacity(initial)
        content = data.get("content")
        block = ContentBlock(
            id=str(data.get("id") or new_block_id()),
            type=block_type,
            content=_coerce_content(default_content(block_type) if content is None else content),
            order=len(initial),
        )
        _validate_draft_block(block)
        initial.append(block)
    if len({b.id for b in initial}) != len(initial):
        raise PageValidationError("Duplicate block id in initial blocks")

    now = utcnow()
    page = StaticPage(
        slug=slug,
        created_at=now,
        created_by=actor.id,
    )
    page.set_draft(PageSnapshot(header=draft_header, blocks=tuple(initial)), updated_by=actor.id, now=now)
    s.add(page)
    s.flush()

    _audit(s, page, actor, "page.create", block_count=len(initial))
    logger.info("page.create page_id=%s slug=%s actor=%s", page.id, page.slug, actor.id)
    return page


def get_page(s: "Session", page_id: int) -> StaticPage:
    return repository.get_page(s, page_id)


def update_draft(
    s: "Session",
    page_id: int,
    *,
    actor: Actor,
    header: Mapping[str, Any] | None = None,
    blocks: Sequence[Mapping[str, Any]] | None = None,
    expected_revision: int | None = None,
) -> StaticPage:
    """
    Merge a header patch and/or replace the block list. Replacing blocks wholesale
    requires `expected_revision` so a concurrent notice sync is never overwritten.
    """
    if blocks is not None and expected_revision is None:
        raise RevisionRequired("Replacing draft blocks requires expected_revision")

    page = _load(s, page_id, expected_revision)
    current = page.draft
    new_header = current.header
    new_blocks = current.blocks

    if header is not None:
        new_header = _validated_header({**current.header_json(), **header})

    if blocks is not None:
        proposed = [ContentBlock.from_dict(b) for b in blocks]
        locks.check_blocks_replacement(current.blocks, proposed, actor)
        errors = []
        for block in proposed:
            errors.extend(validate_block(block, require_complete=False))
        if errors:
            raise ValidationFailed(errors, "Invalid block content")
        new_blocks = tuple(proposed)

    return _commit_draft(
        s,
        page,
        PageSnapshot(header=new_header, blocks=new_blocks),
        actor=actor,
        action="page.draft.update",
        header=header is not None,
        blocks=blocks is not None,
    )


def delete_page(s: "Session", page_id: int, *, actor: Actor) -> None:
    page = repository.delete_page(s, page_id)
    record_event(
        s,
        actor=actor,
        action="page.delete",
        entity_type="StaticPage",
        entity_id=str(page_id),
        metadata={"slug": page.slug, "was_published": page.published_at is not None},
    )
    s.flush()
    logger.info("page.delete page_id=%s slug=%s actor=%s", page_id, page.slug, actor.id)


# ============================================================
# Block primitives (shared with the notice sync boundary)
# ============================================================


def insert_block(
    s: "Session",
    page_id: int,
    block_type: str,
    content: Mapping[str, Any] | None = None,
    *,
    actor: Actor,
    expected_revision: int | None = None,
) -> ContentBlock:
    page = _load(s, page_id, expected_revision)
    locks.ensure_can_author(block_type, actor)
    current = page.draft
    if block_type == "map":
        locks.ensure_map_capacity(current.blocks)

    # Missing or invalid orders sort last; renumber first so the new block lands at the end.
    existing = current.blocks
    if not all(ordering.is_valid_order(b.order) for b in existing):
        existing = tuple(ordering.renumber(ordering.sort_blocks(existing)))

    block = ContentBlock(
        id=new_block_id(),
        type=block_type,
        content=_coerce_content(default_content(block_type) if content is None else content),
        order=ordering.next_order(existing),
    )
    _validate_draft_block(block)

    _commit_draft(
        s,
        page,
        replace(current, blocks=existing + (block,)),
        actor=actor,
        action="page.block.add",
        block_id=block.id,
        block_type=block_type,
    )
    return block


def drop_block(
    s: "Session",
    page_id: int,
    block_id: str,
    *,
    actor: Actor,
    expected_revision: int | None = None,
) -> StaticPage:
    page = _load(s, page_id, expected_revision)
    current = page.draft
    block = _find_block(current, block_id)
    locks.ensure_can_author(block.type, actor)
    locks.ensure_structure_unlocked(block)

    # Remaining orders are left as they are; gaps close on the next reorder.
    remaining = tuple(b for b in current.blocks if b.id != block_id)
    return _commit_draft(
        s,
        page,
        replace(current, blocks=remaining),
        actor=actor,
        action="page.block.remove",
        block_id=block_id,
        block_type=block.type,
    )


def replace_block_content(
    s: "Session",
    page_id: int,
    block_id: str,
    content: Mapping[str, Any],
    *,
    actor: Actor,
    expected_revision: int | None = None,
) -> StaticPage:
    page = _load(s, page_id, expected_revision)
    current = page.draft
    block = _find_block(current, block_id)
    locks.ensure_can_author(block.type, actor)
    locks.ensure_content_unlocked(block)

    updated = block.with_content(_coerce_content(content))
    _validate_draft_block(updated)

    blocks = tuple(updated if b.id == block_id else b for b in current.blocks)
    return _commit_draft(
        s,
        page,
        replace(current, blocks=blocks),
        actor=actor,
        action="page.block.update",
        block_id=block_id,
        block_type=block.type,
    )


# ============================================================
# Editor-facing block operations
# ============================================================


def add_block(
    s: "Session",
    page_id: int,
    block_type: str,
    content: Mapping[str, Any] | None = None,
    *,
    actor: Actor,
    expected_revision: int | None = None,
) -> ContentBlock:
    """Append a block with order = max(existing) + 1 and both locks off."""
    locks.ensure_known_type(block_type)
    if not is_addable(block_type):
        raise SystemManagedType(f"{block_type} blocks cannot be added by editors")
    return insert_block(s, page_id, block_type, content, actor=actor, expected_revision=expected_revision)


def remove_block(
    s: "Session",
    page_id: int,
    block_id: str,
    *,
    actor: Actor,
    expected_revision: int | None = None,
) -> StaticPage:
    block = _find_block(_load(s, page_id, expected_revision).draft, block_id)
    if is_system_managed(block.type):
        raise SystemManagedType(f"{block.type} blocks cannot be removed by editors")
    return drop_block(s, page_id, block_id, actor=actor, expected_revision=expected_revision)


def update_block_content(
    s: "Session",
    page_id: int,
    block_id: str,
    content: Mapping[str, Any],
    *,
    actor: Actor,
    expected_revision: int | None = None,
) -> StaticPage:
    """Replace a block's content wholesale; the caller sends the full payload."""
    block = _find_block(_load(s, page_id, expected_revision).draft, block_id)
    if is_system_managed(block.type):
        raise SystemManagedType(f"{block.type} blocks cannot be edited by editors")
    return replace_block_content(s, page_id, block_id, content, actor=actor, expected_revision=expected_revision)


def _toggle(
    s: "Session",
    page_id: int,
    block_id: str,
    attr: str,
    *,
    actor: Actor,
    expected_revision: int | None,
) -> StaticPage:
    page = _load(s, page_id, expected_revision)
    current = page.draft
    block = _find_block(current, block_id)
    flipped = replace(block, **{attr: not getattr(block, attr)})
    blocks = tuple(flipped if b.id == block_id else b for b in current.blocks)
    return _commit_draft(
        s,
        page,
        replace(current, blocks=blocks),
        actor=actor,
        action="page.block.lock",
        block_id=block_id,
        lock=attr,
        value=getattr(flipped, attr),
    )


def toggle_structure_lock(
    s: "Session", page_id: int, block_id: str, *, actor: Actor, expected_revision: int | None = None
) -> StaticPage:
    return _toggle(s, page_id, block_id, "structure_locked", actor=actor, expected_revision=expected_revision)


def toggle_content_lock(
    s: "Session", page_id: int, block_id: str, *, actor: Actor, expected_revision: int | None = None
) -> StaticPage:
    return _toggle(s, page_id, block_id, "content_locked", actor=actor, expected_revision=expected_revision)


def reorder_block(
    s: "Session",
    page_id: int,
    block_id: str,
    direction: str,
    *,
    actor: Actor,
    expected_revision: int | None = None,
) -> StaticPage:
    """
    Move a block one step up or down in visual order, then renumber every block
    to 0..N-1. Moving past either end is a no-op.
    """
    if direction not in ordering.DIRECTIONS:
        raise PageValidationError(f"Unsupported direction: {direction!r}")

    page = _load(s, page_id, expected_revision)
    current = page.draft
    block = _find_block(current, block_id)
    locks.ensure_structure_unlocked(block)

    sorted_blocks = ordering.sort_blocks(current.blocks)
    index = next(i for i, b in enumerate(sorted_blocks) if b.id == block_id)
    target = ordering.neighbour_index(sorted_blocks, index, direction)
    if target is None:
        logger.debug("page.block.reorder no-op page_id=%s block_id=%s direction=%s", page_id, block_id, direction)
        return page
    locks.ensure_structure_unlocked(sorted_blocks[target])

    return _commit_draft(
        s,
        page,
        replace(current, blocks=tuple(ordering.swap_and_renumber(sorted_blocks, index, target))),
        actor=actor,
        action="page.block.reorder",
        block_id=block_id,
        direction=direction,
    )


# ============================================================
# Views
# ============================================================


def page_admin_view(page: StaticPage) -> dict[str, Any]:
    """Full page view for the admin console (draft + published state)."""
    return {
        "id": page.id,
        "slug": page.slug,
        "revision": page.revision,
        "draft_header": page.draft_header,
        "draft_blocks": [b.to_dict() for b in ordering.sort_blocks(page.draft.blocks)],
        "draft_updated_at": page.draft_updated_at.isoformat() if page.draft_updated_at else None,
        "draft_updated_by": page.draft_updated_by,
        "published_header": page.published_header,
        "published_blocks": page.published_blocks,
        "published_at": page.published_at.isoformat() if page.published_at else None,
        "published_by": page.published_by,
        "has_unpublished_changes": page.has_unpublished_changes,
        "created_at": page.created_at.isoformat() if page.created_at else None,
        "created_by": page.created_by,
    }

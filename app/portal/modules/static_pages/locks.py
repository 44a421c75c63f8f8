"""
Lock guard.

Two independent bits per block: `structure_locked` forbids removal and
reordering, `content_locked` forbids content replacement. No actor bypasses
either bit; the system actor only gains the right to manage system-owned types.
"""

from __future__ import annotations

from collections.abc import Sequence

from app.portal.actors import Actor
from app.portal.modules.static_pages.blocks import (
    ContentBlock,
    count_map_blocks,
    is_system_managed,
    is_valid_block_type,
    MAX_MAP_BLOCKS,
)
from app.portal.modules.static_pages.errors import (
    ContentLocked,
    InvalidBlockType,
    MapLimitExceeded,
    PageValidationError,
    StructureLocked,
    SystemManagedType,
)


def ensure_known_type(block_type: str) -> None:
    if not is_valid_block_type(block_type):
        raise InvalidBlockType(f"Invalid block type: {block_type!r}")


def ensure_can_author(block_type: str, actor: Actor) -> None:
    """Create/remove/content-edit rights for a block type."""
    ensure_known_type(block_type)
    if is_system_managed(block_type) and not actor.is_system:
        raise SystemManagedType(f"{block_type} blocks are system-managed")


def ensure_structure_unlocked(block: ContentBlock) -> None:
    if block.structure_locked:
        raise StructureLocked(block.id)


def ensure_content_unlocked(block: ContentBlock) -> None:
    if block.content_locked:
        raise ContentLocked(block.id)


def ensure_map_capacity(blocks: Sequence[ContentBlock]) -> None:
    if count_map_blocks(blocks) >= MAX_MAP_BLOCKS:
        raise MapLimitExceeded(f"Maximum {MAX_MAP_BLOCKS} map block allowed per page")


def check_blocks_replacement(
    current: Sequence[ContentBlock],
    proposed: Sequence[ContentBlock],
    actor: Actor,
) -> None:
    """
    Guard a whole-array replacement of the draft blocks against the current
    draft. Lock toggles are free; everything else goes through the same rules
    as the per-block operations.
    """
    seen: set[str] = set()
    for block in proposed:
        ensure_known_type(block.type)
        if not block.id:
            raise PageValidationError("Every block needs an id")
        if block.id in seen:
            raise PageValidationError(f"Duplicate block id {block.id}")
        seen.add(block.id)
    if count_map_blocks(proposed) > MAX_MAP_BLOCKS:
        raise MapLimitExceeded(f"Maximum {MAX_MAP_BLOCKS} map block allowed per page")

    current_by_id = {b.id: b for b in current}

    for old in current:
        if old.id not in seen:
            if is_system_managed(old.type):
                ensure_can_author(old.type, actor)
            ensure_structure_unlocked(old)

    for new in proposed:
        old = current_by_id.get(new.id)
        if old is None:
            ensure_can_author(new.type, actor)
            continue
        if new.type != old.type:
            raise PageValidationError(f"Block {new.id} type cannot change ({old.type} -> {new.type})")
        if new.content != old.content:
            if is_system_managed(old.type):
                ensure_can_author(old.type, actor)
            ensure_content_unlocked(old)
        # Lock bits are compared on the current state: a block locked before this
        # save keeps its position even if the same save unlocks it.
        if new.order != old.order and old.structure_locked:
            raise StructureLocked(old.id)

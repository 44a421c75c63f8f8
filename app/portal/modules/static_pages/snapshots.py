from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from app.portal.modules.static_pages.blocks import ContentBlock, PageHeader


@dataclass(frozen=True)
class PageSnapshot:
    """Immutable header + blocks pair; both the draft and the published state are one of these."""

    header: PageHeader
    blocks: tuple[ContentBlock, ...]

    @classmethod
    def from_json(cls, header: Mapping[str, Any] | None, blocks: Iterable[Mapping[str, Any]] | None) -> "PageSnapshot":
        return cls(
            header=PageHeader.from_dict(header),
            blocks=tuple(ContentBlock.from_dict(b) for b in (blocks or [])),
        )

    def header_json(self) -> dict[str, Any]:
        return self.header.to_dict()

    def blocks_json(self) -> list[dict[str, Any]]:
        return [b.to_dict() for b in self.blocks]

    def find(self, block_id: str) -> ContentBlock | None:
        for b in self.blocks:
            if b.id == block_id:
                return b
        return None


def has_unpublished_changes(draft: PageSnapshot, published: PageSnapshot | None) -> bool:
    """Structural diff: a page that was never published always has unpublished changes."""
    if published is None:
        return True
    return draft != published

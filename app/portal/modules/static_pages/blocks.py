"""
Block type registry.

The taxonomy is closed: eight block kinds, each with a declared content schema.
`notice` is system-owned and never addable by editors.
"""

from __future__ import annotations

import copy
import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any


BLOCK_TYPES = (
    "text",
    "highlight",
    "card_list",
    "media",
    "map",
    "contact",
    "link_list",
    "notice",
)
SYSTEM_MANAGED_TYPES = frozenset({"notice"})

HEADER_TYPES = ("simple", "media")
HIGHLIGHT_VARIANTS = ("info", "warning", "success")
LINK_TYPES = ("page", "inbox", "event", "screen", "external")

MAX_MAP_BLOCKS = 1
MAX_HEADER_IMAGES = 5

_SLUG_RE = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
SLUG_MAX_LENGTH = 128


@dataclass(frozen=True)
class BlockSchema:
    required: tuple[str, ...] = ()
    items_field: str | None = None
    item_required: tuple[str, ...] = ()


BLOCK_SCHEMAS: dict[str, BlockSchema] = {
    "text": BlockSchema(required=("body_hr", "body_en")),
    "highlight": BlockSchema(required=("body_hr", "body_en", "variant")),
    "card_list": BlockSchema(items_field="cards", item_required=("title_hr", "title_en")),
    "media": BlockSchema(required=("url",)),
    "map": BlockSchema(required=("lat", "lng", "zoom")),
    "contact": BlockSchema(items_field="contacts", item_required=("name_hr", "name_en")),
    "link_list": BlockSchema(items_field="links", item_required=("title_hr", "title_en", "link_type", "link_target")),
    "notice": BlockSchema(),
}


def is_valid_block_type(block_type: Any) -> bool:
    return isinstance(block_type, str) and block_type in BLOCK_TYPES


def is_addable(block_type: str) -> bool:
    """Editors may add every known type except system-managed ones."""
    return is_valid_block_type(block_type) and block_type not in SYSTEM_MANAGED_TYPES


def is_system_managed(block_type: str) -> bool:
    return block_type in SYSTEM_MANAGED_TYPES


def count_map_blocks(blocks: Iterable["ContentBlock"]) -> int:
    return sum(1 for b in blocks if b.type == "map")


def can_add_map(blocks: Iterable["ContentBlock"]) -> bool:
    return count_map_blocks(blocks) < MAX_MAP_BLOCKS


def is_valid_slug(slug: str) -> bool:
    return isinstance(slug, str) and bool(slug) and len(slug) <= SLUG_MAX_LENGTH and bool(_SLUG_RE.fullmatch(slug))


def new_block_id() -> str:
    return str(uuid.uuid4())


def default_content(block_type: str) -> dict[str, Any]:
    """Empty content for a freshly added block; incomplete until edited."""
    if block_type == "text":
        return {"title_hr": None, "title_en": None, "body_hr": "", "body_en": ""}
    if block_type == "highlight":
        return {"title_hr": None, "title_en": None, "body_hr": "", "body_en": "", "icon": None, "variant": "info"}
    if block_type == "card_list":
        return {"cards": []}
    if block_type == "media":
        return {
            "url": "",
            "caption_hr": None,
            "caption_en": None,
            "alt_hr": None,
            "alt_en": None,
            "credit_hr": None,
            "credit_en": None,
        }
    if block_type == "map":
        return {
            "lat": 0,
            "lng": 0,
            "zoom": 14,
            "title_hr": None,
            "title_en": None,
            "address_hr": None,
            "address_en": None,
            "note_hr": None,
            "note_en": None,
        }
    if block_type == "contact":
        return {"contacts": []}
    if block_type == "link_list":
        return {"links": []}
    return {}


@dataclass(frozen=True)
class ContentBlock:
    id: str
    type: str
    content: dict[str, Any] = field(default_factory=dict)
    order: Any = None  # int in practice; tolerated ragged/missing until the next reorder
    structure_locked: bool = False
    content_locked: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContentBlock":
        content = data.get("content")
        return cls(
            id=str(data.get("id") or ""),
            type=str(data.get("type") or ""),
            content=copy.deepcopy(dict(content)) if isinstance(content, Mapping) else {},
            order=data.get("order"),
            structure_locked=bool(data.get("structure_locked", False)),
            content_locked=bool(data.get("content_locked", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "content": copy.deepcopy(self.content),
            "order": self.order,
            "structure_locked": self.structure_locked,
            "content_locked": self.content_locked,
        }

    def with_content(self, content: Mapping[str, Any]) -> "ContentBlock":
        return replace(self, content=copy.deepcopy(dict(content)))


@dataclass(frozen=True)
class PageHeader:
    type: str = "simple"
    title_hr: str = ""
    title_en: str = ""
    subtitle_hr: str | None = None
    subtitle_en: str | None = None
    icon: str | None = None  # simple header
    images: tuple[str, ...] = ()  # media header, 1-5 at publish

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "PageHeader":
        data = data or {}
        images = data.get("images") or ()
        return cls(
            type=str(data.get("type") or "simple"),
            title_hr=data.get("title_hr") or "",
            title_en=data.get("title_en") or "",
            subtitle_hr=data.get("subtitle_hr"),
            subtitle_en=data.get("subtitle_en"),
            icon=data.get("icon"),
            images=tuple(images) if isinstance(images, (list, tuple)) else (),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "title_hr": self.title_hr,
            "title_en": self.title_en,
            "subtitle_hr": self.subtitle_hr,
            "subtitle_en": self.subtitle_en,
            "icon": self.icon,
            "images": list(self.images),
        }

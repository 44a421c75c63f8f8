"""
Block content validation.

`validate_block` is pure. With `require_complete=False` only invalid values are
reported (ranges, schemes, enums, shapes) so drafts may stay incomplete; publish
runs the complete check, which also requires bilingual text and non-empty lists.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from app.portal.modules.static_pages.blocks import (
    BLOCK_SCHEMAS,
    BLOCK_TYPES,
    HEADER_TYPES,
    HIGHLIGHT_VARIANTS,
    LINK_TYPES,
    MAX_HEADER_IMAGES,
    MAX_MAP_BLOCKS,
    ContentBlock,
    count_map_blocks,
    is_system_managed,
    is_valid_slug,
)
from app.portal.modules.static_pages.errors import FieldError, InvalidSlug

_URL_SCHEMES = ("http://", "https://")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _language(field_name: str) -> str | None:
    if field_name.endswith("_hr"):
        return "hr"
    if field_name.endswith("_en"):
        return "en"
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_http_url(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower().startswith(_URL_SCHEMES)


def validate_slug(slug: str) -> None:
    if not is_valid_slug(slug):
        raise InvalidSlug(
            f"Invalid slug {slug!r}. Use lowercase letters, numbers, and hyphens only."
        )


def _required(content: Mapping[str, Any], names: Iterable[str], *, prefix: str, block_id: str | None) -> list[FieldError]:
    errors = []
    for name in names:
        if _is_blank(content.get(name)):
            errors.append(
                FieldError(
                    field=f"{prefix}{name}",
                    message=f"{name} is required",
                    block_id=block_id,
                    language=_language(name),
                )
            )
    return errors


def _check_link(item: Mapping[str, Any], *, prefix: str, block_id: str, require_complete: bool) -> list[FieldError]:
    errors = []
    link_type = item.get("link_type")
    target = item.get("link_target")
    if link_type is not None and link_type not in LINK_TYPES:
        errors.append(FieldError(f"{prefix}link_type", f"Invalid link type {link_type!r}", block_id))
    if link_type == "external":
        if not _is_blank(target) and not is_http_url(target):
            errors.append(FieldError(f"{prefix}link_target", "External link must start with http:// or https://", block_id))
        elif require_complete and _is_blank(target):
            errors.append(FieldError(f"{prefix}link_target", "External link requires a target", block_id))
    return errors


def _check_highlight(block: ContentBlock, content: Mapping[str, Any], require_complete: bool) -> list[FieldError]:
    variant = content.get("variant")
    if variant is not None and variant not in HIGHLIGHT_VARIANTS:
        return [FieldError("variant", f"Invalid highlight variant {variant!r}", block.id)]
    return []


def _check_media(block: ContentBlock, content: Mapping[str, Any], require_complete: bool) -> list[FieldError]:
    url = content.get("url")
    if not _is_blank(url) and not is_http_url(url):
        return [FieldError("url", "Media URL must start with http:// or https://", block.id)]
    return []


_MAP_RANGES = (
    ("lat", -90, 90),
    ("lng", -180, 180),
    ("zoom", 1, 20),
)


def _check_map(block: ContentBlock, content: Mapping[str, Any], require_complete: bool) -> list[FieldError]:
    errors = []
    for name, lo, hi in _MAP_RANGES:
        value = content.get(name)
        if value is None:
            continue
        if not _is_number(value):
            errors.append(FieldError(name, f"{name} must be a number", block.id))
        elif not lo <= value <= hi:
            errors.append(FieldError(name, f"{name} must be between {lo} and {hi}", block.id))
    return errors


def _check_card(block: ContentBlock, item: Mapping[str, Any], prefix: str, require_complete: bool) -> list[FieldError]:
    return _check_link(item, prefix=prefix, block_id=block.id, require_complete=require_complete)


def _check_contact(block: ContentBlock, item: Mapping[str, Any], prefix: str, require_complete: bool) -> list[FieldError]:
    phones = item.get("phones")
    if phones is not None and (not isinstance(phones, list) or not all(isinstance(p, str) for p in phones)):
        return [FieldError(f"{prefix}phones", "phones must be a list of strings", block.id)]
    return []


def _check_link_item(block: ContentBlock, item: Mapping[str, Any], prefix: str, require_complete: bool) -> list[FieldError]:
    return _check_link(item, prefix=prefix, block_id=block.id, require_complete=require_complete)


_CONTENT_CHECKS: dict[str, Callable[[ContentBlock, Mapping[str, Any], bool], list[FieldError]]] = {
    "highlight": _check_highlight,
    "media": _check_media,
    "map": _check_map,
}

_ITEM_CHECKS: dict[str, Callable[[ContentBlock, Mapping[str, Any], str, bool], list[FieldError]]] = {
    "card_list": _check_card,
    "contact": _check_contact,
    "link_list": _check_link_item,
}


def validate_block(block: ContentBlock, *, require_complete: bool = True) -> list[FieldError]:
    """Return field-level violations for one block. Notice content is opaque and never checked."""
    if block.type not in BLOCK_TYPES:
        return [FieldError("type", f"Unknown block type {block.type!r}", block.id)]
    if is_system_managed(block.type):
        return []

    content = block.content
    if not isinstance(content, Mapping):
        return [FieldError("content", "Block content must be an object", block.id)]

    schema = BLOCK_SCHEMAS[block.type]
    errors: list[FieldError] = []
    if require_complete:
        errors.extend(_required(content, schema.required, prefix="", block_id=block.id))

    check = _CONTENT_CHECKS.get(block.type)
    if check:
        errors.extend(check(block, content, require_complete))

    if schema.items_field:
        list_name = schema.items_field
        items = content.get(list_name)
        if items is None:
            items = []
        if not isinstance(items, list):
            errors.append(FieldError(list_name, f"{list_name} must be a list", block.id))
            return errors
        if require_complete and not items:
            errors.append(FieldError(list_name, f"At least 1 item is required in {list_name}", block.id))
        item_check = _ITEM_CHECKS.get(block.type)
        for idx, item in enumerate(items):
            if not isinstance(item, Mapping):
                errors.append(FieldError(f"{list_name}.{idx}", "Item must be an object", block.id))
                continue
            prefix = f"{list_name}.{item.get('id') or idx}."
            if require_complete:
                errors.extend(_required(item, schema.item_required, prefix=prefix, block_id=block.id))
            if item_check:
                errors.extend(item_check(block, item, prefix, require_complete))

    return errors


_HEADER_TEXT_FIELDS = ("title_hr", "title_en", "subtitle_hr", "subtitle_en", "icon")


def validate_header(header: Mapping[str, Any], *, require_complete: bool = True) -> list[FieldError]:
    errors: list[FieldError] = []
    header_type = header.get("type")
    if header_type not in HEADER_TYPES:
        errors.append(FieldError("header.type", f"Invalid header type {header_type!r}"))

    if require_complete:
        errors.extend(_required(header, ("title_hr", "title_en"), prefix="header.", block_id=None))

    for name in _HEADER_TEXT_FIELDS:
        value = header.get(name)
        if value is not None and not isinstance(value, str):
            errors.append(FieldError(f"header.{name}", f"{name} must be text", language=_language(name)))

    images = header.get("images")
    if images is not None and (not isinstance(images, (list, tuple)) or not all(isinstance(i, str) for i in images)):
        errors.append(FieldError("header.images", "Header images must be a list of URLs"))
        return errors
    images = images or ()
    if len(images) > MAX_HEADER_IMAGES:
        errors.append(FieldError("header.images", f"Media header allows maximum {MAX_HEADER_IMAGES} images"))
    elif require_complete and header_type == "media" and not images:
        errors.append(FieldError("header.images", "Media header requires at least 1 image"))
    return errors


def validate_for_publish(header: Mapping[str, Any], blocks: Iterable[ContentBlock]) -> list[FieldError]:
    """Complete validation of a whole draft. An empty list means it may be published."""
    blocks = list(blocks)
    errors = validate_header(header, require_complete=True)
    if count_map_blocks(blocks) > MAX_MAP_BLOCKS:
        errors.append(FieldError("blocks", f"Maximum {MAX_MAP_BLOCKS} map block allowed per page"))
    for block in blocks:
        errors.extend(validate_block(block, require_complete=True))
    return errors

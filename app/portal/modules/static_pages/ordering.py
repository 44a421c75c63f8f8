from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from app.portal.modules.static_pages.blocks import ContentBlock

DIRECTIONS = ("up", "down")


def is_valid_order(order: Any) -> bool:
    return isinstance(order, (int, float)) and not isinstance(order, bool) and math.isfinite(order)


def sort_blocks(blocks: Sequence[ContentBlock]) -> list[ContentBlock]:
    """
    Visual order: valid orders ascending, then blocks with a missing/invalid
    order. Ties keep their original list position.
    """
    indexed = list(enumerate(blocks))
    indexed.sort(key=lambda pair: (0, pair[1].order, pair[0]) if is_valid_order(pair[1].order) else (1, 0, pair[0]))
    return [b for _, b in indexed]


def next_order(blocks: Sequence[ContentBlock]) -> int:
    valid = [b.order for b in blocks if is_valid_order(b.order)]
    if not valid:
        return 0
    return math.floor(max(valid)) + 1


def renumber(blocks: Sequence[ContentBlock]) -> list[ContentBlock]:
    """Assign dense 0..N-1 orders following the given list order."""
    return [b if b.order == i and type(b.order) is int else replace(b, order=i) for i, b in enumerate(blocks)]


def neighbour_index(sorted_blocks: Sequence[ContentBlock], index: int, direction: str) -> int | None:
    if direction not in DIRECTIONS:
        raise ValueError(f"Unsupported direction: {direction!r}")
    target = index - 1 if direction == "up" else index + 1
    if target < 0 or target >= len(sorted_blocks):
        return None
    return target


def swap_and_renumber(sorted_blocks: Sequence[ContentBlock], i: int, j: int) -> list[ContentBlock]:
    out = list(sorted_blocks)
    out[i], out[j] = out[j], out[i]
    return renumber(out)

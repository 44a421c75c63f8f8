"""Tests for the static page draft editor (create, block operations, locks, reorder)."""
import json

import pytest

from app.portal import create_portal, create_schema
from app.portal.actors import editor
from app.portal.audit import list_events
from app.portal.db import session_scope
from app.portal.models import AuditEvent
from app.portal.modules.static_pages import ordering, repository, service
from app.portal.modules.static_pages.errors import (
    BlockNotFound,
    ContentLocked,
    DuplicateSlug,
    InvalidBlockType,
    InvalidSlug,
    MapLimitExceeded,
    PageNotFound,
    PageValidationError,
    RevisionConflict,
    RevisionRequired,
    StructureLocked,
    SystemManagedType,
    ValidationFailed,
)
from app.portal.modules.static_pages.models import StaticPage

HEADER = {"type": "simple", "title_hr": "O otoku", "title_en": "About the island"}
ED = editor("editor@example.com")


def _text(body_hr="Tekst", body_en="Text"):
    return {"title_hr": None, "title_en": None, "body_hr": body_hr, "body_en": body_en}


@pytest.fixture()
def portal(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    portal = create_portal()
    create_schema(portal)
    return portal


@pytest.fixture()
def page_id(portal):
    with session_scope(portal) as s:
        page = service.create_page(s, "about", HEADER, actor=ED)
        return page.id


def _draft_blocks(portal, page_id):
    with session_scope(portal) as s:
        return repository.get_page(s, page_id).draft_blocks


def _revision(portal, page_id):
    with session_scope(portal) as s:
        return repository.get_page(s, page_id).revision


def _add_texts(portal, page_id, n):
    ids = []
    with session_scope(portal) as s:
        for i in range(n):
            ids.append(service.add_block(s, page_id, "text", _text(f"T{i}", f"T{i}"), actor=ED).id)
    return ids


def _orders(portal, page_id):
    return {b["id"]: b["order"] for b in _draft_blocks(portal, page_id)}


# ============================================================
# Pages
# ============================================================


def test_create_page_is_unpublished(portal):
    with session_scope(portal) as s:
        page = service.create_page(
            s,
            "visitor-info",
            HEADER,
            [{"type": "text", "content": _text()}, {"type": "map", "content": {"lat": 43.06, "lng": 16.18, "zoom": 14}}],
            actor=ED,
        )
        assert page.published_at is None
        assert page.published is None
        assert page.has_unpublished_changes is True
        assert page.revision == 1
        assert [b["order"] for b in page.draft_blocks] == [0, 1]
        assert all(not b["structure_locked"] and not b["content_locked"] for b in page.draft_blocks)

    with session_scope(portal) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "page.create").one()
        assert ev.actor_id == "editor@example.com"
        assert json.loads(ev.metadata_json)["slug"] == "visitor-info"


def test_create_page_rejects_bad_slug(portal):
    with session_scope(portal) as s:
        with pytest.raises(InvalidSlug):
            service.create_page(s, "Visitor Info", HEADER, actor=ED)
        with pytest.raises(InvalidSlug):
            service.create_page(s, " about ", HEADER, actor=ED)
        assert s.query(StaticPage).count() == 0


def test_create_page_rejects_duplicate_slug(portal, page_id):
    with session_scope(portal) as s:
        with pytest.raises(DuplicateSlug):
            service.create_page(s, "about", HEADER, actor=ED)


def test_create_page_rejects_notice_and_second_map(portal):
    with session_scope(portal) as s:
        with pytest.raises(SystemManagedType):
            service.create_page(s, "news", HEADER, [{"type": "notice", "content": {}}], actor=ED)
        with pytest.raises(MapLimitExceeded):
            service.create_page(
                s,
                "maps",
                HEADER,
                [{"type": "map"}, {"type": "map"}],
                actor=ED,
            )
        assert s.query(StaticPage).count() == 0


def test_slug_is_write_once(portal, page_id):
    with session_scope(portal) as s:
        page = repository.get_page(s, page_id)
        with pytest.raises(ValueError):
            page.slug = "renamed"
        assert page.slug == "about"


def test_delete_page(portal, page_id):
    with session_scope(portal) as s:
        service.delete_page(s, page_id, actor=ED)

    with session_scope(portal) as s:
        with pytest.raises(PageNotFound):
            repository.get_page(s, page_id)
        assert s.query(AuditEvent).filter(AuditEvent.action == "page.delete").count() == 1


def test_list_pages_and_lookup_by_slug(portal, page_id):
    with session_scope(portal) as s:
        service.create_page(s, "contacts", HEADER, actor=ED)

    with session_scope(portal) as s:
        items, total = repository.list_pages(s)
        assert total == 2
        assert [p.slug for p in items] == ["about", "contacts"]
        assert repository.get_page_by_slug(s, "about").id == page_id
        with pytest.raises(PageNotFound):
            repository.get_page_by_slug(s, "missing")


def test_header_patch_merges(portal, page_id):
    with session_scope(portal) as s:
        page = service.update_draft(s, page_id, header={"title_en": "About Vis"}, actor=ED)
        assert page.draft_header["title_en"] == "About Vis"
        assert page.draft_header["title_hr"] == "O otoku"


def test_header_patch_rejects_invalid_type(portal, page_id):
    with session_scope(portal) as s:
        with pytest.raises(ValidationFailed) as exc:
            service.update_draft(s, page_id, header={"type": "banner"}, actor=ED)
        assert [e.field for e in exc.value.errors] == ["header.type"]


def test_page_admin_view(portal, page_id):
    _add_texts(portal, page_id, 1)
    with session_scope(portal) as s:
        view = service.page_admin_view(repository.get_page(s, page_id))
    assert view["slug"] == "about"
    assert view["published_at"] is None
    assert view["has_unpublished_changes"] is True
    assert len(view["draft_blocks"]) == 1


# ============================================================
# Block operations
# ============================================================


def test_add_block_appends_with_next_order(portal, page_id):
    ids = _add_texts(portal, page_id, 2)
    orders = _orders(portal, page_id)
    assert orders[ids[0]] == 0
    assert orders[ids[1]] == 1


def test_add_block_uses_default_content(portal, page_id):
    with session_scope(portal) as s:
        block = service.add_block(s, page_id, "highlight", actor=ED)
        assert block.content["variant"] == "info"
        assert block.structure_locked is False
        assert block.content_locked is False


def test_add_notice_is_refused_even_for_system(portal, page_id):
    with session_scope(portal) as s:
        with pytest.raises(SystemManagedType):
            service.add_block(s, page_id, "notice", actor=ED)
        with pytest.raises(SystemManagedType):
            service.add_block(s, page_id, "notice", actor=portal.notice_sync_actor)
    assert _draft_blocks(portal, page_id) == []


def test_add_unknown_type(portal, page_id):
    with session_scope(portal) as s:
        with pytest.raises(InvalidBlockType):
            service.add_block(s, page_id, "video", actor=ED)


def test_second_map_is_refused(portal, page_id):
    with session_scope(portal) as s:
        service.add_block(s, page_id, "map", {"lat": 43.06, "lng": 16.18, "zoom": 14}, actor=ED)

    with session_scope(portal) as s:
        with pytest.raises(MapLimitExceeded):
            service.add_block(s, page_id, "map", actor=ED)

    assert [b["type"] for b in _draft_blocks(portal, page_id)] == ["map"]


def test_add_block_rejects_invalid_values(portal, page_id):
    with session_scope(portal) as s:
        with pytest.raises(ValidationFailed) as exc:
            service.add_block(s, page_id, "map", {"lat": 100, "lng": 16, "zoom": 14}, actor=ED)
        assert [e.field for e in exc.value.errors] == ["lat"]


def test_update_block_content(portal, page_id):
    (block_id,) = _add_texts(portal, page_id, 1)
    with session_scope(portal) as s:
        service.update_block_content(s, page_id, block_id, _text("Novo", "New"), actor=ED)

    (block,) = _draft_blocks(portal, page_id)
    assert block["content"]["body_en"] == "New"


def test_content_lock_blocks_edit_and_leaves_draft_untouched(portal, page_id):
    (block_id,) = _add_texts(portal, page_id, 1)
    with session_scope(portal) as s:
        service.toggle_content_lock(s, page_id, block_id, actor=ED)

    before = _draft_blocks(portal, page_id)
    revision = _revision(portal, page_id)
    with session_scope(portal) as s:
        with pytest.raises(ContentLocked) as exc:
            service.update_block_content(s, page_id, block_id, _text("Novo", "New"), actor=ED)
        assert exc.value.block_id == block_id

    assert _draft_blocks(portal, page_id) == before
    assert _revision(portal, page_id) == revision


def test_structure_lock_blocks_removal(portal, page_id):
    (block_id,) = _add_texts(portal, page_id, 1)
    with session_scope(portal) as s:
        service.toggle_structure_lock(s, page_id, block_id, actor=ED)

    before = _draft_blocks(portal, page_id)
    revision = _revision(portal, page_id)
    with session_scope(portal) as s:
        with pytest.raises(StructureLocked):
            service.remove_block(s, page_id, block_id, actor=ED)

    assert _draft_blocks(portal, page_id) == before
    assert _revision(portal, page_id) == revision


def test_locks_are_independent(portal, page_id):
    a, b, c = _add_texts(portal, page_id, 3)
    with session_scope(portal) as s:
        service.toggle_structure_lock(s, page_id, a, actor=ED)
        service.toggle_content_lock(s, page_id, c, actor=ED)

    with session_scope(portal) as s:
        # Structure-locked content can still be edited; content-locked blocks can still move.
        service.update_block_content(s, page_id, a, _text("A", "A"), actor=ED)
        service.reorder_block(s, page_id, c, "up", actor=ED)

    assert _orders(portal, page_id) == {a: 0, c: 1, b: 2}

    with session_scope(portal) as s:
        service.remove_block(s, page_id, c, actor=ED)

    blocks = _draft_blocks(portal, page_id)
    assert [x["id"] for x in blocks] == [a, b]
    assert blocks[0]["content"]["body_en"] == "A"


def test_toggle_twice_restores_lock(portal, page_id):
    (block_id,) = _add_texts(portal, page_id, 1)
    with session_scope(portal) as s:
        service.toggle_structure_lock(s, page_id, block_id, actor=ED)
        service.toggle_structure_lock(s, page_id, block_id, actor=ED)

    (block,) = _draft_blocks(portal, page_id)
    assert block["structure_locked"] is False

    with session_scope(portal) as s:
        trail = list_events(s, entity_type="StaticPage", entity_id=str(page_id))
        assert [ev.action for ev in trail] == ["page.block.lock", "page.block.lock", "page.block.add", "page.create"]
        assert json.loads(trail[0].metadata_json)["value"] is False


def test_remove_block_leaves_gap(portal, page_id):
    a, b, c = _add_texts(portal, page_id, 3)
    with session_scope(portal) as s:
        service.remove_block(s, page_id, b, actor=ED)

    assert _orders(portal, page_id) == {a: 0, c: 2}


def test_unknown_block(portal, page_id):
    with session_scope(portal) as s:
        with pytest.raises(BlockNotFound):
            service.remove_block(s, page_id, "nope", actor=ED)


def test_unknown_page(portal):
    with session_scope(portal) as s:
        with pytest.raises(PageNotFound):
            service.add_block(s, 999, "text", actor=ED)


# ============================================================
# Reorder
# ============================================================


def _set_orders(portal, page_id, orders):
    with session_scope(portal) as s:
        page = repository.get_page(s, page_id)
        blocks = [dict(b, order=orders[b["id"]]) for b in page.draft_blocks]
        service.update_draft(s, page_id, blocks=blocks, expected_revision=page.revision, actor=ED)


def test_reorder_repairs_ragged_orders(portal, page_id):
    a, b, c = _add_texts(portal, page_id, 3)
    _set_orders(portal, page_id, {a: 0, b: 2, c: 1})

    # Visual order is a, c, b; moving c down swaps it with b.
    with session_scope(portal) as s:
        service.reorder_block(s, page_id, c, "down", actor=ED)

    assert _orders(portal, page_id) == {a: 0, b: 1, c: 2}


def test_reorder_up(portal, page_id):
    a, b, c = _add_texts(portal, page_id, 3)
    with session_scope(portal) as s:
        service.reorder_block(s, page_id, c, "up", actor=ED)

    assert _orders(portal, page_id) == {a: 0, c: 1, b: 2}


def test_reorder_past_the_end_is_noop(portal, page_id):
    a, b = _add_texts(portal, page_id, 2)
    revision = _revision(portal, page_id)
    with session_scope(portal) as s:
        service.reorder_block(s, page_id, a, "up", actor=ED)
        service.reorder_block(s, page_id, b, "down", actor=ED)

    assert _orders(portal, page_id) == {a: 0, b: 1}
    assert _revision(portal, page_id) == revision


def test_reorder_locked_block(portal, page_id):
    a, b = _add_texts(portal, page_id, 2)
    with session_scope(portal) as s:
        service.toggle_structure_lock(s, page_id, b, actor=ED)

    before = _draft_blocks(portal, page_id)
    revision = _revision(portal, page_id)
    with session_scope(portal) as s:
        with pytest.raises(StructureLocked):
            service.reorder_block(s, page_id, b, "up", actor=ED)
        # A locked neighbour cannot be displaced either.
        with pytest.raises(StructureLocked):
            service.reorder_block(s, page_id, a, "down", actor=ED)

    assert _draft_blocks(portal, page_id) == before
    assert _revision(portal, page_id) == revision


def test_reorder_bad_direction(portal, page_id):
    (a,) = _add_texts(portal, page_id, 1)
    with session_scope(portal) as s:
        with pytest.raises(PageValidationError):
            service.reorder_block(s, page_id, a, "sideways", actor=ED)


# ============================================================
# Whole-draft replacement
# ============================================================


def test_block_replacement_requires_revision(portal, page_id):
    with session_scope(portal) as s:
        with pytest.raises(RevisionRequired):
            service.update_draft(s, page_id, blocks=[], actor=ED)


def test_block_replacement_with_stale_revision(portal, page_id):
    _add_texts(portal, page_id, 1)
    with session_scope(portal) as s:
        with pytest.raises(RevisionConflict):
            service.update_draft(s, page_id, blocks=[], expected_revision=1, actor=ED)


def test_block_replacement_respects_locks(portal, page_id):
    a, b = _add_texts(portal, page_id, 2)
    with session_scope(portal) as s:
        service.toggle_structure_lock(s, page_id, a, actor=ED)
        service.toggle_content_lock(s, page_id, b, actor=ED)

    with session_scope(portal) as s:
        page = repository.get_page(s, page_id)
        current = page.draft_blocks
        revision = page.revision

        without_a = [x for x in current if x["id"] != a]
        with pytest.raises(StructureLocked):
            service.update_draft(s, page_id, blocks=without_a, expected_revision=revision, actor=ED)

        edited_b = [dict(x, content=_text("X", "X")) if x["id"] == b else x for x in current]
        with pytest.raises(ContentLocked):
            service.update_draft(s, page_id, blocks=edited_b, expected_revision=revision, actor=ED)

        retyped = [dict(x, type="highlight") if x["id"] == b else x for x in current]
        with pytest.raises(PageValidationError):
            service.update_draft(s, page_id, blocks=retyped, expected_revision=revision, actor=ED)

        with_notice = current + [{"id": "n1", "type": "notice", "content": {}, "order": 5}]
        with pytest.raises(SystemManagedType):
            service.update_draft(s, page_id, blocks=with_notice, expected_revision=revision, actor=ED)


def test_block_replacement_applies_valid_changes(portal, page_id):
    a, b = _add_texts(portal, page_id, 2)
    with session_scope(portal) as s:
        page = repository.get_page(s, page_id)
        blocks = [dict(x, content=_text("Novo", "New")) if x["id"] == a else x for x in page.draft_blocks]
        blocks = [x for x in blocks if x["id"] != b]
        page = service.update_draft(s, page_id, blocks=blocks, expected_revision=page.revision, actor=ED)
        assert [x["id"] for x in page.draft_blocks] == [a]
        assert page.draft_blocks[0]["content"]["body_en"] == "New"


def test_add_block_after_missing_orders_lands_last(portal, page_id):
    a, b = _add_texts(portal, page_id, 2)
    _set_orders(portal, page_id, {a: None, b: None})

    with session_scope(portal) as s:
        new = service.add_block(s, page_id, "text", _text(), actor=ED)

    assert _orders(portal, page_id) == {a: 0, b: 1, new.id: 2}


def test_add_block_after_ragged_orders_lands_last(portal, page_id):
    a, b, c = _add_texts(portal, page_id, 3)
    _set_orders(portal, page_id, {a: 4, b: None, c: 1})

    with session_scope(portal) as s:
        new = service.add_block(s, page_id, "text", _text(), actor=ED)
        visual = [x.id for x in ordering.sort_blocks(repository.get_page(s, page_id).draft.blocks)]

    assert visual == [c, a, b, new.id]
    assert _orders(portal, page_id) == {c: 0, a: 1, b: 2, new.id: 3}

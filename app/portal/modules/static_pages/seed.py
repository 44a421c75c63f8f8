"""
Menu pages the mobile app links to from its main menu.

`seed_menu_pages` is idempotent: pages whose slug already exists are left
alone so editor changes are never overwritten.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.portal.actors import Actor
from app.portal.modules.static_pages import publishing, repository, service

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


MENU_PAGES: list[dict[str, Any]] = [
    {
        "slug": "timetables",
        "header": {
            "type": "simple",
            "title_hr": "Vozni redovi",
            "title_en": "Timetables",
            "subtitle_hr": "Autobusne i trajektne linije",
            "subtitle_en": "Bus and ferry lines",
        },
        "blocks": [
            {
                "id": "timetables-text-1",
                "type": "text",
                "content": {
                    "title_hr": None,
                    "title_en": None,
                    "body_hr": "Pregledajte vozne redove autobusnih i trajektnih linija prema i od otoka Visa.",
                    "body_en": "View bus and ferry timetables to and from the island of Vis.",
                },
            },
            {
                "id": "timetables-links-1",
                "type": "link_list",
                "content": {
                    "links": [
                        {
                            "id": "link-transport-hub",
                            "title_hr": "Svi vozni redovi",
                            "title_en": "All timetables",
                            "link_type": "screen",
                            "link_target": "TransportHub",
                        }
                    ]
                },
            },
        ],
    },
    {
        "slug": "flora-fauna",
        "header": {
            "type": "media",
            "title_hr": "Flora i fauna",
            "title_en": "Flora & Fauna",
            "subtitle_hr": "Viški arhipelag",
            "subtitle_en": "Vis Archipelago",
            "images": [
                "https://upload.wikimedia.org/wikipedia/commons/f/fa/"
                "Panoramic_view_of_Bisevo_island_next_to_Vis_island_in_Croatia_%2848608613336%29.jpg",
            ],
        },
        "blocks": [
            {
                "id": "flora-fauna-intro",
                "type": "text",
                "content": {
                    "title_hr": "Zašto je flora i fauna viškog arhipelaga posebna?",
                    "title_en": "Why is the flora and fauna of the Vis archipelago special?",
                    "body_hr": (
                        "Viški arhipelag čini mozaik otoka, otočića, hridi i podmorja koji su desetljećima "
                        "ostali izvan intenzivnog ljudskog utjecaja."
                    ),
                    "body_en": (
                        "The Vis archipelago is a mosaic of islands, islets, reefs and surrounding seas that "
                        "remained largely untouched by intensive human activity for decades."
                    ),
                },
            },
            {
                "id": "flora-fauna-tiles",
                "type": "card_list",
                "content": {
                    "cards": [
                        {
                            "id": "tile-flora",
                            "image_url": "https://upload.wikimedia.org/wikipedia/commons/4/4a/Centaurea_ragusina_1.jpg",
                            "title_hr": "Flora",
                            "title_en": "Flora",
                            "description_hr": "Biljni svijet viškog arhipelaga",
                            "description_en": "Plant life of the Vis archipelago",
                            "meta_hr": None,
                            "meta_en": None,
                            "link_type": "screen",
                            "link_target": "Flora",
                        },
                        {
                            "id": "tile-fauna",
                            "image_url": "https://upload.wikimedia.org/wikipedia/commons/8/8a/Tursiops_truncatus_01.jpg",
                            "title_hr": "Fauna",
                            "title_en": "Fauna",
                            "description_hr": "Životinjski svijet viškog arhipelaga",
                            "description_en": "Animal life of the Vis archipelago",
                            "meta_hr": None,
                            "meta_en": None,
                            "link_type": "screen",
                            "link_target": "Fauna",
                        },
                    ]
                },
            },
            {
                "id": "flora-fauna-highlights",
                "type": "highlight",
                "content": {
                    "variant": "info",
                    "title_hr": "Zanimljivosti",
                    "title_en": "Highlights",
                    "body_hr": "Viški arhipelag dio je europske ekološke mreže Natura 2000.",
                    "body_en": "The Vis archipelago is part of the Natura 2000 network.",
                },
            },
        ],
    },
    {
        "slug": "flora",
        "header": {
            "type": "simple",
            "title_hr": "Flora",
            "title_en": "Flora",
            "subtitle_hr": "Biljni svijet otoka Visa",
            "subtitle_en": "Plant life of the island of Vis",
        },
        "blocks": [
            {
                "id": "flora-text-1",
                "type": "text",
                "content": {
                    "title_hr": "Mediteransko bilje",
                    "title_en": "Mediterranean plants",
                    "body_hr": "Otok Vis obiluje mediteranskim biljem uključujući masline, smokve, lavandu i ružmarin.",
                    "body_en": "The island of Vis abounds in Mediterranean plants including olives, figs, lavender and rosemary.",
                },
            },
        ],
    },
    {
        "slug": "fauna",
        "header": {
            "type": "simple",
            "title_hr": "Fauna",
            "title_en": "Fauna",
            "subtitle_hr": "Životinjski svijet otoka Visa",
            "subtitle_en": "Animal life of the island of Vis",
        },
        "blocks": [
            {
                "id": "fauna-text-1",
                "type": "text",
                "content": {
                    "title_hr": "Morski i kopneni život",
                    "title_en": "Marine and terrestrial life",
                    "body_hr": "Vode oko Visa dom su raznolikim morskim vrstama uključujući dupine i kornjače.",
                    "body_en": "The waters around Vis are home to diverse marine species including dolphins and turtles.",
                },
            },
        ],
    },
    {
        "slug": "visitor-info",
        "header": {
            "type": "simple",
            "title_hr": "Info za posjetitelje",
            "title_en": "Visitor info",
            "subtitle_hr": "Korisne informacije za posjetitelje otoka",
            "subtitle_en": "Useful information for island visitors",
        },
        "blocks": [
            {
                "id": "visitor-text-1",
                "type": "text",
                "content": {
                    "title_hr": "Dobrodošli na Vis",
                    "title_en": "Welcome to Vis",
                    "body_hr": "Vis je najudaljeniji nastanjeni hrvatski otok, poznat po netaknutoj prirodi.",
                    "body_en": "Vis is the most remote inhabited Croatian island, known for its pristine nature.",
                },
            },
            {
                "id": "visitor-highlight-1",
                "type": "highlight",
                "content": {
                    "variant": "info",
                    "title_hr": "Turistička sezona",
                    "title_en": "Tourist season",
                    "body_hr": "Glavna turistička sezona traje od lipnja do rujna.",
                    "body_en": "The main tourist season lasts from June to September.",
                },
            },
        ],
    },
    {
        "slug": "important-contacts",
        "header": {
            "type": "simple",
            "title_hr": "Važni kontakti",
            "title_en": "Important contacts",
            "subtitle_hr": "Hitne službe i korisni brojevi",
            "subtitle_en": "Emergency services and useful numbers",
        },
        "blocks": [
            {
                "id": "contacts-contact-1",
                "type": "contact",
                "content": {
                    "contacts": [
                        {
                            "id": "contact-emergency",
                            "name_hr": "Hitna pomoć",
                            "name_en": "Emergency",
                            "phones": ["112"],
                            "email": None,
                            "working_hours_hr": "0-24",
                            "working_hours_en": "24/7",
                        },
                        {
                            "id": "contact-police",
                            "name_hr": "Policija Vis",
                            "name_en": "Police Vis",
                            "address_hr": "Obala Sv. Jurja 36, 21480 Vis",
                            "address_en": "Obala Sv. Jurja 36, 21480 Vis",
                            "phones": ["021 711 111"],
                            "email": None,
                        },
                        {
                            "id": "contact-tourist",
                            "name_hr": "Turistička zajednica Vis",
                            "name_en": "Vis Tourist Board",
                            "phones": ["021 717 017"],
                            "email": "info@tz-vis.hr",
                        },
                    ]
                },
            },
        ],
    },
]


def seed_menu_pages(s: "Session", *, actor: Actor, pages: list[dict[str, Any]] | None = None) -> list[str]:
    """Create and publish every missing menu page. Returns the slugs that were created."""
    created: list[str] = []
    for data in MENU_PAGES if pages is None else pages:
        if repository.slug_exists(s, data["slug"]):
            logger.info("seed: page %s exists; leaving it alone", data["slug"])
            continue
        page = service.create_page(s, data["slug"], data["header"], data["blocks"], actor=actor)
        publishing.publish_page(s, page.id, actor=actor)
        created.append(page.slug)
    return created

import sys
from dataclasses import replace
from pathlib import Path

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.portal import create_portal
from app.portal.actors import editor
from app.portal.config import load_settings
from app.portal.db import session_scope
from app.portal.modules.static_pages.seed import seed_menu_pages


def seed_only(*, database_url: str | None = None) -> list[str]:
    """
    Seed the menu static pages in an idempotent way.
    Does NOT overwrite pages that already exist.
    """
    settings = load_settings()
    if database_url:
        settings = replace(settings, database_url=database_url)
    portal = create_portal(settings)

    with session_scope(portal) as s:
        created = seed_menu_pages(s, actor=editor("seed-menu"))

    print("Initialized database (seed_only).")
    print(f"Created pages: {', '.join(created) if created else '(none)'}")
    return created


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()

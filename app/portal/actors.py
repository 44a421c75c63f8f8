from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Actor:
    """
    Identity of whoever issues a mutation.

    Editors are ordinary actors. The notice synchronization boundary runs as a
    system actor, which may manage system-owned block types but is still
    subject to every lock check.
    """

    id: str
    is_system: bool = False


def editor(actor_id: str) -> Actor:
    return Actor(id=(actor_id or "").strip() or "anonymous")


def system_actor(actor_id: str) -> Actor:
    return Actor(id=actor_id, is_system=True)

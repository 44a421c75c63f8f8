"""create static_pages and audit_events tables

Revision ID: 4d2a9c1e7b30
Revises:
Create Date: 2026-10-19 09:12:41.204118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4d2a9c1e7b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _json():
    return sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create static_pages and audit_events tables."""
    # Check if tables already exist (idempotent)
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("request_id", sa.String(64), nullable=True),
            sa.Column("actor_id", sa.String(320), nullable=True),
            sa.Column("actor_is_system", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("action", sa.String(128), nullable=False),
            sa.Column("entity_type", sa.String(128), nullable=True),
            sa.Column("entity_id", sa.String(128), nullable=True),
            sa.Column("reason", sa.String(512), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
            sa.UniqueConstraint("request_id", "id", name="uq_audit_request_id_id"),
        )
        op.create_index("idx_audit_events_entity", "audit_events", ["entity_type", "entity_id"])
        op.create_index("idx_audit_events_action", "audit_events", ["action"])

    if "static_pages" not in existing_tables:
        op.create_table(
            "static_pages",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("slug", sa.String(128), nullable=False, unique=True),
            sa.Column("draft_header", _json(), nullable=False),
            sa.Column("draft_blocks", _json(), nullable=False),
            sa.Column("draft_updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("draft_updated_by", sa.String(320), nullable=True),
            sa.Column("published_header", _json(), nullable=True),
            sa.Column("published_blocks", _json(), nullable=True),
            sa.Column("published_at", sa.DateTime(), nullable=True),
            sa.Column("published_by", sa.String(320), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("created_by", sa.String(320), nullable=True),
            sa.Column("revision", sa.Integer(), nullable=False, server_default="1"),
        )
        op.create_index("idx_static_pages_published_at", "static_pages", ["published_at"])


def downgrade() -> None:
    """Drop static_pages and audit_events tables."""
    op.drop_index("idx_static_pages_published_at", table_name="static_pages")
    op.drop_table("static_pages")
    op.drop_index("idx_audit_events_action", table_name="audit_events")
    op.drop_index("idx_audit_events_entity", table_name="audit_events")
    op.drop_table("audit_events")

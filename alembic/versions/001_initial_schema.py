"""Initial users schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Must match settings.search_language
SEARCH_LANGUAGE = "german"


def upgrade() -> None:
    """Upgrade schema."""
    is_postgresql = op.get_bind().dialect.name == "postgresql"

    op.create_table(
        "users",
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone_number", sa.String(length=50), nullable=True),
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()") if is_postgresql else None,
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("phone_number", name="uq_users_phone_number"),
    )
    op.create_index("ix_users_display_name", "users", ["display_name"], unique=False)

    if is_postgresql:
        # Serves to_tsvector(<language>, display_name) @@ plainto_tsquery(...)
        op.create_index(
            "ix_users_display_name_search",
            "users",
            [sa.text(f"to_tsvector('{SEARCH_LANGUAGE}', display_name)")],
            unique=False,
            postgresql_using="gin",
        )


def downgrade() -> None:
    """Downgrade schema."""
    if op.get_bind().dialect.name == "postgresql":
        op.drop_index("ix_users_display_name_search", table_name="users")
    op.drop_index("ix_users_display_name", table_name="users")
    op.drop_table("users")

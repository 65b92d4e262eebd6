"""create tenants table

Tenant rows are the source of truth for which tenant databases exist. The
connection string is stored per tenant; the public id is the identifier
carried in identity tokens.

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-09-02 10:14:31.120482

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3f9a1c2b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "tenants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("public_id", sa.String(length=26), nullable=False),  # ULID
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("connection_string", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("connection_string", name="uq_tenants_connection_string"),
    )
    op.create_index("ix_tenants_public_id", "tenants", ["public_id"], unique=True)
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)
    # Startup enumerates active tenants only
    op.create_index("ix_tenants_deleted_at", "tenants", ["deleted_at"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_tenants_deleted_at", table_name="tenants")
    op.drop_index("ix_tenants_slug", table_name="tenants")
    op.drop_index("ix_tenants_public_id", table_name="tenants")
    op.drop_table("tenants")

"""create facility staff table

Revision ID: f2e6a0b93c58
Revises: d15b8e4c6f70
Create Date: 2026-09-03 09:21:17.660148

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "f2e6a0b93c58"
down_revision: Union[str, Sequence[str], None] = "d15b8e4c6f70"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "facility_staff",
        sa.Column("facility_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(
            ["facility_id"], ["facilities.id"], ondelete="CASCADE"
        ),
        # RESTRICT: staff rows must be removed before the user
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("facility_id", "user_id"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("facility_staff")

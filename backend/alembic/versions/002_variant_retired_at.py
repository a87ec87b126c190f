"""Keep ordered variants on regeneration: variants.retired_at

Revision ID: 002
Revises: 001
Create Date: 2026-02-09

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("variants", sa.Column("retired_at", sa.DateTime(timezone=True), nullable=True))
    op.create_index("ix_variants_retired_at", "variants", ["retired_at"])


def downgrade() -> None:
    op.drop_index("ix_variants_retired_at", table_name="variants")
    op.drop_column("variants", "retired_at")

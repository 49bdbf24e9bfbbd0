"""add source provenance columns

Revision ID: 8b4d27e1c6f3
Revises: 5e1f0a9c2b74
Create Date: 2026-09-21 16:03:17.550902

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8b4d27e1c6f3'
down_revision: Union[str, Sequence[str], None] = '5e1f0a9c2b74'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add publisher identity / trust to sources and provenance_score to insights."""
    op.add_column("sources", sa.Column("publisher_domain", sa.String(), nullable=True))
    op.add_column("sources", sa.Column("publisher_name", sa.String(), nullable=True))
    op.add_column(
        "sources",
        sa.Column("publisher_type", sa.String(length=16), nullable=False, server_default="other"),
    )
    op.add_column(
        "sources",
        sa.Column("is_official", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.add_column(
        "sources",
        sa.Column("trust_score", sa.Float(), nullable=False, server_default="0.5"),
    )
    # Existing insights get confidence * neutral trust
    op.add_column(
        "insights",
        sa.Column("provenance_score", sa.Float(), nullable=True),
    )
    op.execute("UPDATE insights SET provenance_score = confidence * 0.5")
    op.alter_column("insights", "provenance_score", nullable=False)


def downgrade() -> None:
    """Remove provenance columns."""
    op.drop_column("insights", "provenance_score")
    op.drop_column("sources", "trust_score")
    op.drop_column("sources", "is_official")
    op.drop_column("sources", "publisher_type")
    op.drop_column("sources", "publisher_name")
    op.drop_column("sources", "publisher_domain")

"""add news_events table

Revision ID: d91a6c3f0e58
Revises: 8b4d27e1c6f3
Create Date: 2026-10-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'd91a6c3f0e58'
down_revision: Union[str, None] = '8b4d27e1c6f3'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'news_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('source_id', sa.Integer(), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('headline', sa.String(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('full_text', sa.Text(), nullable=True),
        sa.Column('theme', sa.String(length=16), nullable=False),
        sa.Column('importance', sa.Float(), nullable=False),
        sa.Column('content_fingerprint', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['source_id'], ['sources.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'company_id', 'source_id', 'content_fingerprint', name='uq_news_source_fingerprint'
        ),
    )
    op.create_index(op.f('ix_news_events_company_id'), 'news_events', ['company_id'], unique=False)
    op.create_index(op.f('ix_news_events_source_id'), 'news_events', ['source_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_news_events_source_id'), table_name='news_events')
    op.drop_index(op.f('ix_news_events_company_id'), table_name='news_events')
    op.drop_table('news_events')

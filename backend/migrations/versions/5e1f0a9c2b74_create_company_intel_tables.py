"""create company intelligence tables

Revision ID: 5e1f0a9c2b74
Revises:
Create Date: 2026-09-14 10:12:44.302118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5e1f0a9c2b74'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('domain', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_companies_slug'), 'companies', ['slug'], unique=True)

    op.create_table(
        'sources',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('doc_type', sa.String(length=32), nullable=False),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('language', sa.String(length=16), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('content_fingerprint', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'url', name='uq_source_company_url'),
    )
    op.create_index(op.f('ix_sources_company_id'), 'sources', ['company_id'], unique=False)

    op.create_table(
        'metrics_dictionary',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('key_slug', sa.String(), nullable=False),
        sa.Column('label', sa.String(), nullable=False),
        sa.Column('bucket', sa.String(), nullable=True),
        sa.Column('primary_source', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_metrics_dictionary_key_slug'), 'metrics_dictionary', ['key_slug'], unique=True)

    op.create_table(
        'facts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('source_id', sa.Integer(), nullable=False),
        sa.Column('metric_id', sa.Integer(), nullable=False),
        sa.Column('as_of_date', sa.Date(), nullable=True),
        sa.Column('metric_key', sa.String(), nullable=False),
        sa.Column('raw_value', sa.Text(), nullable=False),
        sa.Column('numeric_value', sa.Float(), nullable=True),
        sa.Column('unit', sa.String(length=32), nullable=True),
        sa.Column('qualifier', sa.String(), nullable=True),
        sa.Column('quote', sa.Text(), nullable=True),
        sa.Column('extraction_confidence', sa.Float(), nullable=True),
        sa.Column('impact_score', sa.Float(), nullable=False),
        sa.Column('content_fingerprint', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['metric_id'], ['metrics_dictionary.id'], ),
        sa.ForeignKeyConstraint(['source_id'], ['sources.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'content_fingerprint', name='uq_fact_company_fingerprint'),
    )
    op.create_index(op.f('ix_facts_source_id'), 'facts', ['source_id'], unique=False)
    op.create_index(op.f('ix_facts_metric_id'), 'facts', ['metric_id'], unique=False)
    op.create_index(
        'ix_facts_company_metric_date', 'facts', ['company_id', 'metric_id', 'as_of_date'], unique=False
    )

    op.create_table(
        'insights',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('source_id', sa.Integer(), nullable=False),
        sa.Column('theme', sa.String(length=16), nullable=False),
        sa.Column('theme_label', sa.String(), nullable=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('content_fingerprint', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ),
        sa.ForeignKeyConstraint(['source_id'], ['sources.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'company_id', 'source_id', 'content_fingerprint', name='uq_insight_source_fingerprint'
        ),
    )
    op.create_index(op.f('ix_insights_source_id'), 'insights', ['source_id'], unique=False)
    op.create_index('ix_insights_company_theme', 'insights', ['company_id', 'theme'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_insights_company_theme', table_name='insights')
    op.drop_index(op.f('ix_insights_source_id'), table_name='insights')
    op.drop_table('insights')
    op.drop_index('ix_facts_company_metric_date', table_name='facts')
    op.drop_index(op.f('ix_facts_metric_id'), table_name='facts')
    op.drop_index(op.f('ix_facts_source_id'), table_name='facts')
    op.drop_table('facts')
    op.drop_index(op.f('ix_metrics_dictionary_key_slug'), table_name='metrics_dictionary')
    op.drop_table('metrics_dictionary')
    op.drop_index(op.f('ix_sources_company_id'), table_name='sources')
    op.drop_table('sources')
    op.drop_index(op.f('ix_companies_slug'), table_name='companies')
    op.drop_table('companies')

"""create contacts and contact_tags tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18 10:12:41.512093

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    tag_category = postgresql.ENUM(
        'company', 'location', 'education', 'interest', 'skill', 'source',
        name='tag_category', create_type=False,
    )
    tag_category.create(op.get_bind(), checkfirst=True)

    op.create_table('contacts',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=300), nullable=False),
        sa.Column('name_key', sa.String(length=300), nullable=False,
                  comment='Lowercased, whitespace-collapsed name used to merge imports'),
        sa.Column('email', sa.String(length=320), nullable=False, server_default=''),
        sa.Column('company', sa.Text(), nullable=False, server_default=''),
        sa.Column('position', sa.Text(), nullable=False, server_default=''),
        sa.Column('location', sa.Text(), nullable=False, server_default=''),
        sa.Column('phone', sa.String(length=100), nullable=False, server_default=''),
        sa.Column('profile_url', sa.Text(), nullable=False, server_default=''),
        sa.Column('picture_url', sa.Text(), nullable=False, server_default=''),
        sa.Column('connected_on', sa.String(length=50), nullable=False, server_default='',
                  comment='Connection date as exported by the source'),
        sa.Column('source', sa.String(length=100), nullable=False, server_default='',
                  comment="Source label, composite labels joined with '+'"),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_contacts_name_key', 'contacts', ['name_key'])
    op.create_index('ix_contacts_created_at', 'contacts', ['created_at'])

    op.create_table('contact_tags',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('contact_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('category', tag_category, nullable=False),
        sa.Column('source_system', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('position_index', sa.Integer(), nullable=False, server_default='0',
                  comment='Keeps tags in the order they were derived'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('contact_id', 'name', 'category')
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('contact_tags')
    op.drop_index('ix_contacts_created_at', table_name='contacts')
    op.drop_index('ix_contacts_name_key', table_name='contacts')
    op.drop_table('contacts')
    op.execute("DROP TYPE IF EXISTS tag_category")

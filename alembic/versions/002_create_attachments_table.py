"""create attachments table

Revision ID: 002
Revises: 001
Create Date: 2025-03-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'attachments',
        sa.Column('id', sa.Uuid(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_id', sa.Uuid(as_uuid=False), nullable=False),
        sa.Column('file_name', sa.String(), nullable=False),
        sa.Column('storage_path', sa.String(), nullable=False),
        sa.Column('mime_type', sa.String(), nullable=True),
        sa.Column('size_bytes', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Attachment rows go away with their budget
    op.create_foreign_key(
        'fk_attachments_budget_id',
        'attachments',
        'budgets',
        ['budget_id'],
        ['id'],
        ondelete='CASCADE'
    )
    op.create_check_constraint('ck_attachments_size_bytes', 'attachments', 'size_bytes >= 0')

    op.create_index('ix_attachments_id', 'attachments', ['id'], unique=False)
    op.create_index('ix_attachments_budget_id', 'attachments', ['budget_id'], unique=False)
    op.create_index('ix_attachments_storage_path', 'attachments', ['storage_path'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_attachments_storage_path', table_name='attachments')
    op.drop_index('ix_attachments_budget_id', table_name='attachments')
    op.drop_index('ix_attachments_id', table_name='attachments')
    op.drop_constraint('ck_attachments_size_bytes', 'attachments', type_='check')
    op.drop_constraint('fk_attachments_budget_id', 'attachments', type_='foreignkey')
    op.drop_table('attachments')

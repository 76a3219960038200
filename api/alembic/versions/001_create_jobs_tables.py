"""create_jobs_tables

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in ('managers', 'suppliers'):
        if not inspector.has_table(table):
            op.create_table(table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id')
            )
            op.create_index(op.f(f'ix_{table}_id'), table, ['id'], unique=False)
            op.create_index(op.f(f'ix_{table}_name'), table, ['name'], unique=True)

    if not inspector.has_table('jobs'):
        op.create_table('jobs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('job_number', sa.String(length=64), nullable=False),
        sa.Column('site_name', sa.String(length=255), nullable=False),
        sa.Column('client', sa.String(length=255), nullable=True),
        sa.Column('source', sa.Enum('APP', 'EXCEL', name='jobsource'), nullable=False),
        sa.Column('imported_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('excel_file_name', sa.String(length=255), nullable=True),
        sa.Column('excel_sheet_name', sa.String(length=255), nullable=True),
        sa.Column('excel_row_ref', sa.String(length=255), nullable=True),
        sa.Column('manager_name_raw', sa.String(length=255), nullable=True),
        sa.Column('manager_id', sa.Integer(), nullable=True),
        sa.Column('supplier_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['manager_id'], ['managers.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_jobs_id'), 'jobs', ['id'], unique=False)
        op.create_index(op.f('ix_jobs_job_number'), 'jobs', ['job_number'], unique=True)
        op.create_index(op.f('ix_jobs_source'), 'jobs', ['source'], unique=False)
        op.create_index(op.f('ix_jobs_manager_id'), 'jobs', ['manager_id'], unique=False)
        op.create_index(op.f('ix_jobs_supplier_id'), 'jobs', ['supplier_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if inspector.has_table('jobs'):
        op.drop_table('jobs')
        sa.Enum(name='jobsource').drop(bind, checkfirst=True)
    for table in ('suppliers', 'managers'):
        if inspector.has_table(table):
            op.drop_table(table)

"""Create customers, jobs and job_charges tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

Operational tables billing reads from: customers and their clearing jobs
with itemized fee charges.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the customers, jobs and job_charges tables."""
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('quickbooks_customer_id', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_customers'),
    )

    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_number', sa.String(50), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('OPEN', 'INVOICED', 'PARTIALLY_PAID', 'CLEARED', 'CANCELLED', name='job_status'),
            nullable=False,
            server_default='OPEN'
        ),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_jobs'),
        sa.ForeignKeyConstraint(
            ['customer_id'],
            ['customers.id'],
            name='fk_jobs_customer_id',
            ondelete='RESTRICT'
        ),
    )
    op.create_index('ix_jobs_job_number', 'jobs', ['job_number'], unique=True)
    op.create_index('ix_jobs_customer_id', 'jobs', ['customer_id'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])

    op.create_table(
        'job_charges',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=False),
        sa.Column('fee_id', sa.String(64), nullable=False),
        sa.Column('fee_name', sa.String(255), nullable=False),
        sa.Column('description_override', sa.String(500), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_job_charges'),
        sa.ForeignKeyConstraint(
            ['job_id'],
            ['jobs.id'],
            name='fk_job_charges_job_id',
            ondelete='CASCADE'
        ),
    )
    op.create_index('ix_job_charges_job_id', 'job_charges', ['job_id'])


def downgrade() -> None:
    """Drop the customers, jobs and job_charges tables."""
    op.drop_index('ix_job_charges_job_id', table_name='job_charges')
    op.drop_table('job_charges')
    op.drop_index('ix_jobs_status', table_name='jobs')
    op.drop_index('ix_jobs_customer_id', table_name='jobs')
    op.drop_index('ix_jobs_job_number', table_name='jobs')
    op.drop_table('jobs')
    op.drop_table('customers')

    # Drop the enum type
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS job_status")

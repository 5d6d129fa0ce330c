"""Create invoices and invoice_lines tables

Revision ID: 20261019_000002
Revises: 20261019_000001
Create Date: 2026-10-19

Invoices generated from jobs. ``version`` is the row revision used for
optimistic concurrency on payment/status updates.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '20261019_000002'
down_revision: Union[str, None] = '20261019_000001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the invoices and invoice_lines tables."""
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_number', sa.String(32), nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='USD'),
        sa.Column('total', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('tax_total', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('balance', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column(
            'status',
            sa.Enum('DRAFT', 'SENT', 'PARTIALLY_PAID', 'PAID', 'VOID', name='invoice_status'),
            nullable=False,
            server_default='DRAFT'
        ),
        sa.Column('quickbooks_invoice_id', sa.String(64), nullable=True),
        sa.Column(
            'quickbooks_sync_status',
            sa.Enum('NOT_SYNCED', 'SYNCED', 'ERROR', name='quickbooks_sync_status'),
            nullable=False,
            server_default='NOT_SYNCED'
        ),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('voided_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_invoices'),
        sa.ForeignKeyConstraint(
            ['job_id'],
            ['jobs.id'],
            name='fk_invoices_job_id',
            ondelete='RESTRICT'
        ),
        sa.ForeignKeyConstraint(
            ['customer_id'],
            ['customers.id'],
            name='fk_invoices_customer_id',
            ondelete='RESTRICT'
        ),
    )

    # Create indexes for common queries
    op.create_index('ix_invoices_invoice_number', 'invoices', ['invoice_number'], unique=True)
    op.create_index('ix_invoices_job_id', 'invoices', ['job_id'])
    op.create_index('ix_invoices_customer_id', 'invoices', ['customer_id'])
    op.create_index('ix_invoices_due_date', 'invoices', ['due_date'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])

    op.create_table(
        'invoice_lines',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('charge_id', sa.Integer(), nullable=True),
        sa.Column('fee_id', sa.String(64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(precision=9, scale=4), nullable=False, server_default='0'),
        sa.Column('line_total', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_invoice_lines'),
        sa.ForeignKeyConstraint(
            ['invoice_id'],
            ['invoices.id'],
            name='fk_invoice_lines_invoice_id',
            ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['charge_id'],
            ['job_charges.id'],
            name='fk_invoice_lines_charge_id',
            ondelete='SET NULL'
        ),
    )
    op.create_index('ix_invoice_lines_invoice_id', 'invoice_lines', ['invoice_id'])


def downgrade() -> None:
    """Drop the invoices and invoice_lines tables."""
    op.drop_index('ix_invoice_lines_invoice_id', table_name='invoice_lines')
    op.drop_table('invoice_lines')
    op.drop_index('ix_invoices_status', table_name='invoices')
    op.drop_index('ix_invoices_due_date', table_name='invoices')
    op.drop_index('ix_invoices_customer_id', table_name='invoices')
    op.drop_index('ix_invoices_job_id', table_name='invoices')
    op.drop_index('ix_invoices_invoice_number', table_name='invoices')
    op.drop_table('invoices')

    # Drop the enum types
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS quickbooks_sync_status")
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS invoice_status")

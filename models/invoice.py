# models/invoice.py
import enum
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from .base import Base


class InvoiceStatus(str, enum.Enum):
     """Enumeration for invoice lifecycle status."""
     DRAFT = "DRAFT"
     SENT = "SENT"
     PARTIALLY_PAID = "PARTIALLY_PAID"
     PAID = "PAID"
     VOID = "VOID"


class QuickbooksSyncStatus(str, enum.Enum):
     """Placeholder for external accounting sync; never driven by billing."""
     NOT_SYNCED = "NOT_SYNCED"
     SYNCED = "SYNCED"
     ERROR = "ERROR"


class Invoice(Base):
     """
     Invoice model - billing record generated from a job's charges.

     Financial fields (total, tax_total, lines) are fixed at generation.
     Only amount_paid, balance and status change afterwards, and every
     such change bumps ``version`` (optimistic concurrency check).
     """
     __tablename__ = "invoices"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_number = Column(String(32), nullable=False, unique=True, index=True)

     # Foreign keys
     job_id = Column(
          Integer,
          ForeignKey("jobs.id", ondelete="RESTRICT"),
          nullable=False,
          index=True
     )
     customer_id = Column(
          Integer,
          ForeignKey("customers.id", ondelete="RESTRICT"),
          nullable=False,
          index=True
     )
     customer_name = Column(String(255), nullable=False)  # Snapshot at generation time

     # Invoice details
     issue_date = Column(Date, nullable=False)
     due_date = Column(Date, nullable=False, index=True)
     currency = Column(String(3), nullable=False, default="USD")
     total = Column(Numeric(12, 2), nullable=False)
     tax_total = Column(Numeric(12, 2), nullable=False)
     amount_paid = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
     balance = Column(Numeric(12, 2), nullable=False)
     status = Column(
          Enum(InvoiceStatus, name="invoice_status", create_constraint=True),
          default=InvoiceStatus.DRAFT,
          nullable=False,
          index=True
     )

     # External accounting sync placeholders
     quickbooks_invoice_id = Column(String(64), nullable=True)
     quickbooks_sync_status = Column(
          Enum(QuickbooksSyncStatus, name="quickbooks_sync_status", create_constraint=True),
          default=QuickbooksSyncStatus.NOT_SYNCED,
          nullable=False
     )

     # Row revision
     version = Column(Integer, nullable=False)

     # Timestamps
     sent_at = Column(DateTime, nullable=True)
     voided_at = Column(DateTime, nullable=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     job = relationship("Job", back_populates="invoices")
     customer = relationship("Customer", back_populates="invoices")
     lines = relationship(
          "InvoiceLine",
          back_populates="invoice",
          order_by="InvoiceLine.position",
          cascade="all, delete-orphan"
     )
     payments = relationship(
          "Payment",
          back_populates="invoice",
          order_by="Payment.id"
     )

     __mapper_args__ = {"version_id_col": version}

     def __repr__(self):
          return (
               f"<Invoice(id={self.id}, number='{self.invoice_number}', total={self.total}, "
               f"balance={self.balance}, status='{self.status.value}')>"
          )

     def is_overdue(self, today: Optional[date] = None) -> bool:
          """Check if the invoice is past its due date with money still owed."""
          today = today or date.today()
          return (
               self.status in (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID)
               and Decimal(self.balance) > 0
               and self.due_date < today
          )


class InvoiceLine(Base):
     """
     A priced, taxed line on an invoice, derived 1:1 from a job charge.
     """
     __tablename__ = "invoice_lines"

     id = Column(Integer, primary_key=True, autoincrement=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="CASCADE"),
          nullable=False,
          index=True
     )
     charge_id = Column(Integer, ForeignKey("job_charges.id", ondelete="SET NULL"), nullable=True)
     fee_id = Column(String(64), nullable=False)
     position = Column(Integer, nullable=False, default=0)
     description = Column(String(500), nullable=False)
     quantity = Column(Integer, nullable=False, default=1)
     unit_price = Column(Numeric(12, 2), nullable=False)
     tax_rate = Column(Numeric(9, 4), nullable=False, default=Decimal("0"))  # Percent, derived
     line_total = Column(Numeric(12, 2), nullable=False)

     invoice = relationship("Invoice", back_populates="lines")

     @property
     def tax_amount(self) -> Decimal:
          """Line tax, reconstructed from the total and the untaxed amount."""
          return Decimal(self.line_total) - Decimal(self.unit_price) * self.quantity

     def __repr__(self):
          return f"<InvoiceLine(id={self.id}, description='{self.description}', line_total={self.line_total})>"

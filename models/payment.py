# models/payment.py
"""
Payment model - immutable record of money applied to an invoice.

Each payment stores a SHA-256 hash of its own fields and a reference to
the previous payment's hash on the same invoice, forming a per-invoice
chain. Records are append-only; modification is prevented at the
application layer.
"""
import enum

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship
from .base import Base


class PaymentMethod(str, enum.Enum):
     """How the customer paid."""
     CASH = "Cash"
     BANK_TRANSFER = "Bank Transfer"
     CARD = "Card"
     CHEQUE = "Cheque"


class Payment(Base):
     """
     Immutable payment entry against exactly one invoice.
     """
     __tablename__ = "payments"

     id = Column(Integer, primary_key=True, autoincrement=True)
     payment_number = Column(String(32), nullable=False, unique=True, index=True)
     invoice_id = Column(
          Integer,
          ForeignKey("invoices.id", ondelete="RESTRICT"),  # Prevent delete if payments exist
          nullable=False,
          index=True
     )
     customer_id = Column(
          Integer,
          ForeignKey("customers.id", ondelete="RESTRICT"),
          nullable=False,
          index=True
     )
     amount = Column(Numeric(12, 2), nullable=False)
     method = Column(
          Enum(PaymentMethod, name="payment_method", create_constraint=True),
          nullable=False
     )
     payment_date = Column(Date, nullable=False)
     reference_number = Column(String(100), nullable=True)
     notes = Column(Text, nullable=True)
     quickbooks_payment_id = Column(String(64), nullable=True)

     transaction_hash = Column(String(64), nullable=False, unique=True, index=True)  # SHA-256 hex length
     previous_hash = Column(String(64), nullable=False)  # "0" for the first payment on an invoice
     recorded_at = Column(DateTime, nullable=False)

     # Relationships
     invoice = relationship("Invoice", back_populates="payments")
     customer = relationship("Customer")

     def __repr__(self):
          return f"<Payment(id={self.id}, number='{self.payment_number}', invoice_id={self.invoice_id}, amount={self.amount})>"

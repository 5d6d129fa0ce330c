# services/status_machine.py
"""
Invoice status transitions.

DRAFT -> SENT -> {PARTIALLY_PAID, PAID}; VOID is reachable from any
non-terminal status through an explicit administrative action. PAID and
VOID are terminal. Every function here is pure: it takes the current
status and amounts and returns the next status, or raises.
"""
from decimal import Decimal

from models.invoice import InvoiceStatus
from services.errors import InvalidTransitionError, InvoiceVoidError

TERMINAL_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.VOID})


def ensure_accepts_payment(status: InvoiceStatus, invoice_id=None) -> None:
     """Raise InvoiceVoidError if payments are not accepted in this status."""
     if status == InvoiceStatus.VOID:
          raise InvoiceVoidError(
               f"Invoice {invoice_id} is void and accepts no payments",
               invoice_id=invoice_id,
               status=status,
          )


def status_for_amounts(
     current: InvoiceStatus,
     total: Decimal,
     amount_paid: Decimal
) -> InvoiceStatus:
     """
     Status implied by the paid amount.

     - amount_paid >= total -> PAID
     - 0 < amount_paid < total -> PARTIALLY_PAID
     - nothing paid -> the current status (DRAFT stays DRAFT, SENT stays SENT)
     """
     ensure_accepts_payment(current)
     if amount_paid >= total:
          return InvoiceStatus.PAID
     if amount_paid > 0:
          return InvoiceStatus.PARTIALLY_PAID
     return current


def status_after_payment(
     current: InvoiceStatus,
     total: Decimal,
     amount_paid: Decimal,
     invoice_id=None
) -> InvoiceStatus:
     """Next status once a payment has brought the paid amount to ``amount_paid``."""
     ensure_accepts_payment(current, invoice_id)
     return status_for_amounts(current, total, amount_paid)


def status_after_send(
     current: InvoiceStatus,
     total: Decimal,
     amount_paid: Decimal,
     invoice_id=None
) -> InvoiceStatus:
     """
     Next status once the invoice was delivered to the customer.

     Only DRAFT moves; re-sending an invoice that already left DRAFT keeps
     its status.
     """
     if current == InvoiceStatus.VOID:
          raise InvalidTransitionError(
               f"Invoice {invoice_id} is void and cannot be sent",
               invoice_id=invoice_id,
               status=current,
          )
     if current != InvoiceStatus.DRAFT:
          return current
     paid_status = status_for_amounts(current, total, amount_paid)
     return InvoiceStatus.SENT if paid_status == InvoiceStatus.DRAFT else paid_status


def status_after_void(current: InvoiceStatus, invoice_id=None) -> InvoiceStatus:
     """VOID, unless the invoice already reached a terminal status."""
     if current in TERMINAL_STATUSES:
          raise InvalidTransitionError(
               f"Invoice {invoice_id} is {current.value} and cannot be voided",
               invoice_id=invoice_id,
               status=current,
          )
     return InvoiceStatus.VOID

# services/payment_ledger.py
"""
Payment Ledger - applies payments to invoices.

A payment is recorded against exactly one invoice. Recording it:
1. Takes the invoice's lock (bounded wait) and re-reads the invoice row
2. Checks amount > 0, invoice not VOID, and no overpayment unless allowed
3. Updates amount_paid / balance / status and appends an immutable,
   hash-chained Payment row, all in one commit
4. Moves the job to PARTIALLY_PAID / CLEARED
5. After the commit, emits notification and audit events (best effort)

Any failure before the commit rolls the session back; the invoice and its
payments are left exactly as they were.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple, Union

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from config import BillingSettings
from models import Invoice, InvoiceStatus, JobStatus, Payment, PaymentMethod
from services.audit_service import (
     PAYMENT_RECORDED,
     AuditEvent,
     AuditSink,
     LoggingAuditSink,
     invoice_snapshot,
     record_audit_event,
)
from services.errors import (
     ConflictError,
     InvalidPaymentAmountError,
     InvoiceNotFoundError,
     OverpaymentError,
)
from services.ledger_service import compute_transaction_hash, get_previous_hash
from services.locks import InvoiceLockRegistry
from services.money import to_money
from services.notification_service import (
     LoggingNotifier,
     NotificationEvent,
     NotificationType,
     Notifier,
     company_fields,
     dispatch_notification,
)
from services.number_allocator import PAYMENT, NumberAllocator
from services.status_machine import ensure_accepts_payment, status_after_payment

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
     return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


class PaymentLedger:
     """Records payments and keeps invoice balances and statuses consistent."""

     def __init__(
          self,
          allocator: NumberAllocator,
          notifier: Optional[Notifier] = None,
          audit_sink: Optional[AuditSink] = None,
          settings: Optional[BillingSettings] = None,
          locks: Optional[InvoiceLockRegistry] = None,
     ):
          self.allocator = allocator
          self.notifier = notifier or LoggingNotifier()
          self.audit_sink = audit_sink or LoggingAuditSink()
          self.settings = settings or BillingSettings()
          self.locks = locks or InvoiceLockRegistry()

     def apply_payment(self, invoice: Invoice, amount: Union[Decimal, int, float, str]) -> InvoiceStatus:
          """
          Apply ``amount`` to ``invoice`` in memory.

          On success amount_paid, balance and status are updated and the
          new status is returned. On failure the invoice is not touched.

          Raises:
               InvalidPaymentAmountError: amount is not positive
               InvoiceVoidError: invoice is VOID
               OverpaymentError: amount_paid would exceed total and
                    overpayment is not allowed
          """
          amount = to_money(amount)
          if amount <= 0:
               raise InvalidPaymentAmountError(
                    "Payment amount must be greater than zero",
                    invoice_id=invoice.id,
                    attempted_amount=amount,
               )
          ensure_accepts_payment(invoice.status, invoice.id)

          total = to_money(invoice.total)
          paid = to_money(invoice.amount_paid)
          new_paid = paid + amount

          if new_paid > total and not self.settings.allow_overpayment:
               raise OverpaymentError(
                    f"Payment of {amount} exceeds the balance due of {total - paid} on invoice {invoice.invoice_number}",
                    invoice_id=invoice.id,
                    invoice_number=invoice.invoice_number,
                    attempted_amount=amount,
                    balance=total - paid,
               )

          # Overpaid invoices land on PAID with a negative balance (customer credit)
          new_status = status_after_payment(invoice.status, total, new_paid, invoice.id)
          invoice.amount_paid = new_paid
          invoice.balance = total - new_paid
          invoice.status = new_status
          return new_status

     def record_payment(
          self,
          db: Session,
          invoice_id: int,
          amount: Union[Decimal, int, float, str],
          method: Union[PaymentMethod, str] = PaymentMethod.BANK_TRANSFER,
          payment_date: Optional[date] = None,
          reference_number: Optional[str] = None,
          notes: Optional[str] = None,
          actor: Optional[str] = None,
     ) -> Tuple[Invoice, Payment]:
          """
          Record a payment against an invoice.

          Args:
               db: SQLAlchemy database session
               invoice_id: Invoice being paid
               amount: Amount received (> 0)
               method: Payment method
               payment_date: Date the money was received (default: today)
               reference_number: Optional bank/cheque reference
               notes: Optional free text
               actor: Caller identity, for the audit trail

          Returns:
               (updated Invoice, new Payment)

          Raises:
               InvoiceNotFoundError, InvalidPaymentAmountError,
               InvoiceVoidError, OverpaymentError,
               ConflictError: lock timeout or concurrent modification
               AllocationExhaustedError: payment number space exhausted
          """
          method = PaymentMethod(method)
          amount = to_money(amount)

          with self.locks.hold(invoice_id, self.settings.lock_timeout_seconds):
               try:
                    invoice = db.get(Invoice, invoice_id, with_for_update=True, populate_existing=True)
                    if invoice is None:
                         raise InvoiceNotFoundError(f"Invoice with ID {invoice_id} not found", invoice_id=invoice_id)

                    before = invoice_snapshot(invoice)
                    new_status = self.apply_payment(invoice, amount)

                    recorded_at = _utcnow()
                    payment_number = self.allocator.allocate(PAYMENT)
                    previous_hash = get_previous_hash(db, invoice.id)
                    payment = Payment(
                         payment_number=payment_number,
                         invoice_id=invoice.id,
                         customer_id=invoice.customer_id,
                         amount=amount,
                         method=method,
                         payment_date=payment_date or recorded_at.date(),
                         reference_number=reference_number,
                         notes=notes,
                         recorded_at=recorded_at,
                         previous_hash=previous_hash,
                         transaction_hash=compute_transaction_hash(
                              invoice.id,
                              invoice.customer_id,
                              amount,
                              payment_number,
                              recorded_at,
                              previous_hash,
                         ),
                    )
                    db.add(payment)
                    self._update_job_status(invoice, new_status)
                    db.commit()
               except StaleDataError as exc:
                    db.rollback()
                    logger.warning("Invoice %s changed concurrently; payment not recorded", invoice_id)
                    raise ConflictError(
                         f"Invoice {invoice_id} was modified concurrently; retry the payment",
                         invoice_id=invoice_id,
                         attempted_amount=amount,
                    ) from exc
               except Exception:
                    db.rollback()
                    raise

          logger.info(
               "Recorded payment %s of %s on invoice %s (paid %s, balance %s, status %s)",
               payment.payment_number,
               payment.amount,
               invoice.invoice_number,
               invoice.amount_paid,
               invoice.balance,
               invoice.status.value,
          )

          self._emit_payment_events(invoice, payment, before, actor)
          return invoice, payment

     def _update_job_status(self, invoice: Invoice, new_status: InvoiceStatus) -> None:
          job = invoice.job
          if job is None or job.status == JobStatus.CANCELLED:
               return
          if new_status == InvoiceStatus.PAID:
               job.status = JobStatus.CLEARED
          elif new_status == InvoiceStatus.PARTIALLY_PAID:
               job.status = JobStatus.PARTIALLY_PAID

     def _emit_payment_events(
          self,
          invoice: Invoice,
          payment: Payment,
          before: dict,
          actor: Optional[str]
     ) -> None:
          record_audit_event(self.audit_sink, AuditEvent(
               action=PAYMENT_RECORDED,
               entity_type="payment",
               entity_id=payment.payment_number,
               actor=actor,
               old_data=before,
               new_data={
                    **invoice_snapshot(invoice),
                    "payment_number": payment.payment_number,
                    "amount": str(payment.amount),
                    "method": payment.method.value,
               },
          ))

          customer = invoice.customer
          if customer is None or not customer.email:
               logger.info("Customer of invoice %s has no email; skipping payment notifications", invoice.invoice_number)
               return

          common = dict(
               recipient_email=customer.email,
               recipient_name=customer.name or "Customer",
               invoice_number=invoice.invoice_number,
               amount=payment.amount,
               currency=invoice.currency,
               payment_method=payment.method.value,
               payment_date=payment.payment_date,
               **company_fields(self.settings),
          )
          dispatch_notification(
               self.notifier,
               NotificationEvent(type=NotificationType.PAYMENT_RECORDED, **common),
          )
          if invoice.status == InvoiceStatus.PAID:
               dispatch_notification(
                    self.notifier,
                    NotificationEvent(type=NotificationType.PAYMENT_RECEIVED, **common),
               )

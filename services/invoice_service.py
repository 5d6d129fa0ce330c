# services/invoice_service.py
"""
Invoice Service - Business logic layer for invoice operations.

This service handles invoice generation from jobs, sending, voiding,
reminders and customer balances, separate from the API layer.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from config import BillingSettings
from models import Customer, Invoice, InvoiceStatus, Job, JobStatus
from services.audit_service import (
     EMAIL_SENT,
     INVOICE_GENERATED,
     UPDATE,
     AuditEvent,
     AuditSink,
     LoggingAuditSink,
     invoice_snapshot,
     record_audit_event,
)
from services.charge_aggregator import select_billable_charges
from services.errors import (
     ConflictError,
     InvalidTransitionError,
     InvoiceNotFoundError,
     JobNotFoundError,
     JobNotInvoiceableError,
     MissingRecipientError,
)
from services.invoice_builder import build_invoice
from services.locks import InvoiceLockRegistry
from services.money import ZERO, to_money
from services.notification_service import (
     LoggingNotifier,
     NotificationEvent,
     NotificationType,
     Notifier,
     company_fields,
     dispatch_notification,
)
from services.number_allocator import NumberAllocator
from services.status_machine import status_after_send, status_after_void

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
     return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


class InvoiceService:
     """Service class for invoice-related business logic."""

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

     @staticmethod
     def get_invoice(db: Session, invoice_id: int) -> Invoice:
          """
          Load an invoice.

          Raises:
               InvoiceNotFoundError: If the invoice doesn't exist
          """
          invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
          if invoice is None:
               raise InvoiceNotFoundError(f"Invoice with ID {invoice_id} not found", invoice_id=invoice_id)
          return invoice

     def generate_invoice(
          self,
          db: Session,
          job: Job,
          customer_id: Optional[int] = None,
          customer_name: Optional[str] = None,
          now: Optional[datetime] = None,
          actor: Optional[str] = None,
     ) -> Invoice:
          """
          Generate a DRAFT invoice from a job's billable charges.

          Args:
               db: SQLAlchemy database session
               job: Job to invoice (with its charges)
               customer_id: Billed customer (default: the job's customer)
               customer_name: Name printed on the invoice (default: customer's name)
               now: Generation time (default: current UTC time)
               actor: Caller identity, for the audit trail

          Returns:
               Persisted Invoice object

          Raises:
               JobNotInvoiceableError: Job is cancelled or already invoiced
               NoBillableChargesError: No charge with a positive amount
               ConflictError: Lock timeout or concurrent modification of the job
          """
          job_id = job.id
          with self.locks.hold(("job", job_id), self.settings.lock_timeout_seconds, job_id=job_id):
               try:
                    job = db.get(Job, job_id, with_for_update=True, populate_existing=True)
                    if job is None:
                         raise JobNotFoundError(f"Job with ID {job_id} not found", job_id=job_id)
                    if job.status == JobStatus.CANCELLED:
                         raise JobNotInvoiceableError(
                              f"Job {job.job_number} is cancelled",
                              job_id=job.id,
                              job_status=job.status,
                         )

                    live = (
                         db.query(Invoice)
                         .filter(Invoice.job_id == job.id, Invoice.status != InvoiceStatus.VOID)
                         .first()
                    )
                    if live is not None:
                         raise JobNotInvoiceableError(
                              f"Job {job.job_number} is already invoiced on {live.invoice_number}",
                              job_id=job.id,
                              invoice_id=live.id,
                              invoice_number=live.invoice_number,
                         )

                    charges = select_billable_charges(job)

                    if customer_id is None:
                         customer_id = job.customer_id
                    if customer_name is None:
                         customer = db.get(Customer, customer_id)
                         customer_name = customer.name if customer is not None else ""

                    invoice = build_invoice(
                         job,
                         charges,
                         customer_id=customer_id,
                         customer_name=customer_name,
                         now=now or _utcnow(),
                         allocator=self.allocator,
                         payment_terms_days=self.settings.payment_terms_days,
                         currency=self.settings.currency,
                    )

                    # Job version bump and invoice insert share one flush
                    db.add(invoice)
                    job.status = JobStatus.INVOICED
               except Exception:
                    db.rollback()
                    raise
               self._commit(db, f"Job {job_id} was modified concurrently; retry invoicing", job_id=job_id)

          logger.info(
               "Generated invoice %s for job %s: total %s, tax %s, %d lines",
               invoice.invoice_number,
               job.job_number,
               invoice.total,
               invoice.tax_total,
               len(invoice.lines),
          )
          record_audit_event(self.audit_sink, AuditEvent(
               action=INVOICE_GENERATED,
               entity_type="invoice",
               entity_id=invoice.invoice_number,
               actor=actor,
               new_data={**invoice_snapshot(invoice), "job_id": job.id, "tax_total": str(invoice.tax_total)},
          ))
          return invoice

     @staticmethod
     def _commit(db: Session, conflict_message: str, **context) -> None:
          try:
               db.commit()
          except StaleDataError as exc:
               db.rollback()
               logger.warning(conflict_message)
               raise ConflictError(conflict_message, **context) from exc
          except Exception:
               db.rollback()
               raise

     def _commit_transition(self, db: Session, invoice_id: int) -> None:
          self._commit(
               db,
               f"Invoice {invoice_id} was modified concurrently; retry the operation",
               invoice_id=invoice_id,
          )

     def _base_event(self, invoice: Invoice, type_: NotificationType, **extra) -> NotificationEvent:
          customer = invoice.customer
          if customer is None or not customer.email:
               raise MissingRecipientError(
                    f"Customer of invoice {invoice.invoice_number} does not have an email address",
                    invoice_id=invoice.id,
                    customer_id=invoice.customer_id,
               )
          return NotificationEvent(
               type=type_,
               recipient_email=customer.email,
               recipient_name=customer.name or invoice.customer_name or "Customer",
               invoice_number=invoice.invoice_number,
               currency=invoice.currency,
               due_date=invoice.due_date,
               **company_fields(self.settings),
               **extra,
          )

     def send_invoice(
          self,
          db: Session,
          invoice_id: int,
          actor: Optional[str] = None,
     ) -> Tuple[Invoice, bool]:
          """
          Email the invoice to the customer; a delivered DRAFT becomes SENT.

          The invoice lock is held across delivery, so a concurrent void
          either lands before the status check (nothing is sent) or waits
          for the send to finish.

          Returns:
               (invoice, delivered). When delivery fails the invoice keeps
               its status.

          Raises:
               InvoiceNotFoundError, MissingRecipientError,
               InvalidTransitionError: Invoice is void
               ConflictError: Lock timeout or concurrent modification
          """
          with self.locks.hold(invoice_id, self.settings.lock_timeout_seconds):
               invoice = self.get_invoice(db, invoice_id)
               db.refresh(invoice)
               before = invoice_snapshot(invoice)
               new_status = status_after_send(invoice.status, invoice.total, invoice.amount_paid, invoice.id)
               event = self._base_event(invoice, NotificationType.INVOICE_CREATED, amount=to_money(invoice.total))

               if not dispatch_notification(self.notifier, event):
                    return invoice, False

               if new_status != invoice.status:
                    invoice.status = new_status
                    invoice.sent_at = _utcnow()
                    self._commit_transition(db, invoice_id)
                    logger.info("Invoice %s sent; status %s", invoice.invoice_number, new_status.value)

          record_audit_event(self.audit_sink, AuditEvent(
               action=EMAIL_SENT,
               entity_type="invoice",
               entity_id=invoice.invoice_number,
               actor=actor,
               old_data=before,
               new_data=invoice_snapshot(invoice),
          ))
          return invoice, True

     def void_invoice(
          self,
          db: Session,
          invoice_id: int,
          actor: Optional[str] = None,
     ) -> Invoice:
          """
          Void an invoice. Its balance is frozen and it accepts no payments.

          The job goes back to OPEN when nothing was paid, so it can be
          invoiced again.

          Raises:
               InvoiceNotFoundError,
               InvalidTransitionError: Invoice is already PAID or VOID
               ConflictError: Lock timeout or concurrent modification
          """
          with self.locks.hold(invoice_id, self.settings.lock_timeout_seconds):
               invoice = self.get_invoice(db, invoice_id)
               db.refresh(invoice)
               before = invoice_snapshot(invoice)
               invoice.status = status_after_void(invoice.status, invoice.id)
               invoice.voided_at = _utcnow()
               job = invoice.job
               if job is not None and job.status == JobStatus.INVOICED and to_money(invoice.amount_paid) == ZERO:
                    job.status = JobStatus.OPEN
               self._commit_transition(db, invoice_id)

          logger.info("Invoice %s voided with balance %s", invoice.invoice_number, invoice.balance)
          record_audit_event(self.audit_sink, AuditEvent(
               action=UPDATE,
               entity_type="invoice",
               entity_id=invoice.invoice_number,
               actor=actor,
               old_data=before,
               new_data=invoice_snapshot(invoice),
          ))
          return invoice

     def send_reminder(
          self,
          db: Session,
          invoice_id: int,
          today: Optional[date] = None,
     ) -> Tuple[NotificationEvent, bool]:
          """
          Remind the customer of an open balance.

          A payment_reminder before the due date, an overdue_notice (with
          days overdue) after it.

          Returns:
               (event, delivered)

          Raises:
               InvoiceNotFoundError, MissingRecipientError,
               InvalidTransitionError: Invoice is not sent or has nothing owed
          """
          today = today or date.today()
          invoice = self.get_invoice(db, invoice_id)
          if invoice.status not in (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID) or to_money(invoice.balance) <= 0:
               raise InvalidTransitionError(
                    f"Invoice {invoice.invoice_number} has no open balance to remind about",
                    invoice_id=invoice.id,
                    status=invoice.status,
                    balance=invoice.balance,
               )

          if invoice.is_overdue(today):
               event = self._base_event(
                    invoice,
                    NotificationType.OVERDUE_NOTICE,
                    amount=to_money(invoice.balance),
                    days_overdue=(today - invoice.due_date).days,
               )
          else:
               event = self._base_event(invoice, NotificationType.PAYMENT_REMINDER, amount=to_money(invoice.balance))
          return event, dispatch_notification(self.notifier, event)

     @staticmethod
     def calculate_customer_balance(db: Session, customer_id: int, today: Optional[date] = None) -> dict:
          """
          Calculate the totals invoiced to, paid by and owed by a customer.

          Void invoices are excluded. Overdue means past due with a
          positive balance.

          Args:
               db: SQLAlchemy database session
               customer_id: ID of the customer

          Returns:
               Dictionary with balance information
          """
          today = today or date.today()
          invoices = (
               db.query(Invoice)
               .filter(Invoice.customer_id == customer_id, Invoice.status != InvoiceStatus.VOID)
               .all()
          )

          def _sum(values) -> Decimal:
               return sum((to_money(v) for v in values), ZERO)

          open_invoices = [inv for inv in invoices if to_money(inv.balance) > 0]
          overdue = [inv for inv in invoices if inv.is_overdue(today)]
          paid = [inv for inv in invoices if inv.status == InvoiceStatus.PAID]

          return {
               "customer_id": customer_id,
               "total_invoiced": _sum(inv.total for inv in invoices),
               "total_paid": _sum(inv.amount_paid for inv in invoices),
               "outstanding_balance": _sum(inv.balance for inv in open_invoices),
               "overdue_balance": _sum(inv.balance for inv in overdue),
               "credit_balance": -_sum(inv.balance for inv in invoices if to_money(inv.balance) < 0),
               "total_invoices": len(invoices),
               "open_count": len(open_invoices),
               "overdue_count": len(overdue),
               "paid_count": len(paid),
          }

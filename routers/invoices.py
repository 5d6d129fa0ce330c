# routers/invoices.py
"""
Invoice API routes for the CargoClear billing backend.

Generates invoices from jobs and drives their lifecycle.
Role-based access:
- ADMIN / ACCOUNTS / OPERATIONS: generate and send invoices
- ADMIN: void invoices
- All roles: view invoices and their payment ledger
"""
from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, selectinload

from database import get_session
from dependencies import (
     GENERATE_INVOICES,
     SEND_INVOICES,
     VIEW_BILLING,
     VOID_INVOICES,
     actor_of,
     get_invoice_service,
     require_permission,
)
from models import Invoice, Job, Payment
from models.invoice import InvoiceStatus
from routers.http_errors import to_http_exception
from schemas.invoice import (
     InvoiceGenerateRequest,
     InvoiceResponse,
     InvoiceListResponse,
     InvoiceSendResponse,
     InvoiceStatusEnum,
     LedgerVerificationResponse,
     ReminderResponse,
)
from schemas.payment import PaymentResponse
from services.errors import BillingError, JobNotFoundError
from services.invoice_service import InvoiceService
from services.ledger_service import verify_invoice_chain

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.post(
     "/generate",
     response_model=InvoiceResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Generate an invoice from a job"
)
def generate_invoice(
     body: InvoiceGenerateRequest,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(GENERATE_INVOICES)),
     service: InvoiceService = Depends(get_invoice_service),
):
     """
     Turn a job's charges into a DRAFT invoice.

     - **job_id**: Job to invoice; zero-amount charges are skipped
     - **customer_id**: Billed customer (defaults to the job's customer)
     - **customer_name**: Name printed on the invoice (defaults to the customer's name)
     """
     job = (
          db.query(Job)
          .options(selectinload(Job.charges))
          .filter(Job.id == body.job_id)
          .first()
     )
     try:
          if job is None:
               raise JobNotFoundError(f"Job with ID {body.job_id} not found", job_id=body.job_id)
          invoice = service.generate_invoice(
               db,
               job,
               customer_id=body.customer_id,
               customer_name=body.customer_name,
               actor=actor_of(token),
          )
     except BillingError as exc:
          raise to_http_exception(exc)

     return invoice


@router.get(
     "",
     response_model=InvoiceListResponse,
     summary="List invoices with filters"
)
def list_invoices(
     customer_id: Optional[int] = Query(None, description="Filter by customer ID"),
     job_id: Optional[int] = Query(None, description="Filter by job ID"),
     status: Optional[InvoiceStatusEnum] = Query(None, description="Filter by status"),
     overdue_only: bool = Query(False, description="Show only overdue invoices"),
     page: int = Query(1, ge=1, description="Page number"),
     page_size: int = Query(50, ge=1, le=100, description="Items per page"),
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(VIEW_BILLING)),
):
     """
     Retrieve a paginated list of invoices with optional filters.

     Filters:
     - **customer_id**: Show invoices for a specific customer
     - **job_id**: Show invoices for a specific job
     - **status**: Filter by status (DRAFT, SENT, PARTIALLY_PAID, PAID, VOID)
     - **overdue_only**: Sent / partially paid invoices past their due date
     """
     query = db.query(Invoice)

     if customer_id:
          query = query.filter(Invoice.customer_id == customer_id)

     if job_id:
          query = query.filter(Invoice.job_id == job_id)

     if status:
          query = query.filter(Invoice.status == InvoiceStatus(status.value))

     if overdue_only:
          query = query.filter(
               Invoice.status.in_([InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID]),
               Invoice.balance > 0,
               Invoice.due_date < date.today(),
          )

     # Get total count
     total = query.count()

     # Apply pagination
     offset = (page - 1) * page_size
     invoices = (
          query.options(selectinload(Invoice.lines))
          .order_by(Invoice.issue_date.desc(), Invoice.id.desc())
          .offset(offset)
          .limit(page_size)
          .all()
     )

     return InvoiceListResponse(
          invoices=[InvoiceResponse.model_validate(inv) for inv in invoices],
          total=total,
          page=page,
          page_size=page_size
     )


@router.get(
     "/{invoice_id}",
     response_model=InvoiceResponse,
     summary="Get an invoice"
)
def get_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(VIEW_BILLING)),
):
     try:
          return InvoiceService.get_invoice(db, invoice_id)
     except BillingError as exc:
          raise to_http_exception(exc)


@router.post(
     "/{invoice_id}/send",
     response_model=InvoiceSendResponse,
     summary="Email an invoice to the customer"
)
def send_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(SEND_INVOICES)),
     service: InvoiceService = Depends(get_invoice_service),
):
     """
     Email the invoice. A DRAFT invoice becomes SENT once delivery succeeds;
     a failed delivery leaves the status untouched (`delivered: false`).
     """
     try:
          invoice, delivered = service.send_invoice(db, invoice_id, actor=actor_of(token))
     except BillingError as exc:
          raise to_http_exception(exc)
     return InvoiceSendResponse(invoice=InvoiceResponse.model_validate(invoice), delivered=delivered)


@router.post(
     "/{invoice_id}/void",
     response_model=InvoiceResponse,
     summary="Void an invoice"
)
def void_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(VOID_INVOICES)),
     service: InvoiceService = Depends(get_invoice_service),
):
     try:
          return service.void_invoice(db, invoice_id, actor=actor_of(token))
     except BillingError as exc:
          raise to_http_exception(exc)


@router.post(
     "/{invoice_id}/remind",
     response_model=ReminderResponse,
     summary="Send a payment reminder or overdue notice"
)
def remind_invoice(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(SEND_INVOICES)),
     service: InvoiceService = Depends(get_invoice_service),
):
     try:
          event, delivered = service.send_reminder(db, invoice_id)
     except BillingError as exc:
          raise to_http_exception(exc)
     return ReminderResponse(
          invoice_id=invoice_id,
          notification_type=event.type.value,
          amount=event.amount,
          days_overdue=event.days_overdue,
          delivered=delivered,
     )


@router.get(
     "/{invoice_id}/payments",
     response_model=List[PaymentResponse],
     summary="List payments recorded against an invoice"
)
def list_invoice_payments(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(VIEW_BILLING)),
):
     try:
          InvoiceService.get_invoice(db, invoice_id)
     except BillingError as exc:
          raise to_http_exception(exc)
     return (
          db.query(Payment)
          .filter(Payment.invoice_id == invoice_id)
          .order_by(Payment.id)
          .all()
     )


@router.get(
     "/{invoice_id}/ledger/verify",
     response_model=LedgerVerificationResponse,
     summary="Verify an invoice's payment chain"
)
def verify_invoice_ledger(
     invoice_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(VIEW_BILLING)),
):
     """
     Re-hash every payment on the invoice, check the chain links, and check
     that the payments add up to the invoice's amount paid.
     """
     valid, message, checked = verify_invoice_chain(db, invoice_id)
     if message == "Invoice not found":
          raise HTTPException(
               status_code=status.HTTP_404_NOT_FOUND,
               detail=f"Invoice with ID {invoice_id} not found"
          )
     return LedgerVerificationResponse(
          invoice_id=invoice_id,
          valid=valid,
          message=message,
          entries_checked=checked,
     )

# routers/payments.py
"""
Payment recording API.

POST /api/payments: apply a payment to an invoice. Updates the invoice's
paid amount, balance and status and appends a hash-chained payment record,
all-or-nothing.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import RECORD_PAYMENTS, VIEW_BILLING, actor_of, get_payment_ledger, require_permission
from models import Payment
from routers.http_errors import to_http_exception
from schemas.invoice import InvoiceResponse
from schemas.payment import (
     PaymentCreate,
     PaymentRecordResponse,
     PaymentResponse,
     PaymentVerificationResponse,
)
from services.errors import BillingError
from services.ledger_service import verify_payment_entry
from services.payment_ledger import PaymentLedger

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post(
     "",
     response_model=PaymentRecordResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Record a payment",
)
def record_payment(
     body: PaymentCreate,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(RECORD_PAYMENTS)),
     ledger: PaymentLedger = Depends(get_payment_ledger),
):
     """
     Record a payment against an invoice.

     1. Rejects non-positive amounts, void invoices and overpayments.
     2. Updates amount paid, balance and status (PARTIALLY_PAID / PAID).
     3. Appends an immutable payment record chained to the invoice's
        previous payment.
     4. Returns the updated invoice and the payment, with its transaction
        hash for client verification.

     A 409 with `ConflictError` means another update to the same invoice
     won the race; retry the request.
     """
     try:
          invoice, payment = ledger.record_payment(
               db,
               body.invoice_id,
               body.amount,
               method=body.method.value,
               payment_date=body.payment_date,
               reference_number=body.reference_number,
               notes=body.notes,
               actor=actor_of(token),
          )
     except BillingError as exc:
          raise to_http_exception(exc)

     return PaymentRecordResponse(
          invoice=InvoiceResponse.model_validate(invoice),
          payment=PaymentResponse.model_validate(payment),
     )


@router.get(
     "/{payment_id}",
     response_model=PaymentResponse,
     summary="Get a payment",
)
def get_payment(
     payment_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(VIEW_BILLING)),
):
     payment = db.query(Payment).filter(Payment.id == payment_id).first()
     if not payment:
          raise HTTPException(
               status_code=status.HTTP_404_NOT_FOUND,
               detail=f"Payment with ID {payment_id} not found",
          )
     return payment


@router.get(
     "/{payment_id}/verify",
     response_model=PaymentVerificationResponse,
     summary="Verify a payment's ledger hash",
)
def verify_payment(
     payment_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(VIEW_BILLING)),
):
     valid, message = verify_payment_entry(db, payment_id=payment_id)
     if message == "Payment not found":
          raise HTTPException(
               status_code=status.HTTP_404_NOT_FOUND,
               detail=f"Payment with ID {payment_id} not found",
          )
     return PaymentVerificationResponse(payment_id=payment_id, valid=valid, message=message)

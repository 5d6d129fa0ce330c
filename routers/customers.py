# routers/customers.py
"""
Customer account statement routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import VIEW_BILLING, require_permission
from models import Customer
from schemas.customer import CustomerBalanceResponse
from services.invoice_service import InvoiceService

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.get(
     "/{customer_id}/balance",
     response_model=CustomerBalanceResponse,
     summary="Outstanding balance for a customer",
)
def get_customer_balance(
     customer_id: int,
     db: Session = Depends(get_session),
     token: dict = Depends(require_permission(VIEW_BILLING)),
):
     """Totals invoiced, paid, outstanding and overdue (void invoices excluded)."""
     if db.get(Customer, customer_id) is None:
          raise HTTPException(
               status_code=status.HTTP_404_NOT_FOUND,
               detail=f"Customer with ID {customer_id} not found",
          )
     return InvoiceService.calculate_customer_balance(db, customer_id)

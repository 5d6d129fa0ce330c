"""
Pydantic schemas for the payment recording API.
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from schemas.invoice import InvoiceResponse


class PaymentMethodEnum(str, Enum):
     """Accepted payment methods."""
     CASH = "Cash"
     BANK_TRANSFER = "Bank Transfer"
     CARD = "Card"
     CHEQUE = "Cheque"


class PaymentCreate(BaseModel):
     """Request body for POST /api/payments."""

     invoice_id: int = Field(..., gt=0, description="Invoice the payment applies to")
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Amount received")
     method: PaymentMethodEnum = Field(default=PaymentMethodEnum.BANK_TRANSFER, description="Payment method")
     payment_date: Optional[date] = Field(None, description="Date received (defaults to today)")
     reference_number: Optional[str] = Field(None, max_length=100, description="Bank or cheque reference")
     notes: Optional[str] = Field(None, max_length=2000)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "invoice_id": 1,
                    "amount": 50.00,
                    "method": "Bank Transfer",
                    "reference_number": "TRX-88121",
               }
          }
     )


class PaymentResponse(BaseModel):
     """Schema for a recorded payment."""

     id: int
     payment_number: str
     invoice_id: int
     customer_id: int
     amount: Decimal
     method: PaymentMethodEnum
     payment_date: date
     reference_number: Optional[str] = None
     notes: Optional[str] = None
     transaction_hash: str = Field(..., description="Ledger transaction hash for client verification")
     previous_hash: str
     recorded_at: datetime

     model_config = ConfigDict(from_attributes=True)


class PaymentRecordResponse(BaseModel):
     """Response for POST /api/payments: the updated invoice and the new payment."""

     invoice: InvoiceResponse
     payment: PaymentResponse


class PaymentVerificationResponse(BaseModel):
     """Result of re-hashing a single payment."""

     payment_id: int
     valid: bool
     message: str

"""
Pydantic schemas for Invoice API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class InvoiceStatusEnum(str, Enum):
     """Invoice lifecycle status options."""
     DRAFT = "DRAFT"
     SENT = "SENT"
     PARTIALLY_PAID = "PARTIALLY_PAID"
     PAID = "PAID"
     VOID = "VOID"


class QuickbooksSyncStatusEnum(str, Enum):
     """External accounting sync placeholder."""
     NOT_SYNCED = "NOT_SYNCED"
     SYNCED = "SYNCED"
     ERROR = "ERROR"


class InvoiceGenerateRequest(BaseModel):
     """Schema for generating an invoice from a job."""
     job_id: int = Field(..., gt=0, description="Job to invoice (must exist)")
     customer_id: Optional[int] = Field(None, gt=0, description="Billed customer (defaults to the job's customer)")
     customer_name: Optional[str] = Field(None, min_length=1, max_length=255, description="Name printed on the invoice")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "job_id": 1
               }
          }
     )


class InvoiceLineResponse(BaseModel):
     """Schema for an invoice line."""
     id: int
     fee_id: str
     description: str
     quantity: int
     unit_price: Decimal
     tax_rate: Decimal
     line_total: Decimal

     model_config = ConfigDict(from_attributes=True)


class InvoiceResponse(BaseModel):
     """Schema for invoice response."""
     id: int
     invoice_number: str
     job_id: int
     customer_id: int
     customer_name: str
     issue_date: date
     due_date: date
     currency: str
     total: Decimal
     tax_total: Decimal
     amount_paid: Decimal
     balance: Decimal
     status: InvoiceStatusEnum
     quickbooks_sync_status: QuickbooksSyncStatusEnum
     sent_at: Optional[datetime] = None
     voided_at: Optional[datetime] = None
     lines: List[InvoiceLineResponse] = []

     model_config = ConfigDict(
          from_attributes=True,
          json_schema_extra={
               "example": {
                    "id": 1,
                    "invoice_number": "INV-2026-000001",
                    "job_id": 1,
                    "customer_id": 1,
                    "customer_name": "Harbor Imports Ltd",
                    "issue_date": "2026-10-19",
                    "due_date": "2026-11-18",
                    "currency": "USD",
                    "total": 105.00,
                    "tax_total": 5.00,
                    "amount_paid": 0.00,
                    "balance": 105.00,
                    "status": "DRAFT",
                    "quickbooks_sync_status": "NOT_SYNCED",
                    "lines": []
               }
          }
     )


class InvoiceListResponse(BaseModel):
     """Schema for paginated invoice list response."""
     invoices: List[InvoiceResponse]
     total: int
     page: int = 1
     page_size: int = 50


class InvoiceSendResponse(BaseModel):
     """Result of emailing an invoice."""
     invoice: InvoiceResponse
     delivered: bool


class ReminderResponse(BaseModel):
     """Result of a payment reminder / overdue notice."""
     invoice_id: int
     notification_type: str
     amount: Decimal
     days_overdue: Optional[int] = None
     delivered: bool


class LedgerVerificationResponse(BaseModel):
     """Result of verifying an invoice's payment chain."""
     invoice_id: int
     valid: bool
     message: str
     entries_checked: int

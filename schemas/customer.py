"""
Pydantic schemas for customer account statements.
"""
from decimal import Decimal
from pydantic import BaseModel


class CustomerBalanceResponse(BaseModel):
     """Invoiced, paid and outstanding totals for one customer."""
     customer_id: int
     total_invoiced: Decimal
     total_paid: Decimal
     outstanding_balance: Decimal
     overdue_balance: Decimal
     credit_balance: Decimal
     total_invoices: int
     open_count: int
     overdue_count: int
     paid_count: int

# services/invoice_builder.py
"""
Invoice construction from a job's billable charges.

Pure: builds a transient Invoice (with its lines) and touches no session.
The only outside call is to the number allocator.
"""
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence

from models import Invoice, InvoiceLine, InvoiceStatus, Job, JobCharge, QuickbooksSyncStatus
from services.errors import NoBillableChargesError
from services.money import ZERO, to_money
from services.number_allocator import INVOICE, NumberAllocator

TAX_RATE_PLACES = Decimal("0.0001")
DEFAULT_PAYMENT_TERMS_DAYS = 30


def derive_tax_rate(amount: Decimal, tax_amount: Decimal) -> Decimal:
     """Tax as a percentage of the untaxed amount; 0 when amount is not positive."""
     amount = Decimal(amount)
     if amount <= 0:
          return Decimal("0")
     rate = Decimal(tax_amount) / amount * 100
     return rate.quantize(TAX_RATE_PLACES, rounding=ROUND_HALF_UP)


def build_invoice_line(charge: JobCharge, position: int = 0) -> InvoiceLine:
     """
     Convert one charge into an invoice line.

     Quantity is always 1: charges are already priced per unit. The line
     total is copied from the charge, never recomputed from the rate.
     """
     return InvoiceLine(
          charge_id=charge.id,
          fee_id=charge.fee_id,
          position=position,
          description=charge.description_override or charge.fee_name,
          quantity=1,
          unit_price=to_money(charge.amount),
          tax_rate=derive_tax_rate(charge.amount, charge.tax_amount),
          line_total=to_money(charge.total),
     )


def build_invoice(
     job: Job,
     charges: Sequence[JobCharge],
     customer_id: int,
     customer_name: str,
     now: datetime,
     allocator: NumberAllocator,
     payment_terms_days: int = DEFAULT_PAYMENT_TERMS_DAYS,
     currency: str = "USD",
) -> Invoice:
     """
     Build a DRAFT invoice for ``job`` from already-filtered ``charges``.

     Args:
          job: Job being invoiced (only its id is read)
          charges: Billable charges, see select_billable_charges
          customer_id: Billed customer
          customer_name: Name snapshot printed on the invoice
          now: Generation time; issue date is its date part
          allocator: Source of the invoice number
          payment_terms_days: Days from issue date to due date
          currency: ISO currency code

     Returns:
          Transient Invoice with lines, amount_paid 0, balance == total

     Raises:
          NoBillableChargesError: charges is empty
     """
     if not charges:
          raise NoBillableChargesError(
               f"Job {job.job_number} has no billable charges; add charges before invoicing",
               job_id=job.id,
               job_number=job.job_number,
          )

     lines: List[InvoiceLine] = [
          build_invoice_line(charge, position) for position, charge in enumerate(charges)
     ]
     total = sum((line.line_total for line in lines), ZERO)
     tax_total = sum((to_money(charge.tax_amount) for charge in charges), ZERO)

     issue_date = now.date()
     invoice = Invoice(
          invoice_number=allocator.allocate(INVOICE),
          job_id=job.id,
          customer_id=customer_id,
          customer_name=customer_name,
          issue_date=issue_date,
          due_date=issue_date + timedelta(days=payment_terms_days),
          currency=currency,
          total=total,
          tax_total=tax_total,
          amount_paid=ZERO,
          balance=total,
          status=InvoiceStatus.DRAFT,
          quickbooks_sync_status=QuickbooksSyncStatus.NOT_SYNCED,
     )
     invoice.lines = lines
     return invoice

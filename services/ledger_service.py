# services/ledger_service.py
"""
Payment ledger integrity - hash-chained, append-only payment records.

When a payment is recorded:
1. Compute SHA-256 hash from invoice_id + customer_id + amount + payment_number + timestamp
2. Store it with a reference to the previous payment's hash on the same invoice
3. Payment records are append-only; no update/delete

Verification: recompute hashes and compare with the stored ones; walk the
invoice's chain and check its payments still add up to amount_paid.
"""
import hashlib
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from models import Invoice, Payment
from services.money import ZERO, to_money


# First payment on an invoice has no previous record
GENESIS_HASH = "0"


def _normalize_amount(amount: Decimal) -> str:
     """Normalize amount to canonical string for hashing (2 decimal places)."""
     return str(to_money(amount))


def _normalize_timestamp(ts: datetime) -> str:
     """Normalize timestamp to ISO format for deterministic hashing."""
     return ts.replace(tzinfo=None, microsecond=0).isoformat()


def compute_transaction_hash(
     invoice_id: int,
     customer_id: int,
     amount: Decimal,
     payment_number: str,
     timestamp: datetime,
     previous_hash: str = GENESIS_HASH
) -> str:
     """
     Compute SHA-256 hash for a payment record.

     Input string: invoice_id|customer_id|amount|payment_number|timestamp|previous_hash.
     Returns 64-char hex string.
     """
     payload = "|".join([
          str(invoice_id),
          str(customer_id),
          _normalize_amount(amount),
          payment_number,
          _normalize_timestamp(timestamp),
          previous_hash,
     ])
     return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def get_previous_hash(db: Session, invoice_id: int) -> str:
     """Hash of the latest payment on ``invoice_id``, or GENESIS_HASH if none."""
     last = (
          db.query(Payment)
          .filter(Payment.invoice_id == invoice_id)
          .order_by(desc(Payment.id))
          .limit(1)
          .first()
     )
     if last is None:
          return GENESIS_HASH
     return last.transaction_hash


def _entry_hash(entry: Payment) -> str:
     return compute_transaction_hash(
          entry.invoice_id,
          entry.customer_id,
          entry.amount,
          entry.payment_number,
          entry.recorded_at,
          entry.previous_hash,
     )


def verify_payment_entry(
     db: Session,
     payment_id: Optional[int] = None,
     payment_number: Optional[str] = None
) -> Tuple[bool, str]:
     """
     Verify a payment by recomputing its hash and checking its chain link.

     Pass either payment_id or payment_number to identify the entry.

     Returns:
          (success: bool, message: str)
          - (True, "Verification passed") if hash matches
          - (False, reason) if hash mismatch, missing record, or chain broken
     """
     if payment_id is not None:
          entry = db.query(Payment).filter(Payment.id == payment_id).first()
     elif payment_number is not None:
          entry = db.query(Payment).filter(Payment.payment_number == payment_number).first()
     else:
          return False, "Must provide payment_id or payment_number"

     if entry is None:
          return False, "Payment not found"

     computed = _entry_hash(entry)
     if computed != entry.transaction_hash:
          return False, f"Hash mismatch: stored={entry.transaction_hash[:16]}..., computed={computed[:16]}..."

     prev_entry = (
          db.query(Payment)
          .filter(Payment.invoice_id == entry.invoice_id, Payment.id < entry.id)
          .order_by(desc(Payment.id))
          .limit(1)
          .first()
     )
     expected_previous = prev_entry.transaction_hash if prev_entry is not None else GENESIS_HASH
     if entry.previous_hash != expected_previous:
          return False, "Chain broken: previous_hash does not match previous payment"

     return True, "Verification passed"


def verify_invoice_chain(db: Session, invoice_id: int) -> Tuple[bool, str, int]:
     """
     Verify every payment on an invoice, in order, and check that the
     payments add up to the invoice's amount_paid.

     Returns:
          (all_valid: bool, message: str, entries_checked: int)
     """
     invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
     if invoice is None:
          return False, "Invoice not found", 0

     entries = (
          db.query(Payment)
          .filter(Payment.invoice_id == invoice_id)
          .order_by(Payment.id)
          .all()
     )

     prev_hash = GENESIS_HASH
     paid = ZERO
     checked = 0

     for entry in entries:
          if entry.previous_hash != prev_hash:
               return False, f"Chain broken at payment id={entry.id}: previous_hash mismatch", checked
          if _entry_hash(entry) != entry.transaction_hash:
               return False, f"Hash mismatch at payment id={entry.id}", checked
          prev_hash = entry.transaction_hash
          paid += to_money(entry.amount)
          checked += 1

     if paid != to_money(invoice.amount_paid):
          return False, f"Payments total {paid} but invoice amount_paid is {to_money(invoice.amount_paid)}", checked

     if not entries:
          return True, "No payments recorded", 0
     return True, "Full chain verification passed", checked

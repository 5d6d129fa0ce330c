# services/errors.py
"""
Domain errors raised by the billing engine.

Every error carries a ``context`` dict (invoice id, attempted amount,
current balance, ...) so callers can render a precise message. None of
them is raised after a partial write: the session is rolled back first.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict


def _jsonable(value: Any) -> Any:
     if isinstance(value, Decimal):
          return str(value)
     if isinstance(value, (date, datetime)):
          return value.isoformat()
     if hasattr(value, "value"):  # enums
          return value.value
     return value


class BillingError(Exception):
     """Base class for billing engine errors."""

     def __init__(self, message: str, **context: Any):
          super().__init__(message)
          self.message = message
          self.context: Dict[str, Any] = context

     def to_dict(self) -> Dict[str, Any]:
          payload = {"error": type(self).__name__, "message": self.message}
          payload.update({key: _jsonable(value) for key, value in self.context.items()})
          return payload


class NoBillableChargesError(BillingError):
     """The job has no charge with a positive amount."""


class OverpaymentError(BillingError):
     """The payment would push amount_paid above the invoice total."""


class InvalidPaymentAmountError(BillingError):
     """Payment amounts must be strictly positive."""


class InvoiceVoidError(BillingError):
     """Payment attempted against a voided invoice."""


class InvalidTransitionError(BillingError):
     """Requested status change is not allowed from the current status."""


class ConflictError(BillingError):
     """Concurrent modification or lock timeout; retry the whole operation."""


class AllocationExhaustedError(BillingError):
     """The invoice/payment number space has no values left."""


class InvoiceNotFoundError(BillingError):
     pass


class JobNotFoundError(BillingError):
     pass


class JobNotInvoiceableError(BillingError):
     """The job is cancelled or already has a live invoice."""


class MissingRecipientError(BillingError):
     """The customer has no email address to notify."""

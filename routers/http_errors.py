"""
Mapping from billing errors to HTTP responses.
"""
from fastapi import HTTPException, status

from services.errors import (
     AllocationExhaustedError,
     BillingError,
     ConflictError,
     InvalidPaymentAmountError,
     InvalidTransitionError,
     InvoiceNotFoundError,
     InvoiceVoidError,
     JobNotFoundError,
     JobNotInvoiceableError,
     MissingRecipientError,
     NoBillableChargesError,
     OverpaymentError,
)

STATUS_CODES = {
     InvoiceNotFoundError: status.HTTP_404_NOT_FOUND,
     JobNotFoundError: status.HTTP_404_NOT_FOUND,
     NoBillableChargesError: status.HTTP_422_UNPROCESSABLE_ENTITY,
     InvalidPaymentAmountError: status.HTTP_422_UNPROCESSABLE_ENTITY,
     MissingRecipientError: status.HTTP_422_UNPROCESSABLE_ENTITY,
     OverpaymentError: status.HTTP_409_CONFLICT,
     InvoiceVoidError: status.HTTP_409_CONFLICT,
     InvalidTransitionError: status.HTTP_409_CONFLICT,
     JobNotInvoiceableError: status.HTTP_409_CONFLICT,
     ConflictError: status.HTTP_409_CONFLICT,
     AllocationExhaustedError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(exc: BillingError) -> HTTPException:
     """HTTPException carrying the error's context as its detail."""
     code = STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
     return HTTPException(status_code=code, detail=exc.to_dict())

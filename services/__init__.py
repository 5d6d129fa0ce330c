from .errors import (
     BillingError,
     NoBillableChargesError,
     OverpaymentError,
     InvalidPaymentAmountError,
     InvoiceVoidError,
     InvalidTransitionError,
     ConflictError,
     AllocationExhaustedError,
     InvoiceNotFoundError,
     JobNotFoundError,
     JobNotInvoiceableError,
     MissingRecipientError,
)
from .charge_aggregator import select_billable_charges
from .invoice_builder import build_invoice, build_invoice_line, derive_tax_rate
from .number_allocator import NumberAllocator, InMemoryNumberAllocator, DatabaseNumberAllocator
from .invoice_service import InvoiceService
from .payment_ledger import PaymentLedger
from .ledger_service import (
     compute_transaction_hash,
     get_previous_hash,
     verify_payment_entry,
     verify_invoice_chain,
     GENESIS_HASH,
)

__all__ = [
     "BillingError",
     "NoBillableChargesError",
     "OverpaymentError",
     "InvalidPaymentAmountError",
     "InvoiceVoidError",
     "InvalidTransitionError",
     "ConflictError",
     "AllocationExhaustedError",
     "InvoiceNotFoundError",
     "JobNotFoundError",
     "JobNotInvoiceableError",
     "MissingRecipientError",
     "select_billable_charges",
     "build_invoice",
     "build_invoice_line",
     "derive_tax_rate",
     "NumberAllocator",
     "InMemoryNumberAllocator",
     "DatabaseNumberAllocator",
     "InvoiceService",
     "PaymentLedger",
     "compute_transaction_hash",
     "get_previous_hash",
     "verify_payment_entry",
     "verify_invoice_chain",
     "GENESIS_HASH",
]

from .invoice import (
     InvoiceGenerateRequest,
     InvoiceResponse,
     InvoiceListResponse,
     InvoiceSendResponse,
     InvoiceStatusEnum,
     LedgerVerificationResponse,
     ReminderResponse,
)
from .payment import (
     PaymentCreate,
     PaymentResponse,
     PaymentRecordResponse,
     PaymentVerificationResponse,
)
from .customer import CustomerBalanceResponse

__all__ = [
     "InvoiceGenerateRequest",
     "InvoiceResponse",
     "InvoiceListResponse",
     "InvoiceSendResponse",
     "InvoiceStatusEnum",
     "LedgerVerificationResponse",
     "ReminderResponse",
     "PaymentCreate",
     "PaymentResponse",
     "PaymentRecordResponse",
     "PaymentVerificationResponse",
     "CustomerBalanceResponse",
]

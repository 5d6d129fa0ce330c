from .base import Base
from .customer import Customer
from .job import Job, JobCharge, JobStatus
from .invoice import Invoice, InvoiceLine, InvoiceStatus, QuickbooksSyncStatus
from .payment import Payment, PaymentMethod
from .number_sequence import NumberSequence
from .audit_log import AuditLog

__all__ = [
     "Base",
     "Customer",
     "Job",
     "JobCharge",
     "JobStatus",
     "Invoice",
     "InvoiceLine",
     "InvoiceStatus",
     "QuickbooksSyncStatus",
     "Payment",
     "PaymentMethod",
     "NumberSequence",
     "AuditLog",
]

# services/notification_service.py
"""
Notification events emitted by the billing engine.

The engine builds structured events and hands them to a Notifier. Delivery
is the notifier's business; a failed delivery is logged and never undoes
the invoice or payment write that triggered it.
"""
import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Protocol

import requests
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
     INVOICE_CREATED = "invoice_created"
     PAYMENT_RECORDED = "payment_recorded"
     PAYMENT_RECEIVED = "payment_received"
     PAYMENT_REMINDER = "payment_reminder"
     OVERDUE_NOTICE = "overdue_notice"


class NotificationEvent(BaseModel):
     """Structured notification request; serialized with camelCase keys."""

     type: NotificationType
     recipient_email: str
     recipient_name: str
     invoice_number: str
     amount: Decimal
     currency: Optional[str] = None
     due_date: Optional[date] = None
     payment_method: Optional[str] = None
     payment_date: Optional[date] = None
     days_overdue: Optional[int] = None
     company_name: Optional[str] = None
     company_email: Optional[str] = None
     company_address: Optional[str] = None
     company_phone: Optional[str] = None
     attachments: List[str] = Field(default_factory=list)

     model_config = ConfigDict(
          alias_generator=to_camel,
          populate_by_name=True,
          frozen=True,
     )

     def to_payload(self) -> dict:
          return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Notifier(Protocol):
     def send(self, event: NotificationEvent) -> None:
          ...


class LoggingNotifier:
     """Default notifier when no delivery channel is configured."""

     def send(self, event: NotificationEvent) -> None:
          logger.info(
               "Notification %s for invoice %s to %s (amount %s)",
               event.type.value,
               event.invoice_number,
               event.recipient_email,
               event.amount,
          )


class WebhookNotifier:
     """Posts the event JSON to an external notification service."""

     def __init__(self, url: str, timeout: float = 10):
          self.url = url
          self.timeout = timeout

     def send(self, event: NotificationEvent) -> None:
          response = requests.post(self.url, json=event.to_payload(), timeout=self.timeout)
          if response.status_code not in (200, 201, 202, 204):
               raise RuntimeError(f"Notification service error {response.status_code}: {response.text}")


def dispatch_notification(notifier: Notifier, event: NotificationEvent) -> bool:
     """
     Deliver ``event`` and report whether it went through.

     Errors are logged and swallowed.
     """
     try:
          notifier.send(event)
          return True
     except Exception:
          logger.exception(
               "Failed to deliver %s notification for invoice %s",
               event.type.value,
               event.invoice_number,
          )
          return False


def company_fields(settings) -> dict:
     """Company details attached to every customer-facing event."""
     return {
          "company_name": settings.company_name,
          "company_email": settings.company_email,
          "company_address": settings.company_address,
          "company_phone": settings.company_phone,
     }

# utils/email.py
"""
Brevo transactional email delivery for billing notifications.
"""
import html
import logging
from typing import Optional

import requests

from services.notification_service import NotificationEvent, NotificationType

logger = logging.getLogger(__name__)

BREVO_URL = "https://api.brevo.com/v3/smtp/email"

SUBJECTS = {
     NotificationType.INVOICE_CREATED: "Invoice {invoice_number} from {company_name}",
     NotificationType.PAYMENT_RECEIVED: "Payment Received - Thank You! ({invoice_number})",
     NotificationType.PAYMENT_REMINDER: "Payment Reminder - Invoice {invoice_number}",
     NotificationType.OVERDUE_NOTICE: "OVERDUE: Invoice {invoice_number}",
}


def render_subject(event: NotificationEvent) -> Optional[str]:
     template = SUBJECTS.get(event.type)
     if template is None:
          return None
     return template.format(
          invoice_number=event.invoice_number,
          company_name=event.company_name or "CargoClear",
     )


def render_body(event: NotificationEvent) -> str:
     """HTML body; every interpolated value is escaped."""
     esc = html.escape
     amount = esc(f"{event.currency or ''} {event.amount:,.2f}".strip())
     number = esc(event.invoice_number)
     if event.type == NotificationType.INVOICE_CREATED:
          message = f"Please find invoice <strong>{number}</strong> for <strong>{amount}</strong>, due {event.due_date}."
     elif event.type == NotificationType.PAYMENT_RECEIVED:
          message = (
               f"Thank you for your payment of <strong>{amount}</strong> for invoice "
               f"<strong>{number}</strong> ({esc(event.payment_method or '')}, {event.payment_date})."
          )
     elif event.type == NotificationType.OVERDUE_NOTICE:
          message = (
               f"Invoice <strong>{number}</strong> is {event.days_overdue} days overdue. "
               f"<strong>{amount}</strong> remains outstanding."
          )
     else:
          message = f"This is a reminder that <strong>{amount}</strong> is due on invoice <strong>{number}</strong> by {event.due_date}."

     footer = " | ".join(esc(part) for part in (event.company_address, event.company_email, event.company_phone) if part)
     return f"""
          <p>Dear {esc(event.recipient_name)},</p>
          <p>{message}</p>
          <p>Best regards,<br><strong>{esc(event.company_name or "CargoClear")}</strong></p>
          <p style="font-size:12px;color:#999">{footer}</p>
     """


class BrevoEmailNotifier:
     """Sends customer-facing notifications through Brevo."""

     def __init__(self, api_key: str, sender_email: str, sender_name: str = "CargoClear", timeout: float = 10):
          if not api_key:
               raise ValueError("BREVO_API_KEY is not set")
          self.api_key = api_key
          self.sender_email = sender_email
          self.sender_name = sender_name
          self.timeout = timeout

     def send(self, event: NotificationEvent) -> None:
          subject = render_subject(event)
          if subject is None:
               logger.debug("No email template for %s; not emailed", event.type.value)
               return

          response = requests.post(
               BREVO_URL,
               headers={
                    "api-key": self.api_key,
                    "Content-Type": "application/json",
               },
               json={
                    "sender": {"name": event.company_name or self.sender_name, "email": self.sender_email},
                    "to": [{"email": event.recipient_email, "name": event.recipient_name}],
                    "subject": subject,
                    "htmlContent": render_body(event),
               },
               timeout=self.timeout,
          )
          if response.status_code not in (200, 201):
               raise RuntimeError(f"Brevo error: {response.text}")

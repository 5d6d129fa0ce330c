"""Tests for notification events and delivery channels."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from config import BillingSettings
from dependencies import build_notifier
from services.notification_service import (
    LoggingNotifier,
    NotificationEvent,
    NotificationType,
    WebhookNotifier,
    dispatch_notification,
)
from utils.email import BrevoEmailNotifier, render_body, render_subject


def _event(type_=NotificationType.INVOICE_CREATED, **overrides):
    fields = dict(
        type=type_,
        recipient_email="billing@harbor-imports.test",
        recipient_name="Harbor Imports Ltd",
        invoice_number="INV-2026-000001",
        amount=Decimal("105.00"),
        currency="USD",
        due_date=date(2026, 3, 31),
        company_name="CargoClear Test Co",
    )
    fields.update(overrides)
    return NotificationEvent(**fields)


def _response(status_code, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


class TestNotificationEvent:
    def test_payload_uses_camel_case_and_drops_empty_fields(self):
        payload = _event(days_overdue=4).to_payload()
        assert payload["type"] == "invoice_created"
        assert payload["recipientEmail"] == "billing@harbor-imports.test"
        assert payload["invoiceNumber"] == "INV-2026-000001"
        assert payload["amount"] == "105.00"
        assert payload["dueDate"] == "2026-03-31"
        assert payload["daysOverdue"] == 4
        assert "paymentMethod" not in payload


class TestDispatch:
    def test_success(self):
        assert dispatch_notification(LoggingNotifier(), _event()) is True

    def test_failure_is_swallowed(self):
        notifier = MagicMock()
        notifier.send.side_effect = RuntimeError("down")
        assert dispatch_notification(notifier, _event()) is False


class TestWebhookNotifier:
    @patch("services.notification_service.requests.post")
    def test_posts_payload(self, mock_post):
        mock_post.return_value = _response(202)
        WebhookNotifier("https://notify.example.test/events", timeout=3).send(_event())

        args, kwargs = mock_post.call_args
        assert args[0] == "https://notify.example.test/events"
        assert kwargs["json"]["recipientName"] == "Harbor Imports Ltd"
        assert kwargs["timeout"] == 3

    @patch("services.notification_service.requests.post")
    def test_error_status_raises(self, mock_post):
        mock_post.return_value = _response(500, "boom")
        with pytest.raises(RuntimeError):
            WebhookNotifier("https://notify.example.test/events").send(_event())


class TestBrevoEmailNotifier:
    """Customer emails through the Brevo API."""

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            BrevoEmailNotifier("", "noreply@cargoclear.app")

    @patch("utils.email.requests.post")
    def test_sends_invoice_email(self, mock_post):
        mock_post.return_value = _response(201)
        BrevoEmailNotifier("brevo-key", "noreply@cargoclear.app").send(_event())

        kwargs = mock_post.call_args.kwargs
        assert kwargs["headers"]["api-key"] == "brevo-key"
        body = kwargs["json"]
        assert body["subject"] == "Invoice INV-2026-000001 from CargoClear Test Co"
        assert body["to"] == [{"email": "billing@harbor-imports.test", "name": "Harbor Imports Ltd"}]
        assert body["sender"]["email"] == "noreply@cargoclear.app"
        assert "USD 105.00" in body["htmlContent"]

    @patch("utils.email.requests.post")
    def test_payment_recorded_is_not_emailed(self, mock_post):
        BrevoEmailNotifier("brevo-key", "noreply@cargoclear.app").send(
            _event(NotificationType.PAYMENT_RECORDED)
        )
        mock_post.assert_not_called()

    @patch("utils.email.requests.post")
    def test_api_error_raises(self, mock_post):
        mock_post.return_value = _response(400, "invalid sender")
        with pytest.raises(RuntimeError, match="invalid sender"):
            BrevoEmailNotifier("brevo-key", "noreply@cargoclear.app").send(_event())

    def test_templates(self):
        assert render_subject(_event(NotificationType.OVERDUE_NOTICE)) == "OVERDUE: Invoice INV-2026-000001"
        assert render_subject(_event(NotificationType.PAYMENT_RECEIVED)) == (
            "Payment Received - Thank You! (INV-2026-000001)"
        )
        body = render_body(_event(NotificationType.OVERDUE_NOTICE, days_overdue=9))
        assert "9 days overdue" in body

    def test_body_escapes_customer_and_company_text(self):
        body = render_body(_event(
            NotificationType.PAYMENT_RECEIVED,
            recipient_name="<script>alert(1)</script>",
            company_name="Smith & Sons <Freight>",
            company_address='12 "Dock" Road',
            payment_method="<b>cash</b>",
            payment_date=date(2026, 3, 5),
        ))
        assert "<script>" not in body
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in body
        assert "Smith &amp; Sons &lt;Freight&gt;" in body
        assert "12 &quot;Dock&quot; Road" in body
        assert "&lt;b&gt;cash&lt;/b&gt;" in body


class TestBuildNotifier:
    def test_webhook_wins(self):
        settings = BillingSettings(notification_url="https://notify.example.test", brevo_api_key="key")
        assert isinstance(build_notifier(settings), WebhookNotifier)

    def test_brevo(self):
        assert isinstance(build_notifier(BillingSettings(brevo_api_key="key")), BrevoEmailNotifier)

    def test_default_logs(self):
        assert isinstance(build_notifier(BillingSettings()), LoggingNotifier)

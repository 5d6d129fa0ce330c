"""HTTP tests for the invoice, payment and customer routes."""

from datetime import date

from conftest import auth_headers


def _generate(client, job_id, role="ADMIN"):
    return client.post("/api/invoices/generate", json={"job_id": job_id}, headers=auth_headers(role))


def _pay(client, invoice_id, amount, role="ADMIN", **extra):
    body = {"invoice_id": invoice_id, "amount": amount, **extra}
    return client.post("/api/payments", json=body, headers=auth_headers(role))


class TestAuth:
    """Bearer token and role checks."""

    def test_missing_token(self, client):
        response = client.get("/api/invoices")
        assert response.status_code == 401

    def test_invalid_token(self, client):
        response = client.get("/api/invoices", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 403

    def test_viewer_cannot_record_payments(self, client, make_job):
        job = make_job()
        invoice_id = _generate(client, job.id).json()["id"]
        response = _pay(client, invoice_id, "10.00", role="VIEWER")
        assert response.status_code == 403

    def test_operations_cannot_void(self, client, make_job):
        job = make_job()
        invoice_id = _generate(client, job.id, role="OPERATIONS").json()["id"]
        response = client.post(f"/api/invoices/{invoice_id}/void", headers=auth_headers("OPERATIONS"))
        assert response.status_code == 403

    def test_viewer_can_read(self, client, make_job):
        job = make_job()
        invoice_id = _generate(client, job.id).json()["id"]
        response = client.get(f"/api/invoices/{invoice_id}", headers=auth_headers("VIEWER"))
        assert response.status_code == 200


class TestInvoiceRoutes:
    """Generation, listing and lifecycle over HTTP."""

    def test_generate(self, client, make_job):
        job = make_job([(100, 5), (0, 0)])
        response = _generate(client, job.id)
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "DRAFT"
        assert data["total"] == "105.00"
        assert data["balance"] == "105.00"
        assert data["quickbooks_sync_status"] == "NOT_SYNCED"
        assert len(data["lines"]) == 1
        assert data["lines"][0]["tax_rate"] == "5.0000"

    def test_generate_without_billable_charges(self, client, make_job):
        job = make_job([(0, 0)])
        response = _generate(client, job.id)
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "NoBillableChargesError"
        assert detail["job_id"] == job.id

    def test_generate_unknown_job(self, client):
        response = _generate(client, 4040)
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "JobNotFoundError"

    def test_generate_twice(self, client, make_job):
        job = make_job()
        assert _generate(client, job.id).status_code == 201
        assert _generate(client, job.id).status_code == 409

    def test_list_and_filter(self, client, make_job):
        first = make_job()
        second = make_job()
        _generate(client, first.id)
        second_id = _generate(client, second.id).json()["id"]
        client.post(f"/api/invoices/{second_id}/void", headers=auth_headers())

        response = client.get("/api/invoices", headers=auth_headers())
        assert response.json()["total"] == 2

        response = client.get("/api/invoices", params={"status": "VOID"}, headers=auth_headers())
        data = response.json()
        assert data["total"] == 1
        assert data["invoices"][0]["id"] == second_id

        response = client.get("/api/invoices", params={"job_id": first.id}, headers=auth_headers())
        assert response.json()["total"] == 1

    def test_get_unknown_invoice(self, client):
        response = client.get("/api/invoices/999", headers=auth_headers())
        assert response.status_code == 404

    def test_send_and_remind(self, client, make_job, notifier):
        job = make_job()
        invoice_id = _generate(client, job.id).json()["id"]

        response = client.post(f"/api/invoices/{invoice_id}/send", headers=auth_headers())
        assert response.status_code == 200
        data = response.json()
        assert data["delivered"] is True
        assert data["invoice"]["status"] == "SENT"

        response = client.post(f"/api/invoices/{invoice_id}/remind", headers=auth_headers())
        assert response.status_code == 200
        data = response.json()
        assert data["notification_type"] == "payment_reminder"
        assert data["amount"] == "105.00"
        assert notifier.types() == ["invoice_created", "payment_reminder"]

    def test_remind_draft_conflicts(self, client, make_job):
        job = make_job()
        invoice_id = _generate(client, job.id).json()["id"]
        response = client.post(f"/api/invoices/{invoice_id}/remind", headers=auth_headers())
        assert response.status_code == 409

    def test_send_without_email(self, client, make_job):
        job = make_job(email=None)
        invoice_id = _generate(client, job.id).json()["id"]
        response = client.post(f"/api/invoices/{invoice_id}/send", headers=auth_headers())
        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "MissingRecipientError"


class TestPaymentRoutes:
    """Recording and verifying payments over HTTP."""

    def test_worked_example(self, client, make_job):
        job = make_job([(100, 5)])
        invoice_id = _generate(client, job.id).json()["id"]

        response = _pay(client, invoice_id, "50.00", reference_number="TRX-1")
        assert response.status_code == 201
        data = response.json()
        assert data["invoice"]["status"] == "PARTIALLY_PAID"
        assert data["invoice"]["balance"] == "55.00"
        assert data["payment"]["method"] == "Bank Transfer"
        assert data["payment"]["reference_number"] == "TRX-1"
        assert len(data["payment"]["transaction_hash"]) == 64

        response = _pay(client, invoice_id, "55.00", method="Cash", payment_date=str(date(2026, 3, 5)))
        assert response.status_code == 201
        assert response.json()["invoice"]["status"] == "PAID"

        response = _pay(client, invoice_id, "1.00")
        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["error"] == "OverpaymentError"
        assert detail["balance"] == "0.00"
        assert detail["attempted_amount"] == "1.00"

        response = client.get(f"/api/invoices/{invoice_id}/payments", headers=auth_headers())
        assert [p["amount"] for p in response.json()] == ["50.00", "55.00"]

        response = client.get(f"/api/invoices/{invoice_id}/ledger/verify", headers=auth_headers())
        assert response.json() == {
            "invoice_id": invoice_id,
            "valid": True,
            "message": "Full chain verification passed",
            "entries_checked": 2,
        }

    def test_non_positive_amount_is_rejected(self, client, make_job):
        job = make_job()
        invoice_id = _generate(client, job.id).json()["id"]
        response = _pay(client, invoice_id, "0")
        assert response.status_code == 422

    def test_payment_on_void_invoice(self, client, make_job):
        job = make_job()
        invoice_id = _generate(client, job.id).json()["id"]
        client.post(f"/api/invoices/{invoice_id}/void", headers=auth_headers())
        response = _pay(client, invoice_id, "10.00")
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "InvoiceVoidError"

    def test_payment_on_unknown_invoice(self, client):
        response = _pay(client, 777, "10.00")
        assert response.status_code == 404

    def test_get_and_verify_payment(self, client, make_job):
        job = make_job()
        invoice_id = _generate(client, job.id).json()["id"]
        payment_id = _pay(client, invoice_id, "10.00", role="ACCOUNTS").json()["payment"]["id"]

        response = client.get(f"/api/payments/{payment_id}", headers=auth_headers("VIEWER"))
        assert response.status_code == 200
        assert response.json()["previous_hash"] == "0"

        response = client.get(f"/api/payments/{payment_id}/verify", headers=auth_headers())
        assert response.json()["valid"] is True

        assert client.get("/api/payments/999/verify", headers=auth_headers()).status_code == 404
        assert client.get("/api/invoices/999/ledger/verify", headers=auth_headers()).status_code == 404


class TestCustomerRoutes:
    """Customer balance statement."""

    def test_balance(self, client, make_job):
        job = make_job([(100, 5)])
        invoice_id = _generate(client, job.id).json()["id"]
        _pay(client, invoice_id, "40.00")

        response = client.get(f"/api/customers/{job.customer_id}/balance", headers=auth_headers())
        assert response.status_code == 200
        data = response.json()
        assert data["total_invoiced"] == "105.00"
        assert data["total_paid"] == "40.00"
        assert data["outstanding_balance"] == "65.00"
        assert data["open_count"] == 1

    def test_unknown_customer(self, client):
        response = client.get("/api/customers/999/balance", headers=auth_headers())
        assert response.status_code == 404


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

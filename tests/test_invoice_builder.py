"""Tests for invoice construction from job charges."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from models import InvoiceStatus, Job, JobCharge, QuickbooksSyncStatus
from services.errors import NoBillableChargesError
from services.invoice_builder import build_invoice, build_invoice_line, derive_tax_rate
from services.number_allocator import InMemoryNumberAllocator

NOW = datetime(2026, 3, 1, 9, 30)


def _charge(amount, tax, fee_id="FEE-1", override=None):
    return JobCharge(
        fee_id=fee_id,
        fee_name="Customs Clearance",
        description_override=override,
        amount=Decimal(str(amount)),
        tax_amount=Decimal(str(tax)),
    )


@pytest.fixture()
def job():
    return Job(id=21, job_number="JOB-00021", customer_id=4)


@pytest.fixture()
def allocator():
    return InMemoryNumberAllocator(clock=lambda: datetime(2026, 3, 1, tzinfo=timezone.utc))


class TestDeriveTaxRate:
    """Tax rate is a percentage of the untaxed amount."""

    def test_five_percent(self):
        assert derive_tax_rate(Decimal("100.00"), Decimal("5.00")) == Decimal("5.0000")

    def test_rounded_to_four_places(self):
        assert derive_tax_rate(Decimal("30.00"), Decimal("1.00")) == Decimal("3.3333")

    def test_zero_amount_has_zero_rate(self):
        assert derive_tax_rate(Decimal("0"), Decimal("5.00")) == Decimal("0")


class TestBuildInvoiceLine:
    """One line per charge, quantity 1, total copied verbatim."""

    def test_line_fields(self):
        line = build_invoice_line(_charge(100, 5), position=2)
        assert line.description == "Customs Clearance"
        assert line.quantity == 1
        assert line.unit_price == Decimal("100.00")
        assert line.tax_rate == Decimal("5.0000")
        assert line.line_total == Decimal("105.00")
        assert line.position == 2
        assert line.fee_id == "FEE-1"

    def test_description_override_wins(self):
        line = build_invoice_line(_charge(10, 0, override="Storage - 3 days"))
        assert line.description == "Storage - 3 days"

    def test_line_total_not_recomputed_from_rate(self):
        # 1.00 tax on 30.00 is a 3.3333% rate; the total must stay 31.00
        line = build_invoice_line(_charge("30.00", "1.00"))
        assert line.line_total == Decimal("31.00")
        assert line.tax_amount == Decimal("1.00")


class TestBuildInvoice:
    """Invoice totals, dates and initial state."""

    def test_worked_example(self, job, allocator):
        invoice = build_invoice(
            job, [_charge(100, 5)], customer_id=4, customer_name="Harbor Imports",
            now=NOW, allocator=allocator,
        )
        assert invoice.total == Decimal("105.00")
        assert invoice.tax_total == Decimal("5.00")
        assert invoice.amount_paid == Decimal("0.00")
        assert invoice.balance == Decimal("105.00")
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.quickbooks_sync_status == QuickbooksSyncStatus.NOT_SYNCED
        assert invoice.invoice_number == "INV-2026-000001"
        assert invoice.job_id == 21
        assert invoice.customer_name == "Harbor Imports"

    def test_dates_follow_payment_terms(self, job, allocator):
        invoice = build_invoice(
            job, [_charge(10, 0)], customer_id=4, customer_name="X",
            now=NOW, allocator=allocator, payment_terms_days=14,
        )
        assert invoice.issue_date == date(2026, 3, 1)
        assert invoice.due_date == date(2026, 3, 15)

    def test_total_is_sum_of_line_totals(self, job, allocator):
        charges = [_charge("100.00", "5.00", "A"), _charge("33.33", "1.67", "B"), _charge("0.01", "0", "C")]
        invoice = build_invoice(
            job, charges, customer_id=4, customer_name="X", now=NOW, allocator=allocator,
        )
        assert invoice.total == sum(line.line_total for line in invoice.lines)
        assert invoice.total == Decimal("140.01")
        assert invoice.tax_total == Decimal("6.67")
        assert [line.position for line in invoice.lines] == [0, 1, 2]

    def test_empty_charges_raise(self, job, allocator):
        with pytest.raises(NoBillableChargesError):
            build_invoice(job, [], customer_id=4, customer_name="X", now=NOW, allocator=allocator)

    def test_failed_build_allocates_no_number(self, job, allocator):
        with pytest.raises(NoBillableChargesError):
            build_invoice(job, [], customer_id=4, customer_name="X", now=NOW, allocator=allocator)
        invoice = build_invoice(
            job, [_charge(1, 0)], customer_id=4, customer_name="X", now=NOW, allocator=allocator,
        )
        assert invoice.invoice_number == "INV-2026-000001"

    def test_concurrent_generation_yields_unique_numbers(self, allocator):
        """1000 invoices built from 16 threads never share a number."""

        def _generate(index):
            job = Job(id=index, job_number=f"JOB-{index:05d}", customer_id=1)
            return build_invoice(
                job, [_charge(10, 1)], customer_id=1, customer_name="X",
                now=NOW, allocator=allocator,
            ).invoice_number

        with ThreadPoolExecutor(max_workers=16) as pool:
            numbers = list(pool.map(_generate, range(1000)))

        assert len(numbers) == 1000
        assert len(set(numbers)) == 1000

"""
PDF rendering tests (QR sheets and invoices).
"""

import base64

import pytest

from authentiks.models import Order, Payment, QrCode
from authentiks.services import document_service
from authentiks.time_utils import utcnow
from authentiks.validation import ValidationError


def sample_codes(count):
    return [
        QrCode(code=f"ACME-{n:04d}-B1-ZZ{n:02d}", product_name="A very long product name for a small label",
               brand="ACME", batch_no="B1", sequence=n, is_active=True)
        for n in range(1, count + 1)
    ]


class TestQrSheet:

    def test_single_page(self, app):
        pdf = document_service.qr_sheet_pdf(sample_codes(3), "ACME - Serum")
        assert pdf.startswith(b"%PDF")

    def test_spills_onto_more_pages(self, app):
        per_page = document_service.SHEET_COLUMNS * document_service.SHEET_ROWS
        single = document_service.qr_sheet_pdf(sample_codes(per_page), "Sheet")
        double = document_service.qr_sheet_pdf(sample_codes(per_page + 1), "Sheet")
        assert len(double) > len(single)

    def test_base64_wrapper(self, app):
        encoded = document_service.codes_sheet_base64(sample_codes(1))
        assert base64.b64decode(encoded).startswith(b"%PDF")

    def test_order_without_codes(self, app):
        with pytest.raises(ValidationError, match="have not been generated"):
            document_service.order_sheet_base64(Order(qr_codes_generated=False))


class TestInvoice:

    def make_payment(self, **fields):
        values = dict(
            type="topup", quantity=60, credits=60, unit_price_paise=500, base_amount_paise=30000, gst_rate_bps=1800,
            gst_amount_paise=5400, additional_charges=[{"name": "Platform fee", "amountPaise": 600}],
            charges_total_paise=600, coupon_code="WELCOME10", coupon_discount_paise=3000,
            final_amount_paise=33000, charged_amount_paise=100, is_test_payment=True,
            merchant_order_id="AUTH_TEST_1", status="completed", created_at=utcnow(), completed_at=utcnow(),
        )
        values.update(fields)
        return Payment(**values)

    def test_completed(self, app):
        assert document_service.invoice_pdf(self.make_payment()).startswith(b"%PDF")

    def test_pending_refused(self, app):
        with pytest.raises(ValidationError, match="only for completed payments"):
            document_service.invoice_pdf(self.make_payment(status="pending"))

# Overview: PDF documents (printable QR sheets, payment invoices) rendered with reportlab.

from __future__ import annotations

import base64
import io

from reportlab.graphics import renderPDF
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..models import Order, Payment, QrCode
from ..models.billing import PAYMENT_COMPLETED
from ..validation import ValidationError, paise_to_rupees, bps_to_percent
from . import qr_service


# QR sheet grid on A4 (points)
SHEET_COLUMNS = 4
SHEET_ROWS = 5
QR_SIZE = 100
CELL_WIDTH = 135
CELL_HEIGHT = 150
MARGIN_X = 27
MARGIN_TOP = 60


def to_base64(pdf_bytes: bytes) -> str:
    return base64.b64encode(pdf_bytes).decode("ascii")


def _draw_qr(pdf: canvas.Canvas, value: str, x: float, y: float, size: float) -> None:
    widget = QrCodeWidget(value)
    left, bottom, right, top = widget.getBounds()
    width, height = right - left, top - bottom
    drawing = Drawing(size, size, transform=[size / width, 0, 0, size / height, 0, 0])
    drawing.add(widget)
    renderPDF.draw(drawing, pdf, x, y)


def _fit(text: str | None, limit: int) -> str:
    text = text or ""
    return text if len(text) <= limit else text[: limit - 1] + "…"


def qr_sheet_pdf(codes: list[QrCode], title: str) -> bytes:
    """One labelled QR image per code, SHEET_COLUMNS x SHEET_ROWS per page."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    page_width, page_height = A4
    per_page = SHEET_COLUMNS * SHEET_ROWS

    for start in range(0, max(len(codes), 1), per_page):
        pdf.setFont("Helvetica-Bold", 14)
        pdf.drawString(MARGIN_X, page_height - 35, _fit(title, 70))
        pdf.setFont("Helvetica", 7)

        for index, qr in enumerate(codes[start:start + per_page]):
            column = index % SHEET_COLUMNS
            row = index // SHEET_COLUMNS
            x = MARGIN_X + column * CELL_WIDTH
            y = page_height - MARGIN_TOP - (row + 1) * CELL_HEIGHT
            _draw_qr(pdf, qr.code, x + (CELL_WIDTH - QR_SIZE) / 2, y + 35, QR_SIZE)
            pdf.drawCentredString(x + CELL_WIDTH / 2, y + 26, _fit(qr.code, 38))
            pdf.drawCentredString(x + CELL_WIDTH / 2, y + 17, _fit(qr.product_name, 38))
            pdf.drawCentredString(x + CELL_WIDTH / 2, y + 8, _fit(f"{qr.brand} | {qr.batch_no or ''}", 38))

        pdf.showPage()

    pdf.save()
    return buffer.getvalue()


def order_sheet_base64(order: Order) -> str:
    if not order.qr_codes_generated:
        raise ValidationError("QR codes have not been generated for this order yet")
    codes = qr_service.codes_for_order(order)
    return to_base64(qr_sheet_pdf(codes, f"{order.order_number} - {order.product_name}"))


def codes_sheet_base64(codes: list[QrCode], title: str = "QR Codes") -> str:
    return to_base64(qr_sheet_pdf(codes, title))


def _money(paise: int) -> str:
    return f"Rs. {paise_to_rupees(paise):,.2f}"


def invoice_pdf(payment: Payment) -> bytes:
    if payment.status != PAYMENT_COMPLETED:
        raise ValidationError("Invoice is available only for completed payments")

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    _, page_height = A4
    company = payment.company

    pdf.setFont("Helvetica-Bold", 18)
    pdf.drawString(60, page_height - 70, "Authentiks - Tax Invoice")

    pdf.setFont("Helvetica", 10)
    y = page_height - 100
    header = [
        f"Invoice No: INV-{payment.merchant_order_id}",
        f"Date: {(payment.completed_at or payment.created_at).strftime('%d %b %Y')}",
        f"Billed to: {company.company_name if company else '-'}",
    ]
    if company is not None and company.cin_gst:
        header.append(f"CIN/GST: {company.cin_gst}")
    if company is not None and company.register_office_address:
        header.append(f"Address: {_fit(company.register_office_address, 80)}")
    for line in header:
        pdf.drawString(60, y, line)
        y -= 15

    y -= 15
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(60, y, "Description")
    pdf.drawRightString(530, y, "Amount")
    pdf.line(60, y - 5, 530, y - 5)
    y -= 22

    if payment.type == "plan" and payment.plan_name:
        description = f"{payment.plan_name} plan - {payment.credits} QR credits"
    else:
        description = f"QR credit top-up - {payment.credits} credits"

    rows = [
        (description, payment.base_amount_paise),
        (f"GST ({bps_to_percent(payment.gst_rate_bps)}%)", payment.gst_amount_paise),
    ]
    for charge in payment.additional_charges or []:
        rows.append((charge["name"], charge["amountPaise"]))
    if payment.coupon_discount_paise:
        rows.append((f"Coupon {payment.coupon_code}", -payment.coupon_discount_paise))

    pdf.setFont("Helvetica", 10)
    for label, amount in rows:
        pdf.drawString(60, y, _fit(label, 70))
        pdf.drawRightString(530, y, _money(amount))
        y -= 18

    pdf.line(60, y + 8, 530, y + 8)
    pdf.setFont("Helvetica-Bold", 11)
    pdf.drawString(60, y - 8, "Total")
    pdf.drawRightString(530, y - 8, _money(payment.final_amount_paise))

    if payment.is_test_payment:
        pdf.setFont("Helvetica-Oblique", 9)
        pdf.drawString(60, y - 30, f"Test payment: charged {_money(payment.charged_amount_paise)}")

    pdf.setFont("Helvetica", 8)
    pdf.drawString(60, 50, f"Payment reference: {payment.gateway_transaction_id or payment.merchant_order_id}")

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()

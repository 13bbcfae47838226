# Overview: Flask API routes for payments (pagos); parses input and returns JSON responses.

# backend/jaguar/routes/payments.py
"""
Payment API Routes

The frontend posts the payment form as multipart (it may carry a voucher
image); JSON bodies are accepted too. Voucher files are not stored here:
only a reference (voucher_url, or the uploaded file name) is kept.
"""

from flask import Blueprint, jsonify, request

from ..decorators import json_errors, json_payload
from ..repositories import get_repositories
from ..services import payment_service
from ..validation import parse_id


payments_bp = Blueprint("payments", __name__, url_prefix="/pagos")


@payments_bp.post("/")
@json_errors
def record_payment_route():
    """
    Request body:
    {
        "proforma_id": 12,
        "monto": 450.00,
        "metodo_pago": "YAPE",
        "voucher_url": "https://...",   // optional
        "observaciones": "..."          // optional
    }

    Returns:
        201: Pago
        409: quotation not RESERVA/PAGADA
    """
    data = json_payload()
    voucher_ref = data.get("voucher_url")
    voucher = request.files.get("voucher")
    if voucher is not None and voucher.filename:
        voucher_ref = voucher.filename

    payment = payment_service.record_payment(
        get_repositories(),
        parse_id(data.get("proforma_id"), "proforma_id"),
        amount=data.get("monto"),
        method=data.get("metodo_pago"),
        voucher_ref=voucher_ref,
        notes=data.get("observaciones"),
    )
    return jsonify(payment.to_dict()), 201


@payments_bp.get("/proforma/<int:quotation_id>")
@json_errors
def list_payments_route(quotation_id: int):
    """Payment log, oldest first."""
    payments = payment_service.list_payments(get_repositories(), quotation_id)
    return jsonify([p.to_dict() for p in payments])


@payments_bp.get("/proforma/<int:quotation_id>/resumen")
@json_errors
def payment_summary_route(quotation_id: int):
    summary = payment_service.payment_summary(get_repositories(), quotation_id)
    return jsonify(summary.to_dict())

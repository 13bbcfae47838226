# Overview: Flask API routes for quotations (proformas); parses input and returns JSON responses.

# backend/jaguar/routes/quotations.py
"""
Quotation API Routes

LIFECYCLE:
- POST /proformas/                 issue (EMITIDA)
- POST /proformas/<id>/emitir      reserve (RESERVA, bundles held until fecha_expiracion)
- POST /pagos/                     pay (PAGADA once fully paid)
- POST /proformas/despachar        dispatch a batch (DESPACHADA)
- POST /proformas/<id>/vencer      expire now if past its window (normally the sweep does it)

PRICING:
- POST  /proformas/preview         totals without persisting
- PATCH /proformas/<id>/descuentos change discounts while EMITIDA or RESERVA

PUBLIC:
- GET /proformas/codigo/<codigo>   customer tracking page
"""

from datetime import timedelta

from flask import Blueprint, current_app, jsonify, request

from ..decorators import json_errors, json_payload
from ..errors import ValidationError
from ..repositories import get_repositories
from ..services import quotation_service
from ..services.quotation_service import LineRequest
from ..validation import paginate, parse_id, parse_id_list, parse_optional_id, parse_pagination


quotations_bp = Blueprint("quotations", __name__, url_prefix="/proformas")


def _parse_lines(raw) -> list[LineRequest]:
    """lineas: [{saco_id, precio_unitario?, descuento_linea?}]"""
    if not isinstance(raw, list):
        raise ValidationError("lineas must be a list", details={"field": "lineas"})
    lines = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationError("Each line must be an object", details={"field": "lineas"})
        lines.append(LineRequest(
            bundle_id=parse_id(entry.get("saco_id"), "saco_id"),
            unit_price=entry.get("precio_unitario"),
            line_discount=entry.get("descuento_linea", 0),
        ))
    return lines


@quotations_bp.get("/")
@json_errors
def list_quotations_route():
    """
    Query parameters:
    - page, size: pagination (default 1, 20)
    - estado: EMITIDA | RESERVA | PAGADA | VENCIDA | DESPACHADA

    Returns:
        {items: Proforma[], total, page, size, pages}
    """
    page, size = parse_pagination(request.args.get("page"), request.args.get("size"))
    quotations = quotation_service.list_quotations(get_repositories(), state=request.args.get("estado") or None)
    return jsonify(paginate(quotations, page, size, lambda q: q.to_dict(include_lines=False)))


@quotations_bp.get("/<int:quotation_id>")
@json_errors
def get_quotation_route(quotation_id: int):
    return jsonify(quotation_service.get_quotation(get_repositories(), quotation_id).to_dict())


@quotations_bp.post("/")
@json_errors
def issue_quotation_route():
    """
    Request body:
    {
        "lista_id": 1,                      // optional
        "cliente_nombre": "Rosa Quispe",    // required
        "cliente_telefono": "987000111",
        "cliente_email": "rosa@example.com",
        "descuento_global": 5,              // percent, default 0
        "lineas": [
            {"saco_id": 1, "precio_unitario": 500.00, "descuento_linea": 10}
        ]
    }

    precio_unitario defaults to the bundle's current precio_base.

    Returns:
        201: Proforma (EMITIDA)
    """
    data = json_payload()
    quotation = quotation_service.issue_quotation(
        get_repositories(),
        customer_name=data.get("cliente_nombre"),
        customer_phone=data.get("cliente_telefono"),
        customer_email=data.get("cliente_email"),
        lines=_parse_lines(data.get("lineas", [])),
        global_discount=data.get("descuento_global", 0),
        source_list_id=parse_optional_id(data.get("lista_id"), "lista_id"),
    )
    return jsonify(quotation.to_dict()), 201


@quotations_bp.post("/preview")
@json_errors
def preview_quotation_route():
    """Same body as POST /proformas/ (customer fields ignored); nothing is stored."""
    data = json_payload()
    totals = quotation_service.preview_totals(
        get_repositories(),
        _parse_lines(data.get("lineas", [])),
        data.get("descuento_global", 0),
    )
    return jsonify(totals.to_dict())


@quotations_bp.post("/<int:quotation_id>/emitir")
@json_errors
def reserve_quotation_route(quotation_id: int):
    """
    EMITIDA -> RESERVA. Every bundle is reserved or none is.

    Returns:
        200: Proforma with fecha_expiracion
        409: INVALID_TRANSITION or BUNDLE_UNAVAILABLE (details.saco_ids)
    """
    window = timedelta(days=current_app.config["RESERVATION_WINDOW_DAYS"])
    quotation = quotation_service.reserve_quotation(get_repositories(), quotation_id, window=window)
    return jsonify(quotation.to_dict())


@quotations_bp.patch("/<int:quotation_id>/descuentos")
@json_errors
def update_pricing_route(quotation_id: int):
    """
    Request body (both optional):
    {
        "descuento_global": 10,
        "lineas": [{"saco_id": 1, "descuento_linea": 5}]
    }
    """
    data = json_payload()
    line_discounts = {}
    for entry in data.get("lineas") or []:
        if not isinstance(entry, dict):
            raise ValidationError("Each line must be an object", details={"field": "lineas"})
        line_discounts[parse_id(entry.get("saco_id"), "saco_id")] = entry.get("descuento_linea", 0)

    quotation = quotation_service.update_quotation_pricing(
        get_repositories(),
        quotation_id,
        global_discount=data.get("descuento_global"),
        line_discounts=line_discounts,
    )
    return jsonify(quotation.to_dict())


@quotations_bp.post("/<int:quotation_id>/vencer")
@json_errors
def expire_quotation_route(quotation_id: int):
    repos = get_repositories()
    expired = quotation_service.expire_quotation(repos, quotation_id)
    quotation = quotation_service.get_quotation(repos, quotation_id)
    return jsonify({"vencida": expired, "proforma": quotation.to_dict()})


@quotations_bp.post("/despachar")
@json_errors
def dispatch_quotations_route():
    """
    Request body: {"proforma_ids": [3, 7, 9]}

    All must be PAGADA or nothing is dispatched.

    Returns:
        200: {"despachadas": Proforma[]}  (the dispatch manifest)
    """
    data = json_payload()
    manifest = quotation_service.dispatch_quotations(
        get_repositories(), parse_id_list(data.get("proforma_ids"), "proforma_ids")
    )
    return jsonify({"despachadas": [q.to_dict() for q in manifest]})


@quotations_bp.delete("/<int:quotation_id>")
@json_errors
def delete_quotation_route(quotation_id: int):
    quotation_service.delete_quotation(get_repositories(), quotation_id)
    return "", 204


@quotations_bp.get("/codigo/<string:code>")
@json_errors
def track_quotation_route(code: str):
    quotation = quotation_service.track_quotation(get_repositories(), code)
    return jsonify(quotation.to_public_dict())

# Overview: Flask API routes for inventory bundles (sacos); parses input and returns JSON responses.

"""
Bundle Routes

Warehouse flow: POST /sacos/ on reception (RECIBIDO, scan code assigned),
then tag (RECIBIDO -> DISPONIBLE) one at a time or in batch. Reservation and
sale are driven by quotations and payments, never set directly here.
"""

from flask import Blueprint, jsonify, request

from ..decorators import json_errors, json_payload
from ..errors import InvalidTransitionError, ValidationError
from ..models import BundleState
from ..repositories import get_repositories
from ..services import inventory_service
from ..services.lifecycle_service import parse_state
from ..validation import paginate, parse_id_list, parse_optional_id, parse_pagination


bundles_bp = Blueprint("bundles", __name__, url_prefix="/sacos")

# JSON field -> service field for PATCH /sacos/<id>
EDITABLE_JSON_FIELDS = {
    "tipo": "garment_type",
    "temporada": "season",
    "categoria": "category",
    "tallas_incluidas": "sizes",
    "descripcion_contenido": "description",
    "precio_base": "base_price",
    "observaciones": "notes",
}
IMMUTABLE_JSON_FIELDS = {"id", "qr_code", "estado", "pedido_id", "created_at"}


@bundles_bp.get("/")
@json_errors
def list_bundles_route():
    """
    Query parameters:
    - page, size: pagination (default 1, 20)
    - estado, tipo, temporada, categoria: exact filters
    - pedido_id: bundles received against one order

    Returns:
        {items: Saco[], total, page, size, pages}
    """
    page, size = parse_pagination(request.args.get("page"), request.args.get("size"))
    bundles = inventory_service.list_bundles(
        get_repositories(),
        state=request.args.get("estado") or None,
        garment_type=request.args.get("tipo") or None,
        season=request.args.get("temporada") or None,
        category=request.args.get("categoria") or None,
        purchase_order_id=request.args.get("pedido_id", type=int),
    )
    return jsonify(paginate(bundles, page, size, lambda b: b.to_dict()))


@bundles_bp.get("/<int:bundle_id>")
@json_errors
def get_bundle_route(bundle_id: int):
    return jsonify(get_repositories().bundles.require(bundle_id).to_dict())


@bundles_bp.get("/qr/<string:scan_code>")
@json_errors
def get_bundle_by_scan_code_route(scan_code: str):
    """Scanner lookup: GET /sacos/qr/SACO-000123"""
    bundle = inventory_service.get_bundle_by_scan_code(get_repositories(), scan_code)
    return jsonify(bundle.to_dict())


@bundles_bp.post("/")
@json_errors
def receive_bundle_route():
    """
    Request body:
    {
        "pedido_id": 1,                       // optional; order EN_TRANSITO or RECIBIDO
        "tipo": "CASUAL_HOMBRE",
        "temporada": "VERANO",
        "categoria": "HOMBRE",
        "tallas_incluidas": ["M", "L", "XL"],
        "descripcion_contenido": "Saco de polos y shorts casuales",
        "precio_base": 500.00,
        "observaciones": "..."                // optional
    }

    Returns:
        201: Saco (estado RECIBIDO, qr_code assigned)
    """
    data = json_payload()
    bundle = inventory_service.receive_bundle(
        get_repositories(),
        garment_type=data.get("tipo"),
        season=data.get("temporada"),
        category=data.get("categoria"),
        sizes=data.get("tallas_incluidas"),
        description=data.get("descripcion_contenido"),
        base_price=data.get("precio_base"),
        purchase_order_id=parse_optional_id(data.get("pedido_id"), "pedido_id"),
        notes=data.get("observaciones"),
    )
    return jsonify(bundle.to_dict()), 201


@bundles_bp.patch("/<int:bundle_id>")
@json_errors
def update_bundle_route(bundle_id: int):
    """Partial update of descriptive fields and precio_base."""
    data = json_payload()
    blocked = sorted(set(data) & IMMUTABLE_JSON_FIELDS)
    if blocked:
        raise ValidationError(
            f"Fields cannot be changed: {', '.join(blocked)}",
            details={"fields": blocked},
        )
    unknown = sorted(set(data) - set(EDITABLE_JSON_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(unknown)}", details={"fields": unknown})

    changes = {EDITABLE_JSON_FIELDS[key]: value for key, value in data.items()}
    bundle = inventory_service.update_bundle(get_repositories(), bundle_id, changes)
    return jsonify(bundle.to_dict())


@bundles_bp.patch("/<int:bundle_id>/estado")
@json_errors
def update_bundle_state_route(bundle_id: int):
    """
    Request body: {"estado": "DISPONIBLE"}

    Only tagging is a manual state change; RESERVADO and VENDIDO come from
    quotations and payments.
    """
    data = json_payload()
    target = parse_state(BundleState, data.get("estado"))
    if target != BundleState.AVAILABLE:
        raise InvalidTransitionError(
            f"'{target.value}' is set by quotations and payments, not directly",
            details={"id": bundle_id, "to": target.value},
        )
    bundle = inventory_service.tag_bundle(get_repositories(), bundle_id)
    return jsonify(bundle.to_dict())


@bundles_bp.post("/etiquetar")
@json_errors
def tag_bundles_route():
    """
    Batch tagging, all or none.

    Request body: {"saco_ids": [1, 2, 3]}
    """
    data = json_payload()
    bundles = inventory_service.tag_bundles(
        get_repositories(), parse_id_list(data.get("saco_ids"), "saco_ids")
    )
    return jsonify([b.to_dict() for b in bundles])

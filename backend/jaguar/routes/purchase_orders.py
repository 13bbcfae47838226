# Overview: Flask API routes for purchase orders (pedidos); parses input and returns JSON responses.

"""
Purchase Order Routes

Orders advance one state at a time (CREADO -> EN_TRANSITO -> RECIBIDO ->
CERRADO). Accounting records the amount owed on an order through
PUT /pedidos/<id>/deuda; the reconciliation page aggregates it.
"""

from flask import Blueprint, jsonify, request

from ..decorators import json_errors, json_payload
from ..repositories import get_repositories
from ..services import procurement_service
from ..validation import paginate, parse_id, parse_optional_datetime, parse_pagination


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/pedidos")


@purchase_orders_bp.get("/")
@json_errors
def list_purchase_orders_route():
    """
    Query parameters:
    - page, size: pagination (default 1, 20)
    - estado: CREADO | EN_TRANSITO | RECIBIDO | CERRADO
    - proveedor_id: only this supplier's orders

    Returns:
        {items: Pedido[], total, page, size, pages}
    """
    page, size = parse_pagination(request.args.get("page"), request.args.get("size"))
    orders = procurement_service.list_purchase_orders(
        get_repositories(),
        state=request.args.get("estado") or None,
        supplier_id=request.args.get("proveedor_id", type=int),
    )
    return jsonify(paginate(orders, page, size, lambda o: o.to_dict()))


@purchase_orders_bp.get("/<int:order_id>")
@json_errors
def get_purchase_order_route(order_id: int):
    order = get_repositories().purchase_orders.require(order_id)
    return jsonify(order.to_dict())


@purchase_orders_bp.post("/")
@json_errors
def create_purchase_order_route():
    """
    Request body:
    {
        "proveedor_id": 1,                                  // required
        "fecha_entrega_estimada": "2024-01-20T00:00:00Z",   // optional
        "observaciones": "Pedido de temporada de verano"    // optional
    }
    """
    data = json_payload()
    order = procurement_service.create_purchase_order(
        get_repositories(),
        supplier_id=parse_id(data.get("proveedor_id"), "proveedor_id"),
        estimated_delivery_at=parse_optional_datetime(data.get("fecha_entrega_estimada"), "fecha_entrega_estimada"),
        notes=data.get("observaciones"),
    )
    return jsonify(order.to_dict()), 201


@purchase_orders_bp.patch("/<int:order_id>/estado")
@json_errors
def advance_purchase_order_route(order_id: int):
    """Request body: {"estado": "EN_TRANSITO"} (must be the next state)"""
    data = json_payload()
    order = procurement_service.advance_purchase_order(get_repositories(), order_id, data.get("estado"))
    return jsonify(order.to_dict())


@purchase_orders_bp.put("/<int:order_id>/deuda")
@json_errors
def record_order_debt_route(order_id: int):
    """Request body: {"deuda": 18500.00}"""
    data = json_payload()
    order = procurement_service.record_order_debt(get_repositories(), order_id, data.get("deuda"))
    return jsonify(order.to_dict())

# Overview: Flask API routes for suppliers (proveedores).

from flask import Blueprint, jsonify, request

from ..decorators import json_errors, json_payload
from ..repositories import get_repositories
from ..services import procurement_service


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/proveedores")


@suppliers_bp.get("/")
@json_errors
def list_suppliers_route():
    """
    Query parameters:
    - activos: "true" to hide inactive suppliers (default: false)

    Returns:
        Proveedor[]
    """
    active_only = request.args.get("activos", "false").lower() == "true"
    suppliers = procurement_service.list_suppliers(get_repositories(), include_inactive=not active_only)
    return jsonify([s.to_dict() for s in suppliers])


@suppliers_bp.post("/")
@json_errors
def create_supplier_route():
    """
    Request body:
    {
        "nombre": "Textiles Fashion SAC",  // required
        "contacto": "José Martínez",
        "telefono": "987654321",
        "activo": true
    }
    """
    data = json_payload()
    supplier = procurement_service.create_supplier(
        get_repositories(),
        name=data.get("nombre"),
        contact=data.get("contacto"),
        phone=data.get("telefono"),
        is_active=data.get("activo", True),
    )
    return jsonify(supplier.to_dict()), 201


@suppliers_bp.get("/<int:supplier_id>")
@json_errors
def get_supplier_route(supplier_id: int):
    supplier = get_repositories().suppliers.require(supplier_id)
    return jsonify(supplier.to_dict())


@suppliers_bp.patch("/<int:supplier_id>/activo")
@json_errors
def set_supplier_active_route(supplier_id: int):
    """Request body: {"activo": false}"""
    data = json_payload()
    supplier = procurement_service.set_supplier_active(
        get_repositories(), supplier_id, bool(data.get("activo", True))
    )
    return jsonify(supplier.to_dict())

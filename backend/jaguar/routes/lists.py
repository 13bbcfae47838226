# Overview: Flask API routes for curated lists (listas) and the public storefront.

"""
List Routes

STAFF:
- create / inspect lists, add and remove bundles
- activate / deactivate, publish the public link (enlace_publico)

PUBLIC (no staff context):
- GET  /listas/publico/<enlace>          DISPONIBLE members of an active list
- POST /listas/publico/<enlace>/pedido   self-checkout into an EMITIDA quotation
"""

from flask import Blueprint, jsonify, request

from ..decorators import json_errors, json_payload
from ..repositories import get_repositories
from ..services import catalog_service
from ..validation import parse_id_list


lists_bp = Blueprint("lists", __name__, url_prefix="/listas")


@lists_bp.get("/")
@json_errors
def list_lists_route():
    active_only = request.args.get("activas", "false").lower() == "true"
    catalogs = catalog_service.list_lists(get_repositories(), active_only=active_only)
    return jsonify([c.to_dict() for c in catalogs])


@lists_bp.get("/<int:list_id>")
@json_errors
def get_list_route(list_id: int):
    return jsonify(catalog_service.get_list(get_repositories(), list_id).to_dict())


@lists_bp.post("/")
@json_errors
def create_list_route():
    """Request body: {"nombre": "Lista VIP Verano", "tipo": "VIP" | "BASE"}"""
    data = json_payload()
    catalog = catalog_service.create_list(get_repositories(), name=data.get("nombre"), list_type=data.get("tipo"))
    return jsonify(catalog.to_dict()), 201


@lists_bp.post("/<int:list_id>/sacos/<int:bundle_id>")
@json_errors
def add_bundle_route(list_id: int, bundle_id: int):
    catalog = catalog_service.add_bundle_to_list(get_repositories(), list_id, bundle_id)
    return jsonify(catalog.to_dict())


@lists_bp.delete("/<int:list_id>/sacos/<int:bundle_id>")
@json_errors
def remove_bundle_route(list_id: int, bundle_id: int):
    catalog = catalog_service.remove_bundle_from_list(get_repositories(), list_id, bundle_id)
    return jsonify(catalog.to_dict())


@lists_bp.patch("/<int:list_id>/activar")
@json_errors
def activate_list_route(list_id: int):
    catalog = catalog_service.set_list_active(get_repositories(), list_id, True)
    return jsonify(catalog.to_dict())


@lists_bp.patch("/<int:list_id>/desactivar")
@json_errors
def deactivate_list_route(list_id: int):
    catalog = catalog_service.set_list_active(get_repositories(), list_id, False)
    return jsonify(catalog.to_dict())


@lists_bp.post("/<int:list_id>/enlace-publico")
@json_errors
def publish_list_route(list_id: int):
    """Assigns the share token on first call; later calls return the same one."""
    catalog = catalog_service.publish_share_token(get_repositories(), list_id)
    return jsonify(catalog.to_dict())


# =============================================================================
# PUBLIC STOREFRONT
# =============================================================================

@lists_bp.get("/publico/<string:token>")
@json_errors
def public_catalog_route(token: str):
    catalog, available = catalog_service.get_public_catalog(get_repositories(), token)
    data = catalog.to_dict(include_bundles=False)
    data["sacos"] = [bundle.to_dict() for bundle in available]
    return jsonify(data)


@lists_bp.post("/publico/<string:token>/pedido")
@json_errors
def public_checkout_route(token: str):
    """
    Request body:
    {
        "cliente_nombre": "Rosa Quispe",   // required
        "cliente_telefono": "987000111",
        "cliente_email": "rosa@example.com",
        "saco_ids": [1, 2]                 // members of this list, DISPONIBLE
    }

    Returns:
        201: tracking view of the new quotation (includes codigo_seguimiento)
    """
    data = json_payload()
    quotation = catalog_service.checkout_from_catalog(
        get_repositories(),
        token,
        customer_name=data.get("cliente_nombre"),
        customer_phone=data.get("cliente_telefono"),
        customer_email=data.get("cliente_email"),
        bundle_ids=parse_id_list(data.get("saco_ids", []), "saco_ids"),
    )
    return jsonify(quotation.to_public_dict()), 201

# Overview: Demo data for local development (suppliers, orders, bundles, a published list).

"""
Seeds the same small shop the frontend mock API shows: three suppliers, an
order in each of the first three states, a handful of tagged bundles and a
published VIP list. Goes through the services so both storage backends get
identical, valid data.
"""

from __future__ import annotations

from decimal import Decimal

from ..models import PurchaseOrderState
from ..repositories.base import Repositories
from . import catalog_service, inventory_service, procurement_service
from .lifecycle_service import next_purchase_order_state

DEMO_SUPPLIERS = [
    ("Textiles Fashion SAC", "José Martínez", "987654321"),
    ("Confecciones del Norte", "Ana Rodríguez", "987654322"),
    ("Moda Peruana EIRL", "Luis Fernández", "987654323"),
]

# (supplier index, target state, debt)
DEMO_ORDERS = [
    (0, PurchaseOrderState.RECEIVED, Decimal("18500.00")),
    (1, PurchaseOrderState.IN_TRANSIT, Decimal("7250.00")),
    (2, PurchaseOrderState.CREATED, Decimal("0")),
]

DEMO_BUNDLES = [
    ("CASUAL_HOMBRE", "VERANO", "HOMBRE", ["M", "L", "XL"], "Saco de polos y shorts casuales", "500.00"),
    ("CASUAL_MUJER", "VERANO", "MUJER", ["S", "M", "L"], "Saco de blusas y faldas de verano", "450.00"),
    ("DEPORTIVO_HOMBRE", "VERANO", "HOMBRE", ["M", "L"], "Saco de shorts y polos deportivos", "380.00"),
    ("INFANTIL_NINO", "INVIERNO", "NINO", ["4", "6", "8"], "Saco de casacas y buzos para niño", "320.00"),
    ("FORMAL_MUJER", "OTONO", "MUJER", ["S", "M"], "Saco de sacos y pantalones de vestir", "650.00"),
]


def seed_demo(repos: Repositories) -> dict:
    """Create the demo data unless suppliers already exist. Returns counts."""
    if repos.suppliers.find():
        return {"proveedores": 0, "pedidos": 0, "sacos": 0, "listas": 0}

    suppliers = [
        procurement_service.create_supplier(repos, name=name, contact=contact, phone=phone)
        for name, contact, phone in DEMO_SUPPLIERS
    ]

    orders = []
    for supplier_index, target, debt in DEMO_ORDERS:
        order = procurement_service.create_purchase_order(repos, supplier_id=suppliers[supplier_index].id)
        while order.state != target:
            successor = next_purchase_order_state(order.state)
            order = procurement_service.advance_purchase_order(repos, order.id, successor)
        procurement_service.record_order_debt(repos, order.id, debt)
        orders.append(order)

    bundles = [
        inventory_service.receive_bundle(
            repos,
            garment_type=garment_type,
            season=season,
            category=category,
            sizes=sizes,
            description=description,
            base_price=price,
            purchase_order_id=orders[0].id,
        )
        for garment_type, season, category, sizes, description, price in DEMO_BUNDLES
    ]
    # Leave the last one RECIBIDO so the tagging screen has work
    inventory_service.tag_bundles(repos, [bundle.id for bundle in bundles[:-1]])

    vip = catalog_service.create_list(repos, name="Lista VIP Verano", list_type="VIP")
    for bundle in bundles[:3]:
        catalog_service.add_bundle_to_list(repos, vip.id, bundle.id)
    catalog_service.publish_share_token(repos, vip.id)
    catalog_service.set_list_active(repos, vip.id, True)

    return {
        "proveedores": len(suppliers),
        "pedidos": len(orders),
        "sacos": len(bundles),
        "listas": 1,
    }

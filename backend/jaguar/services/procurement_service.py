# Overview: Suppliers and purchase orders; encapsulates procurement business rules.

"""
Procurement Service

Suppliers are reference data: created by procurement staff, deactivated but
never deleted. Purchase orders move CREADO -> EN_TRANSITO -> RECIBIDO ->
CERRADO one step at a time and are never deleted (audit trail).

The money an order is worth to the supplier (debt_amount) is not derived from
its bundles; accounting records it against the order and debt_service
aggregates it.
"""

from __future__ import annotations

from datetime import datetime

from ..errors import InvalidTransitionError, ValidationError
from ..models import PurchaseOrder, PurchaseOrderState, Supplier
from ..repositories.base import Repositories
from ..time_utils import utcnow
from .lifecycle_service import parse_state, require_transition
from .pricing_service import ZERO, round2, to_decimal


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def create_supplier(
    repos: Repositories,
    *,
    name: str,
    contact: str | None = None,
    phone: str | None = None,
    is_active: bool = True,
) -> Supplier:
    """
    Register a supplier.

    Raises:
        ValidationError: name missing or blank
    """
    name = _clean_text(name)
    if not name:
        raise ValidationError("Supplier name is required", details={"field": "nombre"})

    def _op():
        supplier = Supplier(
            name=name,
            contact=_clean_text(contact),
            phone=_clean_text(phone),
            is_active=bool(is_active),
            created_at=utcnow(),
        )
        return repos.suppliers.add(supplier)

    return repos.run(_op)


def list_suppliers(repos: Repositories, *, include_inactive: bool = True) -> list[Supplier]:
    if include_inactive:
        return repos.suppliers.find()
    return repos.suppliers.find(is_active=True)


def set_supplier_active(repos: Repositories, supplier_id: int, is_active: bool) -> Supplier:
    def _op():
        supplier = repos.suppliers.require(supplier_id, for_update=True)
        supplier.is_active = bool(is_active)
        return supplier

    return repos.run(_op)


def create_purchase_order(
    repos: Repositories,
    *,
    supplier_id: int,
    estimated_delivery_at: datetime | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> PurchaseOrder:
    """
    Open a purchase order in CREADO.

    Raises:
        NotFoundError: supplier does not exist
        ValidationError: supplier is inactive
    """
    now = now or utcnow()

    def _op():
        supplier = repos.suppliers.require(supplier_id)
        if not supplier.is_active:
            raise ValidationError(
                f"Supplier {supplier_id} is not active",
                details={"proveedor_id": supplier_id},
            )

        order = PurchaseOrder(
            supplier_id=supplier.id,
            supplier=supplier,
            ordered_at=now,
            estimated_delivery_at=estimated_delivery_at,
            state=PurchaseOrderState.CREATED,
            notes=_clean_text(notes),
            debt_amount=ZERO,
            created_at=now,
        )
        return repos.purchase_orders.add(order)

    return repos.run(_op)


def list_purchase_orders(
    repos: Repositories,
    *,
    state: PurchaseOrderState | str | None = None,
    supplier_id: int | None = None,
) -> list[PurchaseOrder]:
    criteria = {}
    if state is not None:
        criteria["state"] = parse_state(PurchaseOrderState, state)
    if supplier_id is not None:
        criteria["supplier_id"] = supplier_id
    return repos.purchase_orders.find(**criteria)


def advance_purchase_order(
    repos: Repositories,
    order_id: int,
    target_state: PurchaseOrderState | str,
) -> PurchaseOrder:
    """
    Move an order to its next state.

    The target is explicit (the UI sends the state it expects to reach) so a
    stale screen cannot skip a step: the target must be the direct successor.

    Raises:
        NotFoundError: order does not exist
        InvalidTransitionError: target is not the next state
    """
    target = parse_state(PurchaseOrderState, target_state)

    def _op():
        order = repos.purchase_orders.require(order_id, for_update=True)
        require_transition("purchase order", order.id, order.state, target)
        order.state = target
        return order

    return repos.run(_op)


def record_order_debt(repos: Repositories, order_id: int, amount) -> PurchaseOrder:
    """
    Store the debt amount accounting attributes to an order.

    Raises:
        ValidationError: negative amount
        InvalidTransitionError: order already CERRADO (its debt is settled)
    """
    value = round2(to_decimal(amount, "deuda"))
    if value < ZERO:
        raise ValidationError("Debt amount cannot be negative", details={"field": "deuda"})

    def _op():
        order = repos.purchase_orders.require(order_id, for_update=True)
        if order.state == PurchaseOrderState.CLOSED:
            raise InvalidTransitionError(
                f"Purchase order {order_id} is closed; its debt can no longer change",
                details={"id": order_id, "estado": order.state.value},
            )
        order.debt_amount = value
        return order

    return repos.run(_op)

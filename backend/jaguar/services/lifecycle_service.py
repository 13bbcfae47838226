# Overview: Transition tables for the purchase order, bundle and quotation state machines.

"""
Jaguar Lifecycle Rules

================================================================================
PURPOSE: One place that says which state changes are legal
================================================================================

PURCHASE ORDER:
    CREADO -> EN_TRANSITO -> RECIBIDO -> CERRADO

INVENTORY BUNDLE:
    RECIBIDO -> DISPONIBLE -> RESERVADO -> VENDIDO
    RESERVADO -> DISPONIBLE        (reservation expired / quotation deleted)

QUOTATION:
    EMITIDA -> RESERVA -> PAGADA -> DESPACHADA
    RESERVA -> VENCIDA             (terminal)

RULES (NON-NEGOTIABLE):
1. No transition skips a state.
2. No transition goes backwards, except the bundle RESERVADO -> DISPONIBLE release.
3. Terminal states (CERRADO, VENDIDO, DESPACHADA, VENCIDA) have no successors.

Callers that move an entity call require_transition() before touching its
state. The services decide *when* a transition happens; this module only
decides *whether* it may.
================================================================================
"""

from __future__ import annotations

from enum import Enum

from ..errors import InvalidTransitionError
from ..models import BundleState, PurchaseOrderState, QuotationState


PURCHASE_ORDER_TRANSITIONS: dict[PurchaseOrderState, frozenset[PurchaseOrderState]] = {
    PurchaseOrderState.CREATED: frozenset({PurchaseOrderState.IN_TRANSIT}),
    PurchaseOrderState.IN_TRANSIT: frozenset({PurchaseOrderState.RECEIVED}),
    PurchaseOrderState.RECEIVED: frozenset({PurchaseOrderState.CLOSED}),
    PurchaseOrderState.CLOSED: frozenset(),
}

BUNDLE_TRANSITIONS: dict[BundleState, frozenset[BundleState]] = {
    BundleState.RECEIVED: frozenset({BundleState.AVAILABLE}),
    BundleState.AVAILABLE: frozenset({BundleState.RESERVED}),
    BundleState.RESERVED: frozenset({BundleState.SOLD, BundleState.AVAILABLE}),
    BundleState.SOLD: frozenset(),
}

QUOTATION_TRANSITIONS: dict[QuotationState, frozenset[QuotationState]] = {
    QuotationState.ISSUED: frozenset({QuotationState.RESERVED}),
    QuotationState.RESERVED: frozenset({QuotationState.PAID, QuotationState.EXPIRED}),
    QuotationState.PAID: frozenset({QuotationState.DISPATCHED}),
    QuotationState.EXPIRED: frozenset(),
    QuotationState.DISPATCHED: frozenset(),
}

_TABLES = {
    PurchaseOrderState: PURCHASE_ORDER_TRANSITIONS,
    BundleState: BUNDLE_TRANSITIONS,
    QuotationState: QUOTATION_TRANSITIONS,
}


def parse_state(enum_cls: type[Enum], value) -> Enum:
    """
    Turn a wire string (or member) into a member of enum_cls.

    Raises:
        InvalidTransitionError: value names no state of that machine
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidTransitionError(
            f"Invalid state '{value}'. Must be one of: {allowed}",
            details={"state": value},
        )


def can_transition(from_state: Enum, to_state: Enum) -> bool:
    """True when to_state is a legal direct successor of from_state."""
    table = _TABLES[type(from_state)]
    return to_state in table[from_state]


def require_transition(entity: str, entity_id, from_state: Enum, to_state: Enum) -> None:
    if not can_transition(from_state, to_state):
        raise InvalidTransitionError(
            f"Cannot move {entity} {entity_id} from '{from_state.value}' to '{to_state.value}'",
            details={"id": entity_id, "from": from_state.value, "to": to_state.value},
        )


def next_purchase_order_state(state: PurchaseOrderState) -> PurchaseOrderState | None:
    """The single forward successor of an order state (None once CERRADO)."""
    successors = PURCHASE_ORDER_TRANSITIONS[state]
    return next(iter(successors), None)

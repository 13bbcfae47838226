# Overview: Reception, tagging and state changes of inventory bundles (sacos).

"""
Inventory Service

RECEPTION: warehouse staff register each bundle as it comes off a supplier
order. The bundle starts RECIBIDO and gets its scan code (SACO-000123) as soon
as it has an id.

TAGGING: once the QR tag is printed and attached the bundle becomes
DISPONIBLE and may be listed and quoted.

RESERVATION: quotation_service claims and releases bundles through the
*_locked helpers below. They run inside the caller's unit of work and never
commit on their own.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable

from ..errors import BundleUnavailableError, InvalidTransitionError, NotFoundError, ValidationError
from ..models import (
    BundleState, Category, GarmentType, InventoryBundle, PurchaseOrderState, Season,
)
from ..repositories.base import Repositories
from ..time_utils import utcnow
from ..validation import optional_text, parse_enum, parse_sizes, require_text
from .identifier_service import scan_code_for
from .lifecycle_service import can_transition, parse_state, require_transition
from .pricing_service import ZERO, round2, to_decimal

# Orders that can still have bundles received against them
RECEIVABLE_ORDER_STATES = (PurchaseOrderState.IN_TRANSIT, PurchaseOrderState.RECEIVED)

EDITABLE_FIELDS = {"garment_type", "season", "category", "sizes", "description", "base_price", "notes"}


def _validate_base_price(value) -> Decimal:
    price = round2(to_decimal(value, "precio_base"))
    if price <= ZERO:
        raise ValidationError("precio_base must be greater than 0", details={"field": "precio_base"})
    return price


def receive_bundle(
    repos: Repositories,
    *,
    garment_type,
    season,
    category,
    sizes,
    description: str,
    base_price,
    purchase_order_id: int | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> InventoryBundle:
    """
    Register a bundle in RECIBIDO and assign its scan code.

    Raises:
        ValidationError: bad tags, empty sizes, blank description, price <= 0
        NotFoundError: purchase order does not exist
        InvalidTransitionError: order is not EN_TRANSITO or RECIBIDO
    """
    values = {
        "garment_type": parse_enum(GarmentType, garment_type, "tipo"),
        "season": parse_enum(Season, season, "temporada"),
        "category": parse_enum(Category, category, "categoria"),
        "sizes": parse_sizes(sizes),
        "description": require_text(description, "descripcion_contenido"),
        "base_price": _validate_base_price(base_price),
        "notes": optional_text(notes, "observaciones"),
    }
    now = now or utcnow()

    def _op():
        order = None
        if purchase_order_id is not None:
            order = repos.purchase_orders.require(purchase_order_id)
            if order.state not in RECEIVABLE_ORDER_STATES:
                raise InvalidTransitionError(
                    f"Cannot receive bundles for purchase order {order.id} in state '{order.state.value}'",
                    details={"pedido_id": order.id, "estado": order.state.value},
                )

        bundle = InventoryBundle(
            purchase_order_id=order.id if order else None,
            purchase_order=order,
            state=BundleState.RECEIVED,
            created_at=now,
            **values,
        )
        repos.bundles.add(bundle)
        bundle.scan_code = scan_code_for(bundle.id)
        return bundle

    return repos.run(_op)


def update_bundle(
    repos: Repositories,
    bundle_id: int,
    changes: dict,
    *,
    now: datetime | None = None,
) -> InventoryBundle:
    """
    Edit descriptive fields and the base price.

    The scan code and the state are not editable here; sold bundles are
    read-only. Quotations keep the price they snapshotted.
    """
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(
            f"Fields not editable: {', '.join(sorted(unknown))}",
            details={"fields": sorted(unknown)},
        )

    parsers = {
        "garment_type": lambda v: parse_enum(GarmentType, v, "tipo"),
        "season": lambda v: parse_enum(Season, v, "temporada"),
        "category": lambda v: parse_enum(Category, v, "categoria"),
        "sizes": parse_sizes,
        "description": lambda v: require_text(v, "descripcion_contenido"),
        "base_price": _validate_base_price,
        "notes": lambda v: optional_text(v, "observaciones"),
    }
    parsed = {field: parsers[field](value) for field, value in changes.items()}
    now = now or utcnow()

    def _op():
        bundle = repos.bundles.require(bundle_id, for_update=True)
        if bundle.state == BundleState.SOLD:
            raise InvalidTransitionError(
                f"Bundle {bundle_id} is sold and can no longer be edited",
                details={"id": bundle_id, "estado": bundle.state.value},
            )
        for field, value in parsed.items():
            setattr(bundle, field, value)
        bundle.updated_at = now
        return bundle

    return repos.run(_op)


def tag_bundles(repos: Repositories, bundle_ids: Iterable[int], *, now: datetime | None = None) -> list[InventoryBundle]:
    """
    Mark tagged bundles DISPONIBLE (RECIBIDO -> DISPONIBLE), all or none.

    Raises:
        ValidationError: no ids given
        NotFoundError: any id unknown
        InvalidTransitionError: any bundle not RECIBIDO (lists offenders)
    """
    wanted = list(dict.fromkeys(bundle_ids))
    if not wanted:
        raise ValidationError("At least one bundle id is required", details={"field": "saco_ids"})
    now = now or utcnow()

    def _op():
        bundles = _require_bundles_locked(repos, wanted)
        not_received = [b.id for b in bundles if b.state != BundleState.RECEIVED]
        if not_received:
            raise InvalidTransitionError(
                "Only RECIBIDO bundles can be tagged",
                details={"saco_ids": not_received},
            )
        for bundle in bundles:
            bundle.state = BundleState.AVAILABLE
            bundle.updated_at = now
        return bundles

    return repos.run(_op)


def tag_bundle(repos: Repositories, bundle_id: int, *, now: datetime | None = None) -> InventoryBundle:
    return tag_bundles(repos, [bundle_id], now=now)[0]


def get_bundle_by_scan_code(repos: Repositories, scan_code: str) -> InventoryBundle:
    code = (scan_code or "").strip().upper()
    bundle = repos.bundles.get_by_scan_code(code)
    if bundle is None:
        raise NotFoundError(f"No bundle with scan code '{scan_code}'", details={"qr_code": scan_code})
    return bundle


def list_bundles(
    repos: Repositories,
    *,
    state=None,
    garment_type=None,
    season=None,
    category=None,
    purchase_order_id: int | None = None,
) -> list[InventoryBundle]:
    criteria = {}
    if state is not None:
        criteria["state"] = parse_state(BundleState, state)
    if garment_type is not None:
        criteria["garment_type"] = parse_enum(GarmentType, garment_type, "tipo")
    if season is not None:
        criteria["season"] = parse_enum(Season, season, "temporada")
    if category is not None:
        criteria["category"] = parse_enum(Category, category, "categoria")
    if purchase_order_id is not None:
        criteria["purchase_order_id"] = purchase_order_id
    return repos.bundles.find(**criteria)


def count_available(repos: Repositories) -> int:
    return len(repos.bundles.find(state=BundleState.AVAILABLE))


# =============================================================================
# Helpers for quotation_service (run inside the caller's unit of work)
# =============================================================================

def _require_bundles_locked(repos: Repositories, bundle_ids: list[int]) -> list[InventoryBundle]:
    bundles = repos.bundles.get_many_for_update(bundle_ids)
    found = {b.id for b in bundles}
    missing = [bundle_id for bundle_id in bundle_ids if bundle_id not in found]
    if missing:
        raise NotFoundError("Bundles not found", details={"saco_ids": missing})
    return bundles


def claim_bundles_locked(repos: Repositories, bundle_ids: list[int]) -> list[InventoryBundle]:
    """
    Compare-and-swap every bundle DISPONIBLE -> RESERVADO.

    All bundles are checked before any is changed: if one is not DISPONIBLE
    the whole claim fails and nothing moves.
    """
    bundles = _require_bundles_locked(repos, bundle_ids)
    unavailable = [b.id for b in bundles if b.state != BundleState.AVAILABLE]
    if unavailable:
        raise BundleUnavailableError(
            "Some bundles are no longer available",
            details={"saco_ids": unavailable},
        )
    for bundle in bundles:
        bundle.state = BundleState.RESERVED
    return bundles


def move_bundles_locked(
    repos: Repositories,
    bundle_ids: list[int],
    target: BundleState,
    *,
    skip_illegal: bool = False,
) -> list[InventoryBundle]:
    """
    Move reserved bundles on (RESERVADO -> VENDIDO / DISPONIBLE).

    skip_illegal leaves bundles that cannot make the move where they are
    instead of failing; releases use it so a bundle that already left
    RESERVADO does not block an expiry.
    """
    bundles = _require_bundles_locked(repos, bundle_ids)
    movable = []
    for bundle in bundles:
        if can_transition(bundle.state, target):
            movable.append(bundle)
        elif not skip_illegal:
            require_transition("bundle", bundle.id, bundle.state, target)
    for bundle in movable:
        bundle.state = target
    return movable

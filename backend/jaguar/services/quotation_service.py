# Overview: Quotation (proforma) lifecycle: issue, reserve, reprice, expire, dispatch, delete, track.

"""
Quotation Service

================================================================================
LIFECYCLE
================================================================================

    issue_quotation        -> EMITIDA   (prices frozen, bundles untouched)
    reserve_quotation      EMITIDA  -> RESERVA   (bundles DISPONIBLE -> RESERVADO)
    payment_service        RESERVA  -> PAGADA    (bundles RESERVADO -> VENDIDO)
    expire_quotation       RESERVA  -> VENCIDA   (bundles RESERVADO -> DISPONIBLE)
    dispatch_quotations    PAGADA   -> DESPACHADA (batch, all or none)

Every mutation is one unit of work (Repositories.run). Reads that decide a
transition happen inside that unit of work on locked rows, so an expiry that
races a payment observes PAGADA and does nothing.

PRICES: unit prices are snapshots. A later change to a bundle's base price
never changes an issued quotation; totals are recomputed only from the
quotation's own lines and discounts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Mapping

from ..errors import (
    EmptyQuotationError, InvalidTransitionError, LedgerError, NotFoundError, ValidationError,
)
from ..models import BundleState, CatalogList, Quotation, QuotationLine, QuotationState
from ..repositories.base import Repositories
from ..time_utils import utcnow
from ..validation import optional_text, require_text
from .identifier_service import generate_unique, new_tracking_code, normalize_tracking_code
from .inventory_service import claim_bundles_locked, move_bundles_locked
from .lifecycle_service import parse_state, require_transition
from .payment_service import settle_quotation_locked
from .pricing_service import QuotationTotals, ZERO, compute_totals, validate_percentage

logger = logging.getLogger(__name__)

DEFAULT_RESERVATION_WINDOW = timedelta(days=7)

# States in which discounts may still change
REPRICEABLE_STATES = (QuotationState.ISSUED, QuotationState.RESERVED)


@dataclass(frozen=True)
class LineRequest:
    """One requested line; unit_price None means "the bundle's base price now"."""
    bundle_id: int
    unit_price: Decimal | None = None
    line_discount: Decimal | int = 0


def check_lines(lines: Iterable[LineRequest]) -> list[LineRequest]:
    requested = list(lines)
    if not requested:
        raise EmptyQuotationError("A quotation needs at least one line")

    seen: set[int] = set()
    duplicates = []
    for line in requested:
        if line.bundle_id in seen:
            duplicates.append(line.bundle_id)
        seen.add(line.bundle_id)
    if duplicates:
        raise ValidationError(
            "A bundle can appear only once per quotation",
            details={"saco_ids": sorted(set(duplicates))},
        )
    return requested


def _load_bundles(repos: Repositories, bundle_ids: list[int]) -> list:
    bundles = [repos.bundles.get(bundle_id) for bundle_id in bundle_ids]
    missing = [bundle_id for bundle_id, bundle in zip(bundle_ids, bundles) if bundle is None]
    if missing:
        raise NotFoundError("Bundles not found", details={"saco_ids": missing})
    return bundles


def _price(repos: Repositories, lines: list[LineRequest], global_discount) -> tuple[list, QuotationTotals]:
    bundles = _load_bundles(repos, [line.bundle_id for line in lines])
    totals = compute_totals(
        (
            (line.unit_price if line.unit_price is not None else bundle.base_price, line.line_discount)
            for line, bundle in zip(lines, bundles)
        ),
        global_discount,
    )
    return bundles, totals


def issue_quotation_locked(
    repos: Repositories,
    *,
    customer_name: str,
    lines: list[LineRequest],
    global_discount=ZERO,
    customer_phone: str | None = None,
    customer_email: str | None = None,
    source_list: CatalogList | None = None,
    now: datetime,
) -> Quotation:
    """Build and add an EMITIDA quotation inside the caller's unit of work."""
    bundles, totals = _price(repos, lines, global_discount)

    tracking_code = generate_unique(
        new_tracking_code,
        lambda code: repos.quotations.get_by_tracking_code(code) is not None,
        label="tracking code",
    )

    quotation = Quotation(
        tracking_code=tracking_code,
        source_list_id=source_list.id if source_list else None,
        source_list=source_list,
        customer_name=customer_name,
        customer_phone=customer_phone,
        customer_email=customer_email,
        state=QuotationState.ISSUED,
        global_discount=totals.global_discount,
        original_total=totals.original_total,
        final_total=totals.final_total,
        expires_at=None,
        paid_at=None,
        dispatched_at=None,
        created_at=now,
    )
    for position, (bundle, priced) in enumerate(zip(bundles, totals.lines)):
        quotation.lines.append(QuotationLine(
            bundle_id=bundle.id,
            bundle=bundle,
            position=position,
            unit_price=priced.unit_price,
            line_discount=priced.line_discount,
            subtotal=priced.subtotal,
        ))
    return repos.quotations.add(quotation)


def issue_quotation(
    repos: Repositories,
    *,
    customer_name: str,
    lines: Iterable[LineRequest],
    global_discount=ZERO,
    customer_phone: str | None = None,
    customer_email: str | None = None,
    source_list_id: int | None = None,
    now: datetime | None = None,
) -> Quotation:
    """
    Create an EMITIDA quotation with frozen prices and computed totals.

    Bundle states are not touched; availability is enforced on reserve.

    Raises:
        EmptyQuotationError: no lines
        ValidationError: duplicate bundle, missing customer name
        NotFoundError: unknown bundle or source list
        InvalidDiscountError: discount outside [0, 100] or unit_price <= 0
        DuplicateTokenError: no free tracking code after retries
    """
    requested = check_lines(lines)
    name = require_text(customer_name, "cliente_nombre")
    phone = optional_text(customer_phone, "cliente_telefono")
    email = optional_text(customer_email, "cliente_email")
    now = now or utcnow()

    def _op():
        source_list = repos.lists.require(source_list_id) if source_list_id is not None else None
        return issue_quotation_locked(
            repos,
            customer_name=name,
            lines=requested,
            global_discount=global_discount,
            customer_phone=phone,
            customer_email=email,
            source_list=source_list,
            now=now,
        )

    quotation = repos.run(_op, retry_on_conflict=True)
    logger.info("Issued quotation %s (%s) total=%s", quotation.id, quotation.tracking_code, quotation.final_total)
    return quotation


def preview_totals(repos: Repositories, lines: Iterable[LineRequest], global_discount=ZERO) -> QuotationTotals:
    """Price lines exactly as issue would, persisting nothing."""
    requested = check_lines(lines)
    _, totals = _price(repos, requested, global_discount)
    return totals


def get_quotation(repos: Repositories, quotation_id: int) -> Quotation:
    return repos.quotations.require(quotation_id)


def list_quotations(repos: Repositories, *, state=None) -> list[Quotation]:
    if state is None:
        return repos.quotations.find()
    return repos.quotations.find(state=parse_state(QuotationState, state))


def reserve_quotation(
    repos: Repositories,
    quotation_id: int,
    *,
    window: timedelta = DEFAULT_RESERVATION_WINDOW,
    now: datetime | None = None,
) -> Quotation:
    """
    EMITIDA -> RESERVA, claiming every bundle or none.

    Raises:
        NotFoundError: quotation does not exist
        InvalidTransitionError: quotation is not EMITIDA
        BundleUnavailableError: some bundle is not DISPONIBLE (ids in details)
    """
    now = now or utcnow()

    def _op():
        quotation = repos.quotations.require(quotation_id, for_update=True)
        require_transition("quotation", quotation.id, quotation.state, QuotationState.RESERVED)
        claim_bundles_locked(repos, quotation.bundle_ids)
        quotation.state = QuotationState.RESERVED
        quotation.expires_at = now + window
        return quotation

    quotation = repos.run(_op)
    logger.info("Reserved quotation %s until %s", quotation.id, quotation.expires_at)
    return quotation


def update_quotation_pricing(
    repos: Repositories,
    quotation_id: int,
    *,
    global_discount=None,
    line_discounts: Mapping[int, object] | None = None,
    now: datetime | None = None,
) -> Quotation:
    """
    Change the global and/or per-line discounts and recompute totals.

    line_discounts maps bundle id -> percentage. Unit prices stay frozen.
    A reserved quotation whose payments already cover the new total is
    settled (PAGADA, bundles VENDIDO) in the same unit of work.

    Raises:
        InvalidTransitionError: quotation is PAGADA, DESPACHADA or VENCIDA
        ValidationError: a bundle id that is not on the quotation
        InvalidDiscountError: percentage outside [0, 100]
    """
    line_discounts = dict(line_discounts or {})
    if global_discount is not None:
        validate_percentage(global_discount, "global_discount")
    now = now or utcnow()

    def _op():
        quotation = repos.quotations.require(quotation_id, for_update=True)
        if quotation.state not in REPRICEABLE_STATES:
            raise InvalidTransitionError(
                f"Quotation {quotation.id} is '{quotation.state.value}'; its pricing is frozen",
                details={"id": quotation.id, "estado": quotation.state.value},
            )

        unknown = [bundle_id for bundle_id in line_discounts if bundle_id not in quotation.bundle_ids]
        if unknown:
            raise ValidationError(
                "Bundles are not on this quotation",
                details={"saco_ids": unknown},
            )

        totals = compute_totals(
            (
                (line.unit_price, line_discounts.get(line.bundle_id, line.line_discount))
                for line in quotation.lines
            ),
            quotation.global_discount if global_discount is None else global_discount,
        )
        for line, priced in zip(quotation.lines, totals.lines):
            line.line_discount = priced.line_discount
            line.subtotal = priced.subtotal
        quotation.global_discount = totals.global_discount
        quotation.original_total = totals.original_total
        quotation.final_total = totals.final_total
        settle_quotation_locked(repos, quotation, repos.payments.total_for_quotation(quotation.id), now)
        return quotation

    return repos.run(_op)


def expire_quotation(repos: Repositories, quotation_id: int, *, now: datetime | None = None) -> bool:
    """
    RESERVA -> VENCIDA once the reservation window has passed.

    Returns True when the quotation expired now. Returns False (and changes
    nothing) when it is already PAGADA or later, already VENCIDA, or still
    inside its window.

    Raises:
        InvalidTransitionError: quotation is still EMITIDA
    """
    now = now or utcnow()

    def _op():
        quotation = repos.quotations.require(quotation_id, for_update=True)
        if quotation.state in (QuotationState.PAID, QuotationState.DISPATCHED, QuotationState.EXPIRED):
            return False
        require_transition("quotation", quotation.id, quotation.state, QuotationState.EXPIRED)
        if quotation.expires_at is None or now <= quotation.expires_at:
            return False

        move_bundles_locked(repos, quotation.bundle_ids, BundleState.AVAILABLE, skip_illegal=True)
        quotation.state = QuotationState.EXPIRED
        return True

    return repos.run(_op)


def sweep_expired_reservations(repos: Repositories, *, now: datetime | None = None) -> list[int]:
    """
    Expire every RESERVA quotation past its window.

    Each quotation is its own unit of work: one failure is logged and the
    sweep moves on. Returns the ids that expired.
    """
    now = now or utcnow()
    candidates = [quotation.id for quotation in repos.quotations.find_expired_reservations(now)]

    expired = []
    for quotation_id in candidates:
        try:
            if expire_quotation(repos, quotation_id, now=now):
                expired.append(quotation_id)
        except LedgerError as exc:
            logger.warning("Could not expire quotation %s: %s", quotation_id, exc.message)

    if expired:
        logger.info("Expired %d reservation(s): %s", len(expired), expired)
    return expired


def reservations_expiring_within(
    repos: Repositories,
    window: timedelta,
    *,
    now: datetime | None = None,
) -> list[Quotation]:
    now = now or utcnow()
    return repos.quotations.find_reservations_expiring_between(now, now + window)


def dispatch_quotations(
    repos: Repositories,
    quotation_ids: Iterable[int],
    *,
    now: datetime | None = None,
) -> list[Quotation]:
    """
    PAGADA -> DESPACHADA for a whole batch, or for none of it.

    Returns the dispatch manifest: the quotations in the order requested.

    Raises:
        ValidationError: empty batch
        NotFoundError: unknown ids (listed in details)
        InvalidTransitionError: ids not PAGADA (listed in details)
    """
    wanted = list(dict.fromkeys(quotation_ids))
    if not wanted:
        raise ValidationError("At least one quotation id is required", details={"field": "proforma_ids"})
    now = now or utcnow()

    def _op():
        # Lock in id order; answer in request order
        locked = {quotation_id: repos.quotations.get_for_update(quotation_id) for quotation_id in sorted(wanted)}
        missing = [quotation_id for quotation_id in wanted if locked[quotation_id] is None]
        if missing:
            raise NotFoundError("Quotations not found", details={"proforma_ids": missing})

        not_paid = [quotation_id for quotation_id in wanted if locked[quotation_id].state != QuotationState.PAID]
        if not_paid:
            raise InvalidTransitionError(
                "Only PAGADA quotations can be dispatched",
                details={"proforma_ids": not_paid},
            )

        manifest = [locked[quotation_id] for quotation_id in wanted]
        for quotation in manifest:
            quotation.state = QuotationState.DISPATCHED
            quotation.dispatched_at = now
        return manifest

    manifest = repos.run(_op)
    logger.info("Dispatched %d quotation(s): %s", len(manifest), wanted)
    return manifest


def delete_quotation(repos: Repositories, quotation_id: int) -> None:
    """
    Remove a quotation that has no payments, releasing reserved bundles.

    Raises:
        NotFoundError: quotation does not exist
        InvalidTransitionError: payments exist against it
    """
    def _op():
        quotation = repos.quotations.require(quotation_id, for_update=True)
        if repos.payments.exists_for_quotation(quotation.id):
            raise InvalidTransitionError(
                f"Quotation {quotation.id} has payments and cannot be deleted",
                details={"id": quotation.id},
            )
        if quotation.state == QuotationState.RESERVED:
            move_bundles_locked(repos, quotation.bundle_ids, BundleState.AVAILABLE, skip_illegal=True)
        repos.quotations.delete(quotation)

    repos.run(_op)
    logger.info("Deleted quotation %s", quotation_id)


def track_quotation(repos: Repositories, code: str) -> Quotation:
    """Public lookup by tracking code (case and spaces ignored)."""
    normalized = normalize_tracking_code(code or "")
    quotation = repos.quotations.get_by_tracking_code(normalized) if normalized else None
    if quotation is None:
        raise NotFoundError("No quotation with that tracking code", details={"codigo": code})
    return quotation

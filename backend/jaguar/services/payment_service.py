# Overview: Append-only payment ledger per quotation and the PAGADA transition it drives.

"""
Payment Service

LEDGER RULES:
- Payments are appended, never edited or deleted.
- A payment needs an existing quotation in RESERVA or PAGADA; money is never
  taken against a quotation that holds no bundles.
- When the running total reaches final_total the quotation moves to PAGADA
  and its bundles to VENDIDO, in the same unit of work as the payment.
- Paying more than the total is accepted and flagged (is_overpaid);
  reconciliation staff resolve it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from ..errors import InvalidTransitionError, ValidationError
from ..models import BundleState, Payment, PaymentMethod, QuotationState
from ..repositories.base import Repositories
from ..time_utils import utcnow
from ..validation import optional_text, parse_enum
from .inventory_service import move_bundles_locked
from .lifecycle_service import require_transition
from .pricing_service import ZERO, round2, to_decimal

logger = logging.getLogger(__name__)

PAYABLE_STATES = (QuotationState.RESERVED, QuotationState.PAID)


def record_payment(
    repos: Repositories,
    quotation_id: int,
    *,
    amount,
    method,
    voucher_ref: str | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> Payment:
    """
    Append a payment; settle the quotation when fully paid.

    Raises:
        ValidationError: amount <= 0 or unknown method
        NotFoundError: quotation does not exist
        InvalidTransitionError: quotation is EMITIDA, VENCIDA or DESPACHADA
    """
    value = round2(to_decimal(amount, "monto"))
    if value <= ZERO:
        raise ValidationError("Payment amount must be greater than 0", details={"field": "monto"})
    payment_method = parse_enum(PaymentMethod, method, "metodo_pago")
    voucher_ref = optional_text(voucher_ref, "voucher_url")
    notes = optional_text(notes, "observaciones")
    now = now or utcnow()

    def _op():
        quotation = repos.quotations.require(quotation_id, for_update=True)
        if quotation.state not in PAYABLE_STATES:
            raise InvalidTransitionError(
                f"Cannot record a payment against a '{quotation.state.value}' quotation",
                details={"id": quotation.id, "estado": quotation.state.value},
            )

        payment = Payment(
            quotation_id=quotation.id,
            amount=value,
            method=payment_method,
            voucher_ref=voucher_ref,
            notes=notes,
            created_at=now,
        )
        # Settlement can still fail on bundle state; nothing is written until it passes
        paid = repos.payments.total_for_quotation(quotation.id) + value
        settle_quotation_locked(repos, quotation, paid, now)
        repos.payments.add(payment)
        return payment

    return repos.run(_op)


def settle_quotation_locked(repos: Repositories, quotation, paid: Decimal, now: datetime) -> bool:
    """
    RESERVA -> PAGADA (bundles -> VENDIDO) once paid covers final_total.

    Runs inside the caller's unit of work; the caller holds the quotation
    lock. Returns True when the quotation settled.
    """
    if quotation.state != QuotationState.RESERVED or paid < quotation.final_total:
        return False
    require_transition("quotation", quotation.id, quotation.state, QuotationState.PAID)
    move_bundles_locked(repos, quotation.bundle_ids, BundleState.SOLD)
    quotation.state = QuotationState.PAID
    quotation.paid_at = now
    logger.info("Quotation %s fully paid (%s of %s)", quotation.id, paid, quotation.final_total)
    return True


def list_payments(repos: Repositories, quotation_id: int) -> list[Payment]:
    repos.quotations.require(quotation_id)
    return repos.payments.list_for_quotation(quotation_id)


def outstanding_balance(repos: Repositories, quotation_id: int) -> Decimal:
    """max(0, final_total - sum of payments)"""
    quotation = repos.quotations.require(quotation_id)
    paid = repos.payments.total_for_quotation(quotation.id)
    return max(ZERO, quotation.final_total - paid)


def is_overpaid(repos: Repositories, quotation_id: int) -> bool:
    quotation = repos.quotations.require(quotation_id)
    return repos.payments.total_for_quotation(quotation.id) > quotation.final_total


@dataclass(frozen=True)
class PaymentSummary:
    quotation_id: int
    total: Decimal
    paid: Decimal
    outstanding: Decimal
    overpaid: bool
    payments: tuple[Payment, ...]

    def to_dict(self) -> dict:
        return {
            "proforma_id": self.quotation_id,
            "total": float(self.total),
            "pagado": float(self.paid),
            "saldo": float(self.outstanding),
            "sobrepago": self.overpaid,
            "pagos": [payment.to_dict() for payment in self.payments],
        }


def payment_summary(repos: Repositories, quotation_id: int) -> PaymentSummary:
    quotation = repos.quotations.require(quotation_id)
    payments = tuple(repos.payments.list_for_quotation(quotation.id))
    paid = sum((payment.amount for payment in payments), ZERO)
    return PaymentSummary(
        quotation_id=quotation.id,
        total=quotation.final_total,
        paid=paid,
        outstanding=max(ZERO, quotation.final_total - paid),
        overpaid=paid > quotation.final_total,
        payments=payments,
    )

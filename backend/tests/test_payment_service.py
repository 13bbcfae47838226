# Overview: Pytest coverage for the append-only payment ledger and the PAGADA transition.

from datetime import timedelta
from decimal import Decimal

import pytest

from jaguar.errors import InvalidTransitionError, NotFoundError, ValidationError
from jaguar.models import BundleState, PaymentMethod, QuotationState
from jaguar.services import payment_service, quotation_service


@pytest.fixture
def reserved(factory):
    """RESERVA quotation worth 902.50 over two bundles."""
    bundles = factory.bundles(2)
    quotation = factory.quotation(bundles, discounts=[0, 10], global_discount=5, reserve=True)
    return quotation, bundles


class TestRecordPayment:
    def test_partial_payment_keeps_reservation(self, repos, reserved, t0):
        quotation, bundles = reserved

        payment = payment_service.record_payment(repos, quotation.id, amount="400.00", method="YAPE", now=t0)

        assert payment.amount == Decimal("400.00")
        assert payment.method == PaymentMethod.YAPE
        assert repos.quotations.get(quotation.id).state == QuotationState.RESERVED
        assert payment_service.outstanding_balance(repos, quotation.id) == Decimal("502.50")
        assert [repos.bundles.get(b.id).state for b in bundles] == [BundleState.RESERVED] * 2

    def test_full_payment_settles_quotation(self, repos, reserved, t0):
        """902.50 paid in full -> PAGADA, bundles VENDIDO, balance 0."""
        quotation, bundles = reserved
        paid_at = t0 + timedelta(hours=3)

        payment_service.record_payment(repos, quotation.id, amount="902.50", method="TRANSFERENCIA", now=paid_at)

        stored = repos.quotations.get(quotation.id)
        assert stored.state == QuotationState.PAID
        assert stored.paid_at == paid_at
        assert payment_service.outstanding_balance(repos, quotation.id) == Decimal("0")
        assert payment_service.is_overpaid(repos, quotation.id) is False
        assert [repos.bundles.get(b.id).state for b in bundles] == [BundleState.SOLD] * 2

    def test_installments_settle_on_the_last_one(self, repos, reserved, t0):
        quotation, _ = reserved

        payment_service.record_payment(repos, quotation.id, amount="500", method="EFECTIVO", now=t0)
        assert repos.quotations.get(quotation.id).state == QuotationState.RESERVED

        payment_service.record_payment(
            repos, quotation.id, amount="402.50", method="PLIN", now=t0 + timedelta(minutes=5)
        )
        assert repos.quotations.get(quotation.id).state == QuotationState.PAID

    def test_overpayment_is_accepted_and_flagged(self, repos, reserved, t0):
        quotation, _ = reserved
        payment_service.record_payment(repos, quotation.id, amount="902.50", method="EFECTIVO", now=t0)

        payment_service.record_payment(
            repos, quotation.id, amount="1.00", method="EFECTIVO", now=t0 + timedelta(minutes=1)
        )

        assert repos.quotations.get(quotation.id).state == QuotationState.PAID
        assert payment_service.is_overpaid(repos, quotation.id) is True
        assert payment_service.outstanding_balance(repos, quotation.id) == Decimal("0")

    def test_amount_is_rounded_to_cents(self, repos, reserved, t0):
        quotation, _ = reserved
        payment = payment_service.record_payment(repos, quotation.id, amount=10.005, method="EFECTIVO", now=t0)
        assert payment.amount == Decimal("10.01")

    @pytest.mark.parametrize("amount", [0, "-5", "0.001", "abc", None])
    def test_invalid_amount(self, repos, reserved, t0, amount):
        quotation, _ = reserved
        with pytest.raises(ValidationError):
            payment_service.record_payment(repos, quotation.id, amount=amount, method="EFECTIVO", now=t0)
        assert payment_service.list_payments(repos, quotation.id) == []

    def test_unknown_method(self, repos, reserved, t0):
        quotation, _ = reserved
        with pytest.raises(ValidationError):
            payment_service.record_payment(repos, quotation.id, amount="10", method="BITCOIN", now=t0)

    def test_issued_quotation_cannot_be_paid(self, repos, factory, t0):
        quotation = factory.quotation()
        with pytest.raises(InvalidTransitionError):
            payment_service.record_payment(repos, quotation.id, amount="10", method="EFECTIVO", now=t0)
        assert payment_service.list_payments(repos, quotation.id) == []

    def test_expired_quotation_cannot_be_paid(self, repos, reserved, t0):
        quotation, _ = reserved
        quotation_service.expire_quotation(repos, quotation.id, now=t0 + timedelta(days=8))

        with pytest.raises(InvalidTransitionError):
            payment_service.record_payment(repos, quotation.id, amount="902.50", method="EFECTIVO", now=t0)

    def test_failed_settlement_records_nothing(self, repos, reserved, t0):
        quotation, bundles = reserved

        def _sell_elsewhere():
            repos.bundles.get(bundles[0].id).state = BundleState.SOLD

        repos.run(_sell_elsewhere)

        with pytest.raises(InvalidTransitionError):
            payment_service.record_payment(repos, quotation.id, amount="902.50", method="EFECTIVO", now=t0)

        assert payment_service.list_payments(repos, quotation.id) == []
        assert repos.quotations.get(quotation.id).state == QuotationState.RESERVED
        assert repos.bundles.get(bundles[1].id).state == BundleState.RESERVED

    def test_unknown_quotation(self, repos, t0):
        with pytest.raises(NotFoundError):
            payment_service.record_payment(repos, 9999, amount="10", method="EFECTIVO", now=t0)


class TestPaymentHistory:
    def test_payments_listed_oldest_first(self, repos, reserved, t0):
        quotation, _ = reserved
        late = payment_service.record_payment(
            repos, quotation.id, amount="20", method="EFECTIVO", now=t0 + timedelta(hours=2)
        )
        early = payment_service.record_payment(
            repos, quotation.id, amount="10", method="EFECTIVO", now=t0 + timedelta(hours=1)
        )

        history = payment_service.list_payments(repos, quotation.id)
        assert [p.id for p in history] == [early.id, late.id]

    def test_summary(self, repos, reserved, t0):
        quotation, _ = reserved
        payment_service.record_payment(repos, quotation.id, amount="900", method="DEPOSITO", now=t0)
        payment_service.record_payment(repos, quotation.id, amount="10", method="TARJETA", now=t0)

        data = payment_service.payment_summary(repos, quotation.id).to_dict()

        assert data["proforma_id"] == quotation.id
        assert data["total"] == 902.5
        assert data["pagado"] == 910.0
        assert data["saldo"] == 0.0
        assert data["sobrepago"] is True
        assert [p["metodo_pago"] for p in data["pagos"]] == ["DEPOSITO", "TARJETA"]

    def test_history_of_unknown_quotation(self, repos):
        with pytest.raises(NotFoundError):
            payment_service.list_payments(repos, 9999)

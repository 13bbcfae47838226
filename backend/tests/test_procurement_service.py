# Overview: Pytest coverage for suppliers and the purchase order state machine.

from decimal import Decimal

import pytest

from jaguar.errors import InvalidTransitionError, NotFoundError, ValidationError
from jaguar.models import PurchaseOrderState
from jaguar.services import procurement_service


class TestSuppliers:
    def test_create_trims_fields(self, repos):
        supplier = procurement_service.create_supplier(
            repos, name="  Textiles Fashion SAC ", contact=" José Martínez ", phone="  "
        )
        assert supplier.id is not None
        assert supplier.name == "Textiles Fashion SAC"
        assert supplier.contact == "José Martínez"
        assert supplier.phone is None
        assert supplier.is_active is True

    def test_name_required(self, repos):
        with pytest.raises(ValidationError):
            procurement_service.create_supplier(repos, name="   ")

    def test_deactivate_hides_from_active_listing(self, repos, factory):
        kept = factory.supplier("Confecciones del Norte")
        dropped = factory.supplier("Moda Peruana EIRL")

        procurement_service.set_supplier_active(repos, dropped.id, False)

        active = procurement_service.list_suppliers(repos, include_inactive=False)
        assert [s.id for s in active] == [kept.id]
        assert len(procurement_service.list_suppliers(repos)) == 2

    def test_inactive_supplier_cannot_receive_orders(self, repos, factory):
        supplier = factory.supplier()
        procurement_service.set_supplier_active(repos, supplier.id, False)
        with pytest.raises(ValidationError):
            procurement_service.create_purchase_order(repos, supplier_id=supplier.id)

    def test_unknown_supplier(self, repos):
        with pytest.raises(NotFoundError):
            procurement_service.create_purchase_order(repos, supplier_id=9999)


class TestPurchaseOrderLifecycle:
    """CREADO -> EN_TRANSITO -> RECIBIDO -> CERRADO, one step at a time."""

    def test_new_order_starts_created(self, repos, factory, t0):
        supplier = factory.supplier()
        order = procurement_service.create_purchase_order(repos, supplier_id=supplier.id, notes=" urgente ", now=t0)

        assert order.state == PurchaseOrderState.CREATED
        assert order.ordered_at == t0
        assert order.notes == "urgente"
        assert order.debt_amount == Decimal("0")

    def test_full_walk(self, repos, factory):
        order = factory.order()
        for target in ("EN_TRANSITO", "RECIBIDO", "CERRADO"):
            order = procurement_service.advance_purchase_order(repos, order.id, target)
            assert order.state.value == target

    def test_cannot_skip_a_step(self, repos, factory):
        order = factory.order()
        with pytest.raises(InvalidTransitionError):
            procurement_service.advance_purchase_order(repos, order.id, PurchaseOrderState.RECEIVED)
        assert repos.purchase_orders.get(order.id).state == PurchaseOrderState.CREATED

    def test_cannot_go_backwards(self, repos, factory):
        order = factory.order(state=PurchaseOrderState.RECEIVED)
        with pytest.raises(InvalidTransitionError):
            procurement_service.advance_purchase_order(repos, order.id, PurchaseOrderState.IN_TRANSIT)

    def test_closed_is_terminal(self, repos, factory):
        order = factory.order(state=PurchaseOrderState.CLOSED)
        for target in PurchaseOrderState:
            with pytest.raises(InvalidTransitionError):
                procurement_service.advance_purchase_order(repos, order.id, target)

    def test_unknown_state_name(self, repos, factory):
        order = factory.order()
        with pytest.raises(InvalidTransitionError):
            procurement_service.advance_purchase_order(repos, order.id, "PERDIDO")

    def test_filters(self, repos, factory):
        first = factory.supplier("A")
        second = factory.supplier("B")
        created = factory.order(first)
        in_transit = factory.order(first, state=PurchaseOrderState.IN_TRANSIT)
        factory.order(second)

        assert [o.id for o in procurement_service.list_purchase_orders(repos, supplier_id=first.id)] == [
            created.id, in_transit.id,
        ]
        assert [o.id for o in procurement_service.list_purchase_orders(repos, state="EN_TRANSITO")] == [in_transit.id]


class TestOrderDebt:
    def test_record_debt(self, repos, factory):
        order = factory.order(state=PurchaseOrderState.IN_TRANSIT)
        order = procurement_service.record_order_debt(repos, order.id, "7250.005")
        assert order.debt_amount == Decimal("7250.01")

    def test_negative_debt(self, repos, factory):
        order = factory.order()
        with pytest.raises(ValidationError):
            procurement_service.record_order_debt(repos, order.id, "-1")

    def test_closed_order_debt_is_frozen(self, repos, factory):
        order = factory.order(state=PurchaseOrderState.CLOSED)
        with pytest.raises(InvalidTransitionError):
            procurement_service.record_order_debt(repos, order.id, "100")

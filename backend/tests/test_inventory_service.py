# Overview: Pytest coverage for bundle reception, tagging, edits and lookups.

from decimal import Decimal

import pytest

from jaguar.errors import BundleUnavailableError, InvalidTransitionError, NotFoundError, ValidationError
from jaguar.models import BundleState, GarmentType, PurchaseOrderState, QuotationState
from jaguar.services import inventory_service, payment_service, quotation_service


class TestReceiveBundle:
    def test_received_with_scan_code(self, repos, factory, t0):
        order = factory.order(state=PurchaseOrderState.RECEIVED)
        bundle = factory.bundle(available=False, order=order, sizes=["m", " L ", "M"])

        assert bundle.state == BundleState.RECEIVED
        assert bundle.scan_code == f"SACO-{bundle.id:06d}"
        assert bundle.sizes == ["M", "L"]
        assert bundle.garment_type == GarmentType.CASUAL_MAN
        assert bundle.base_price == Decimal("500.00")
        assert bundle.purchase_order_id == order.id
        assert bundle.created_at == t0

    def test_in_transit_order_accepts_bundles(self, repos, factory):
        order = factory.order(state=PurchaseOrderState.IN_TRANSIT)
        assert factory.bundle(order=order).purchase_order_id == order.id

    @pytest.mark.parametrize("state", [PurchaseOrderState.CREATED, PurchaseOrderState.CLOSED])
    def test_order_state_must_allow_reception(self, repos, factory, state):
        order = factory.order(state=state)
        with pytest.raises(InvalidTransitionError):
            factory.bundle(order=order)
        assert repos.bundles.find() == []

    def test_unknown_order(self, repos, factory):
        with pytest.raises(NotFoundError):
            factory.bundle(order=None, purchase_order_id=9999)

    @pytest.mark.parametrize("overrides", [
        {"sizes": []},
        {"sizes": ["M", ""]},
        {"garment_type": "PIJAMA"},
        {"season": "PRIMAVERA"},
        {"description": "  "},
        {"price": "0"},
        {"price": "-50"},
    ])
    def test_invalid_fields(self, repos, factory, overrides):
        with pytest.raises(ValidationError):
            factory.bundle(**overrides)
        assert repos.bundles.find() == []


class TestTagging:
    def test_tag_makes_available(self, repos, factory):
        bundles = factory.bundles(3, available=False)
        tagged = inventory_service.tag_bundles(repos, [b.id for b in bundles])
        assert [b.state for b in tagged] == [BundleState.AVAILABLE] * 3

    def test_tagging_is_all_or_nothing(self, repos, factory):
        fresh = factory.bundle(available=False)
        already = factory.bundle()

        with pytest.raises(InvalidTransitionError) as exc:
            inventory_service.tag_bundles(repos, [fresh.id, already.id])

        assert exc.value.details["saco_ids"] == [already.id]
        assert repos.bundles.get(fresh.id).state == BundleState.RECEIVED

    def test_reserved_bundle_cannot_be_retagged(self, repos, factory):
        bundle = factory.bundle()
        held = factory.quotation([bundle], reserve=True)

        with pytest.raises(InvalidTransitionError) as exc:
            inventory_service.tag_bundle(repos, bundle.id)
        assert exc.value.details["saco_ids"] == [bundle.id]
        assert repos.bundles.get(bundle.id).state == BundleState.RESERVED

        rival = factory.quotation([bundle])
        with pytest.raises(BundleUnavailableError):
            quotation_service.reserve_quotation(repos, rival.id)
        assert repos.quotations.get(held.id).state == QuotationState.RESERVED

    def test_unknown_ids(self, repos, factory):
        bundle = factory.bundle(available=False)
        with pytest.raises(NotFoundError) as exc:
            inventory_service.tag_bundles(repos, [bundle.id, 9999])
        assert exc.value.details["saco_ids"] == [9999]

    def test_empty_batch(self, repos):
        with pytest.raises(ValidationError):
            inventory_service.tag_bundles(repos, [])


class TestUpdateBundle:
    def test_edit_descriptive_fields(self, repos, factory, t0):
        bundle = factory.bundle()
        updated = inventory_service.update_bundle(
            repos,
            bundle.id,
            {"description": "Saco mixto", "base_price": "520.50", "sizes": ["s"], "notes": " revisar "},
            now=t0,
        )
        assert updated.description == "Saco mixto"
        assert updated.base_price == Decimal("520.50")
        assert updated.sizes == ["S"]
        assert updated.notes == "revisar"
        assert updated.updated_at == t0
        assert updated.scan_code == bundle.scan_code

    @pytest.mark.parametrize("field", ["state", "scan_code", "id", "purchase_order_id"])
    def test_protected_fields(self, repos, factory, field):
        bundle = factory.bundle()
        with pytest.raises(ValidationError):
            inventory_service.update_bundle(repos, bundle.id, {field: "X"})

    def test_sold_bundle_is_read_only(self, repos, factory, t0):
        bundle = factory.bundle()
        quotation = factory.quotation([bundle], reserve=True)
        payment_service.record_payment(repos, quotation.id, amount="500", method="EFECTIVO", now=t0)

        with pytest.raises(InvalidTransitionError):
            inventory_service.update_bundle(repos, bundle.id, {"notes": "x"})


class TestLookups:
    def test_scan_code_lookup_is_case_insensitive(self, repos, factory):
        bundle = factory.bundle()
        found = inventory_service.get_bundle_by_scan_code(repos, f"  {bundle.scan_code.lower()} ")
        assert found.id == bundle.id

    def test_unknown_scan_code(self, repos):
        with pytest.raises(NotFoundError):
            inventory_service.get_bundle_by_scan_code(repos, "SACO-999999")

    def test_filters_and_available_count(self, repos, factory):
        casual = factory.bundle()
        sport = factory.bundle(garment_type="DEPORTIVO_HOMBRE", season="INVIERNO")
        untagged = factory.bundle(available=False)

        assert [b.id for b in inventory_service.list_bundles(repos, state="DISPONIBLE")] == [casual.id, sport.id]
        assert [b.id for b in inventory_service.list_bundles(repos, garment_type="DEPORTIVO_HOMBRE")] == [sport.id]
        assert [b.id for b in inventory_service.list_bundles(repos, state=BundleState.RECEIVED)] == [untagged.id]
        assert [b.id for b in inventory_service.list_bundles(repos, season="INVIERNO")] == [sport.id]
        assert inventory_service.count_available(repos) == 2

    def test_bad_filter_value(self, repos):
        with pytest.raises(ValidationError):
            inventory_service.list_bundles(repos, category="ADULTO")

"""SQLAlchemy-backed repositories bound to one session (normally db.session)."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..models import (
    CatalogList, InventoryBundle, Payment, PurchaseOrder, PurchaseOrderState,
    Quotation, QuotationState, Supplier,
)
from ..services.concurrency import lock_for_update, run_with_retry
from .base import (
    BundleRepository, CatalogListRepository, PaymentRepository,
    PurchaseOrderRepository, QuotationRepository, Repositories, SupplierRepository,
)


class _SqlMixin:
    model = None

    def __init__(self, session):
        self.session = session

    def add(self, entity):
        self.session.add(entity)
        self.session.flush()  # assigns the id without committing
        return entity

    def get(self, entity_id: int):
        return self.session.get(self.model, entity_id)

    def get_for_update(self, entity_id: int):
        return lock_for_update(self.session.query(self.model).filter_by(id=entity_id)).first()

    def find(self, **criteria):
        return self.session.query(self.model).filter_by(**criteria).order_by(self.model.id).all()


class SqlSupplierRepository(_SqlMixin, SupplierRepository):
    model = Supplier


class SqlPurchaseOrderRepository(_SqlMixin, PurchaseOrderRepository):
    model = PurchaseOrder

    def find_open(self) -> list[PurchaseOrder]:
        return (
            self.session.query(PurchaseOrder)
            .filter(PurchaseOrder.state != PurchaseOrderState.CLOSED)
            .order_by(PurchaseOrder.id)
            .all()
        )


class SqlBundleRepository(_SqlMixin, BundleRepository):
    model = InventoryBundle

    def get_by_scan_code(self, scan_code: str) -> InventoryBundle | None:
        return self.session.query(InventoryBundle).filter_by(scan_code=scan_code).first()

    def get_many_for_update(self, bundle_ids: Iterable[int]) -> list[InventoryBundle]:
        wanted = list(dict.fromkeys(bundle_ids))
        if not wanted:
            return []
        # Lock in id order so two reservations over overlapping sets cannot deadlock
        rows = lock_for_update(
            self.session.query(InventoryBundle)
            .filter(InventoryBundle.id.in_(wanted))
            .order_by(InventoryBundle.id)
        ).all()
        by_id = {row.id: row for row in rows}
        return [by_id[bundle_id] for bundle_id in wanted if bundle_id in by_id]


class SqlCatalogListRepository(_SqlMixin, CatalogListRepository):
    model = CatalogList

    def get_by_share_token(self, token: str) -> CatalogList | None:
        return self.session.query(CatalogList).filter_by(share_token=token).first()


class SqlQuotationRepository(_SqlMixin, QuotationRepository):
    model = Quotation

    def get_by_tracking_code(self, code: str) -> Quotation | None:
        return self.session.query(Quotation).filter_by(tracking_code=code).first()

    def find_expired_reservations(self, now: datetime) -> list[Quotation]:
        return (
            self.session.query(Quotation)
            .filter(
                Quotation.state == QuotationState.RESERVED,
                Quotation.expires_at.isnot(None),
                Quotation.expires_at < now,
            )
            .order_by(Quotation.expires_at, Quotation.id)
            .all()
        )

    def find_reservations_expiring_between(self, start: datetime, end: datetime) -> list[Quotation]:
        return (
            self.session.query(Quotation)
            .filter(
                Quotation.state == QuotationState.RESERVED,
                Quotation.expires_at >= start,
                Quotation.expires_at <= end,
            )
            .order_by(Quotation.expires_at, Quotation.id)
            .all()
        )

    def delete(self, quotation: Quotation) -> None:
        self.session.delete(quotation)
        self.session.flush()


class SqlPaymentRepository(_SqlMixin, PaymentRepository):
    model = Payment

    def list_for_quotation(self, quotation_id: int) -> list[Payment]:
        return (
            self.session.query(Payment)
            .filter_by(quotation_id=quotation_id)
            .order_by(Payment.created_at, Payment.id)
            .all()
        )

    def exists_for_quotation(self, quotation_id: int) -> bool:
        return self.session.query(Payment.id).filter_by(quotation_id=quotation_id).first() is not None

    def find_created_between(self, start: datetime, end: datetime) -> list[Payment]:
        return (
            self.session.query(Payment)
            .filter(Payment.created_at >= start, Payment.created_at < end)
            .order_by(Payment.created_at, Payment.id)
            .all()
        )


class SqlRepositories(Repositories):
    """
    Repositories sharing one SQLAlchemy session.

    run() commits on success and rolls back on any exception, retrying
    lock/version conflicts (see services.concurrency.run_with_retry).
    """

    def __init__(self, session):
        self.session = session
        self.suppliers = SqlSupplierRepository(session)
        self.purchase_orders = SqlPurchaseOrderRepository(session)
        self.bundles = SqlBundleRepository(session)
        self.lists = SqlCatalogListRepository(session)
        self.quotations = SqlQuotationRepository(session)
        self.payments = SqlPaymentRepository(session)

    def run(self, func, *, attempts: int = 3, retry_on_conflict: bool = False):
        return run_with_retry(
            self.session,
            func,
            attempts=attempts,
            retry_on_conflict=retry_on_conflict,
        )

"""
Process-local repositories.

Replaces the frontend's mock API for local development and doubles as a fast
test backend. Entities are the same model classes as the SQL backend, kept
transient (never attached to a session).

Units of work are serialized under one re-entrant lock, which gives every
operation the same all-or-nothing view the SQL backend gets from row locks.
"""

from __future__ import annotations

import itertools
import threading
from datetime import datetime
from typing import Iterable

from ..models import (
    CatalogList, InventoryBundle, Payment, PurchaseOrder, PurchaseOrderState,
    Quotation, QuotationState, Supplier,
)
from .base import (
    BundleRepository, CatalogListRepository, PaymentRepository,
    PurchaseOrderRepository, QuotationRepository, Repositories, SupplierRepository,
)


class _MemoryMixin:
    def __init__(self):
        self._rows: dict[int, object] = {}
        self._ids = itertools.count(1)

    def add(self, entity):
        if entity.id is None:
            entity.id = next(self._ids)
        self._rows[entity.id] = entity
        return entity

    def get(self, entity_id: int):
        return self._rows.get(entity_id)

    def get_for_update(self, entity_id: int):
        return self._rows.get(entity_id)

    def all(self) -> list:
        return [self._rows[key] for key in sorted(self._rows)]

    def find(self, **criteria):
        return [
            row for row in self.all()
            if all(getattr(row, name) == value for name, value in criteria.items())
        ]


class MemorySupplierRepository(_MemoryMixin, SupplierRepository):
    pass


class MemoryPurchaseOrderRepository(_MemoryMixin, PurchaseOrderRepository):
    def find_open(self) -> list[PurchaseOrder]:
        return [order for order in self.all() if order.state != PurchaseOrderState.CLOSED]


class MemoryBundleRepository(_MemoryMixin, BundleRepository):
    def get_by_scan_code(self, scan_code: str) -> InventoryBundle | None:
        for bundle in self.all():
            if bundle.scan_code == scan_code:
                return bundle
        return None

    def get_many_for_update(self, bundle_ids: Iterable[int]) -> list[InventoryBundle]:
        wanted = list(dict.fromkeys(bundle_ids))
        return [self._rows[bundle_id] for bundle_id in wanted if bundle_id in self._rows]


class MemoryCatalogListRepository(_MemoryMixin, CatalogListRepository):
    def get_by_share_token(self, token: str) -> CatalogList | None:
        for catalog in self.all():
            if catalog.share_token == token:
                return catalog
        return None


class MemoryQuotationRepository(_MemoryMixin, QuotationRepository):
    def __init__(self):
        super().__init__()
        self._line_ids = itertools.count(1)

    def add(self, quotation: Quotation) -> Quotation:
        super().add(quotation)
        # Lines cascade with their quotation, as on the SQL side
        for line in quotation.lines:
            if line.id is None:
                line.id = next(self._line_ids)
            line.quotation_id = quotation.id
        return quotation

    def get_by_tracking_code(self, code: str) -> Quotation | None:
        for quotation in self.all():
            if quotation.tracking_code == code:
                return quotation
        return None

    def find_expired_reservations(self, now: datetime) -> list[Quotation]:
        rows = [
            q for q in self.all()
            if q.state == QuotationState.RESERVED and q.expires_at is not None and q.expires_at < now
        ]
        return sorted(rows, key=lambda q: (q.expires_at, q.id))

    def find_reservations_expiring_between(self, start: datetime, end: datetime) -> list[Quotation]:
        rows = [
            q for q in self.all()
            if q.state == QuotationState.RESERVED and q.expires_at is not None and start <= q.expires_at <= end
        ]
        return sorted(rows, key=lambda q: (q.expires_at, q.id))

    def delete(self, quotation: Quotation) -> None:
        self._rows.pop(quotation.id, None)


class MemoryPaymentRepository(_MemoryMixin, PaymentRepository):
    def list_for_quotation(self, quotation_id: int) -> list[Payment]:
        rows = [p for p in self.all() if p.quotation_id == quotation_id]
        return sorted(rows, key=lambda p: (p.created_at, p.id))

    def find_created_between(self, start: datetime, end: datetime) -> list[Payment]:
        rows = [p for p in self.all() if start <= p.created_at < end]
        return sorted(rows, key=lambda p: (p.created_at, p.id))


class InMemoryRepositories(Repositories):
    def __init__(self):
        self._lock = threading.RLock()
        self.suppliers = MemorySupplierRepository()
        self.purchase_orders = MemoryPurchaseOrderRepository()
        self.bundles = MemoryBundleRepository()
        self.lists = MemoryCatalogListRepository()
        self.quotations = MemoryQuotationRepository()
        self.payments = MemoryPaymentRepository()

    def run(self, func, *, attempts: int = 3, retry_on_conflict: bool = False):
        # Token uniqueness is checked under the same lock, so there is no
        # collision to retry here.
        with self._lock:
            return func()

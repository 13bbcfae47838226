"""
Data-access interfaces, one per entity.

The services only ever talk to these. Two implementations exist:
- repositories.sql: SQLAlchemy session (production, tests)
- repositories.memory: process-local dicts (local development, tests)

UNIT OF WORK:
Every mutating service operation is a closure handed to Repositories.run().
The implementation decides how the closure is serialized against concurrent
writers and how its effects become durable (commit) or vanish (rollback).
Services validate before they mutate, so a failure part-way leaves nothing
half-applied on either backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Callable, Generic, Iterable, TypeVar

from ..errors import NotFoundError
from ..models import (
    CatalogList, InventoryBundle, Payment, PurchaseOrder, Quotation, Supplier,
)

T = TypeVar("T")
R = TypeVar("R")


class Repository(ABC, Generic[T]):
    """create / get / update (in place) / query for one entity type."""

    label = "Entity"

    @abstractmethod
    def add(self, entity: T) -> T:
        """Persist a new entity and assign its id."""

    @abstractmethod
    def get(self, entity_id: int) -> T | None:
        ...

    @abstractmethod
    def get_for_update(self, entity_id: int) -> T | None:
        """Like get(), but the row is held by the current unit of work."""

    @abstractmethod
    def find(self, **criteria) -> list[T]:
        """Equality filters on attributes, ordered by id."""

    def require(self, entity_id: int, *, for_update: bool = False) -> T:
        entity = self.get_for_update(entity_id) if for_update else self.get(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.label} {entity_id} not found", details={"id": entity_id})
        return entity


class SupplierRepository(Repository[Supplier]):
    label = "Supplier"


class PurchaseOrderRepository(Repository[PurchaseOrder]):
    label = "PurchaseOrder"

    @abstractmethod
    def find_open(self) -> list[PurchaseOrder]:
        """Orders not yet CERRADO."""


class BundleRepository(Repository[InventoryBundle]):
    label = "InventoryBundle"

    @abstractmethod
    def get_by_scan_code(self, scan_code: str) -> InventoryBundle | None:
        ...

    @abstractmethod
    def get_many_for_update(self, bundle_ids: Iterable[int]) -> list[InventoryBundle]:
        """Bundles that exist among bundle_ids, in the order requested."""


class CatalogListRepository(Repository[CatalogList]):
    label = "List"

    @abstractmethod
    def get_by_share_token(self, token: str) -> CatalogList | None:
        ...


class QuotationRepository(Repository[Quotation]):
    label = "Quotation"

    @abstractmethod
    def get_by_tracking_code(self, code: str) -> Quotation | None:
        ...

    @abstractmethod
    def find_expired_reservations(self, now: datetime) -> list[Quotation]:
        """RESERVA quotations whose expires_at is strictly before now."""

    @abstractmethod
    def find_reservations_expiring_between(self, start: datetime, end: datetime) -> list[Quotation]:
        ...

    @abstractmethod
    def delete(self, quotation: Quotation) -> None:
        """Remove the quotation and its lines."""


class PaymentRepository(Repository[Payment]):
    label = "Payment"

    @abstractmethod
    def list_for_quotation(self, quotation_id: int) -> list[Payment]:
        """Oldest first (created_at, then id). Never reordered."""

    def total_for_quotation(self, quotation_id: int) -> Decimal:
        return sum((p.amount for p in self.list_for_quotation(quotation_id)), Decimal("0"))

    def exists_for_quotation(self, quotation_id: int) -> bool:
        return bool(self.list_for_quotation(quotation_id))

    @abstractmethod
    def find_created_between(self, start: datetime, end: datetime) -> list[Payment]:
        ...


class Repositories(ABC):
    """One handle per entity plus the unit-of-work runner."""

    suppliers: SupplierRepository
    purchase_orders: PurchaseOrderRepository
    bundles: BundleRepository
    lists: CatalogListRepository
    quotations: QuotationRepository
    payments: PaymentRepository

    @abstractmethod
    def run(
        self,
        func: Callable[[], R],
        *,
        attempts: int = 3,
        retry_on_conflict: bool = False,
    ) -> R:
        """
        Execute func as a single serialized unit of work.

        Effects are kept when func returns. When it raises, the SQL backend
        rolls back; the memory backend has nothing to undo because services
        validate before they mutate.
        retry_on_conflict: a unique-constraint collision re-runs func (which
        regenerates whatever token collided) instead of failing.
        """

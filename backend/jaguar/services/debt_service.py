# Overview: Supplier debt aggregation and classification for the reconciliation page.

"""
Debt Service

For every supplier with at least one open purchase order (CREADO,
EN_TRANSITO or RECIBIDO) report how many orders are pending and how much is
owed, then classify the amount:

    NORMAL   total <= 5000
    ALTO     5000 < total <= 10000
    CRITICO  total > 10000

The amounts come from accounting. Callers may pass a supplier -> amount
mapping directly; without one, the per-order debt_amount recorded on open
orders is summed per supplier.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from ..errors import ValidationError
from ..models import DebtLevel
from ..repositories.base import Repositories
from .pricing_service import ZERO, round2, to_decimal

NORMAL_DEBT_LIMIT = Decimal("5000")
HIGH_DEBT_LIMIT = Decimal("10000")


def classify_debt(amount: Decimal) -> DebtLevel:
    if amount > HIGH_DEBT_LIMIT:
        return DebtLevel.CRITICAL
    if amount > NORMAL_DEBT_LIMIT:
        return DebtLevel.HIGH
    return DebtLevel.NORMAL


@dataclass(frozen=True)
class SupplierDebt:
    supplier_id: int
    supplier_name: str
    pending_orders: int
    total_debt: Decimal
    level: DebtLevel

    def to_dict(self) -> dict:
        return {
            "proveedor_id": self.supplier_id,
            "proveedor_nombre": self.supplier_name,
            "pedidos_pendientes": self.pending_orders,
            "total_deuda": float(self.total_debt),
            "nivel": self.level.value,
        }


def order_debt_amounts(repos: Repositories) -> dict[int, Decimal]:
    """Sum of recorded debt_amount over open orders, per supplier."""
    amounts: dict[int, Decimal] = defaultdict(lambda: ZERO)
    for order in repos.purchase_orders.find_open():
        amounts[order.supplier_id] += order.debt_amount or ZERO
    return dict(amounts)


def compute_supplier_debt(
    repos: Repositories,
    debt_amounts: Mapping[int, object] | None = None,
) -> list[SupplierDebt]:
    """
    One row per supplier with open orders, ordered by supplier id.

    Suppliers missing from debt_amounts owe 0. Amounts for suppliers without
    open orders are ignored.

    Raises:
        ValidationError: a negative or non-numeric amount in debt_amounts
    """
    if debt_amounts is None:
        amounts = order_debt_amounts(repos)
    else:
        amounts = {}
        for supplier_id, raw in debt_amounts.items():
            value = round2(to_decimal(raw, "total_deuda"))
            if value < ZERO:
                raise ValidationError(
                    "Debt amounts cannot be negative",
                    details={"proveedor_id": supplier_id},
                )
            amounts[supplier_id] = value

    pending: dict[int, int] = defaultdict(int)
    for order in repos.purchase_orders.find_open():
        pending[order.supplier_id] += 1

    rows = []
    for supplier_id in sorted(pending):
        supplier = repos.suppliers.get(supplier_id)
        total = round2(amounts.get(supplier_id, ZERO))
        rows.append(SupplierDebt(
            supplier_id=supplier_id,
            supplier_name=supplier.name if supplier else "",
            pending_orders=pending[supplier_id],
            total_debt=total,
            level=classify_debt(total),
        ))
    return rows


def summarize_debt_levels(rows: list[SupplierDebt]) -> dict:
    """Totals shown above the reconciliation table."""
    counts = {level.value: 0 for level in DebtLevel}
    for row in rows:
        counts[row.level.value] += 1
    return {
        "total_deuda": float(sum((row.total_debt for row in rows), ZERO)),
        "proveedores_con_deuda": sum(1 for row in rows if row.total_debt > ZERO),
        "pedidos_pendientes": sum(row.pending_orders for row in rows),
        "niveles": counts,
    }

# Overview: Dashboard KPIs for the back-office landing page.

from __future__ import annotations

from datetime import datetime, timedelta

from ..repositories.base import Repositories
from ..time_utils import start_of_day, utcnow
from .debt_service import compute_supplier_debt
from .inventory_service import count_available
from .pricing_service import ZERO
from .quotation_service import reservations_expiring_within


def dashboard_kpis(
    repos: Repositories,
    *,
    expiring_within: timedelta = timedelta(hours=24),
    now: datetime | None = None,
) -> dict:
    """
    Four headline numbers:
    - stock_disponible: bundles DISPONIBLE
    - reservas_por_vencer: reservations expiring between now and now + expiring_within
    - ventas_del_dia: payments received since 00:00 UTC today
    - deuda_proveedor: supplier debt over open purchase orders
    """
    now = now or utcnow()
    midnight = start_of_day(now)

    sales_today = sum(
        (payment.amount for payment in repos.payments.find_created_between(midnight, now + timedelta(microseconds=1))),
        ZERO,
    )
    supplier_debt = sum((row.total_debt for row in compute_supplier_debt(repos)), ZERO)

    return {
        "stock_disponible": count_available(repos),
        "reservas_por_vencer": len(reservations_expiring_within(repos, expiring_within, now=now)),
        "ventas_del_dia": float(sales_today),
        "deuda_proveedor": float(supplier_debt),
    }

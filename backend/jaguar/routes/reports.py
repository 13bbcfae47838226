# Overview: Flask API routes for the dashboard KPIs and supplier debt reconciliation.

from datetime import timedelta

from flask import Blueprint, current_app, jsonify

from ..decorators import json_errors
from ..repositories import get_repositories
from ..services import debt_service, reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/kpis")


@reports_bp.get("/dashboard")
@json_errors
def dashboard_route():
    kpis = reporting_service.dashboard_kpis(
        get_repositories(),
        expiring_within=timedelta(hours=current_app.config["EXPIRING_SOON_HOURS"]),
    )
    return jsonify(kpis)


@reports_bp.get("/deuda-proveedores")
@json_errors
def supplier_debt_route():
    """DeudaProveedor[] for suppliers with open orders."""
    rows = debt_service.compute_supplier_debt(get_repositories())
    return jsonify([row.to_dict() for row in rows])


@reports_bp.get("/deuda-proveedores/resumen")
@json_errors
def supplier_debt_summary_route():
    rows = debt_service.compute_supplier_debt(get_repositories())
    return jsonify({
        "resumen": debt_service.summarize_debt_levels(rows),
        "proveedores": [row.to_dict() for row in rows],
    })

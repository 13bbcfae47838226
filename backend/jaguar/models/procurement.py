from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import enum_type, money_json
from .enums import PurchaseOrderState


class Supplier(db.Model):
    """Reference entity created by procurement staff. Deactivated, never deleted."""
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nombre": self.name,
            "contacto": self.contact,
            "telefono": self.phone,
            "activo": self.is_active,
        }


class PurchaseOrder(db.Model):
    """
    Supplier order (pedido).

    LIFECYCLE: CREADO -> EN_TRANSITO -> RECIBIDO -> CERRADO, advanced by staff
    one step at a time. Orders are never deleted (audit trail).

    debt_amount is recorded by accounting; it is not derived from the bundles.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.Index("ix_purchase_orders_supplier_state", "supplier_id", "state"),
        db.CheckConstraint("debt_amount >= 0", name="ck_purchase_orders_debt_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    ordered_at = db.Column(db.DateTime, nullable=False)
    estimated_delivery_at = db.Column(db.DateTime, nullable=True)

    state = db.Column(enum_type(PurchaseOrderState), nullable=False, default=PurchaseOrderState.CREATED)
    notes = db.Column(db.Text, nullable=True)

    debt_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    supplier = db.relationship("Supplier", backref=db.backref("purchase_orders", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        state = self.state.value if self.state else None
        return f"<PurchaseOrder id={self.id} supplier_id={self.supplier_id} state={state}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "proveedor_id": self.supplier_id,
            "proveedor": self.supplier.to_dict() if self.supplier else None,
            "fecha_pedido": to_utc_z(self.ordered_at),
            "fecha_entrega_estimada": to_utc_z(self.estimated_delivery_at),
            "estado": self.state.value,
            "observaciones": self.notes,
            "total_sacos": len(self.bundles),
            "deuda": money_json(self.debt_amount),
            "created_at": to_utc_z(self.created_at),
        }

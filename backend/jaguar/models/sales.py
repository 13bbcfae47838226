from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import enum_type, money_json
from .enums import PaymentMethod, QuotationState


class Quotation(db.Model):
    """
    Customer-facing quote (proforma) that may mature into a dispatched order.

    LIFECYCLE:
        EMITIDA -> RESERVA -> PAGADA -> DESPACHADA
                      |
                      +-> VENCIDA (terminal)

    Totals are always recomputed from the lines and discounts by the pricing
    engine; nothing assigns final_total directly. Once PAGADA, lines and
    discounts are frozen.

    Payments reference the quotation but are not a collection on it; read
    them through the payment repository.
    """
    __tablename__ = "quotations"
    __table_args__ = (
        db.Index("ix_quotations_state_expires", "state", "expires_at"),
        db.CheckConstraint(
            "global_discount >= 0 AND global_discount <= 100",
            name="ck_quotations_global_discount_range",
        ),
        db.CheckConstraint("final_total >= 0", name="ck_quotations_final_total_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Customer-visible code for the tracking page (e.g. "PF-7K2M9QXD")
    tracking_code = db.Column(db.String(32), nullable=False, unique=True)

    source_list_id = db.Column(db.Integer, db.ForeignKey("catalog_lists.id"), nullable=True, index=True)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(64), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)

    state = db.Column(enum_type(QuotationState), nullable=False, default=QuotationState.ISSUED, index=True)

    global_discount = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    original_total = db.Column(db.Numeric(12, 2), nullable=False)
    final_total = db.Column(db.Numeric(12, 2), nullable=False)

    # Set only when the quotation enters RESERVA
    expires_at = db.Column(db.DateTime, nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    dispatched_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    lines = db.relationship(
        "QuotationLine",
        back_populates="quotation",
        order_by="QuotationLine.position",
        cascade="all, delete-orphan",
        lazy=True,
    )
    source_list = db.relationship("CatalogList")
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def bundle_ids(self) -> list[int]:
        return [line.bundle_id for line in self.lines]

    def __repr__(self) -> str:
        state = self.state.value if self.state else None
        return f"<Quotation id={self.id} code={self.tracking_code!r} state={state}>"

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "codigo_seguimiento": self.tracking_code,
            "lista_id": self.source_list_id,
            "cliente_nombre": self.customer_name,
            "cliente_telefono": self.customer_phone,
            "cliente_email": self.customer_email,
            "estado": self.state.value,
            "descuento_global": money_json(self.global_discount),
            "total_original": money_json(self.original_total),
            "total": money_json(self.final_total),
            "fecha_expiracion": to_utc_z(self.expires_at),
            "fecha_pago": to_utc_z(self.paid_at),
            "fecha_despacho": to_utc_z(self.dispatched_at),
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["lineas"] = [line.to_dict() for line in self.lines]
        return data

    def to_public_dict(self) -> dict:
        """What the tracking page may show: no contact details, no internal ids."""
        return {
            "codigo_seguimiento": self.tracking_code,
            "cliente_nombre": self.customer_name,
            "estado": self.state.value,
            "total": money_json(self.final_total),
            "fecha_expiracion": to_utc_z(self.expires_at),
            "fecha_despacho": to_utc_z(self.dispatched_at),
            "created_at": to_utc_z(self.created_at),
            "lineas": [
                {
                    "descripcion_contenido": line.bundle.description if line.bundle else None,
                    "tipo": line.bundle.garment_type.value if line.bundle else None,
                    "subtotal": money_json(line.subtotal),
                }
                for line in self.lines
            ],
        }


class QuotationLine(db.Model):
    """
    One bundle on a quotation.

    unit_price is a snapshot taken at quoting time and may differ from the
    bundle's current base price. subtotal = round2(unit_price * (1 - discount/100)).
    """
    __tablename__ = "quotation_lines"
    __table_args__ = (
        db.UniqueConstraint("quotation_id", "bundle_id", name="uq_quotation_lines_quotation_bundle"),
        db.CheckConstraint(
            "line_discount >= 0 AND line_discount <= 100",
            name="ck_quotation_lines_discount_range",
        ),
        db.CheckConstraint("subtotal >= 0", name="ck_quotation_lines_subtotal_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    quotation_id = db.Column(db.Integer, db.ForeignKey("quotations.id"), nullable=False, index=True)
    bundle_id = db.Column(db.Integer, db.ForeignKey("inventory_bundles.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    line_discount = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)

    quotation = db.relationship("Quotation", back_populates="lines")
    bundle = db.relationship("InventoryBundle")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "proforma_id": self.quotation_id,
            "saco_id": self.bundle_id,
            "saco": self.bundle.to_dict() if self.bundle else None,
            "precio_unitario": money_json(self.unit_price),
            "descuento_linea": money_json(self.line_discount),
            "subtotal": money_json(self.subtotal),
        }


class Payment(db.Model):
    """
    Money received against a quotation (pago).

    IMMUTABLE: append-only. Never edited, never deleted. Corrections are new
    payments and reconciliation staff resolve over-transfers by hand.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_quotation_created", "quotation_id", "created_at"),
        db.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    quotation_id = db.Column(db.Integer, db.ForeignKey("quotations.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    method = db.Column(enum_type(PaymentMethod), nullable=False, index=True)

    # Where the uploaded voucher image lives; storage is someone else's job
    voucher_ref = db.Column(db.String(512), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "proforma_id": self.quotation_id,
            "monto": money_json(self.amount),
            "metodo_pago": self.method.value,
            "voucher_url": self.voucher_ref,
            "observaciones": self.notes,
            "created_at": to_utc_z(self.created_at),
        }

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .base import enum_type, money_json
from .enums import BundleState, Category, GarmentType, ListType, Season


class InventoryBundle(db.Model):
    """
    A saco: several garments sold together at one base price.

    LIFECYCLE:
        RECIBIDO -> DISPONIBLE -> RESERVADO -> VENDIDO
                        ^             |
                        +-------------+   (reservation expired or cancelled)

    scan_code (printed on the QR tag) is assigned once, right after the row
    gets its id, and never changes.
    """
    __tablename__ = "inventory_bundles"
    __table_args__ = (
        db.Index("ix_inventory_bundles_state_type", "state", "garment_type"),
        db.CheckConstraint("base_price > 0", name="ck_inventory_bundles_base_price_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=True, index=True)

    garment_type = db.Column(enum_type(GarmentType), nullable=False)
    season = db.Column(enum_type(Season), nullable=False)
    category = db.Column(enum_type(Category), nullable=False)

    # e.g. ["S", "M", "L", "XL"]; never empty
    sizes = db.Column(db.JSON, nullable=False)
    description = db.Column(db.Text, nullable=False)

    base_price = db.Column(db.Numeric(12, 2), nullable=False)

    state = db.Column(enum_type(BundleState), nullable=False, default=BundleState.RECEIVED, index=True)
    scan_code = db.Column(db.String(32), nullable=True, unique=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    purchase_order = db.relationship("PurchaseOrder", backref=db.backref("bundles", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        state = self.state.value if self.state else None
        return f"<InventoryBundle id={self.id} scan_code={self.scan_code!r} state={state}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pedido_id": self.purchase_order_id,
            "tipo": self.garment_type.value,
            "temporada": self.season.value,
            "categoria": self.category.value,
            "tallas_incluidas": list(self.sizes or []),
            "descripcion_contenido": self.description,
            "precio_base": money_json(self.base_price),
            "estado": self.state.value,
            "qr_code": self.scan_code,
            "observaciones": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


class CatalogList(db.Model):
    """
    Curated list of bundles (lista), VIP or BASE.

    A list is only browsable publicly once it has a share token; the token is
    assigned once and never replaced. Membership does not imply ownership: the
    same bundle may sit in several lists.
    """
    __tablename__ = "catalog_lists"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    list_type = db.Column(enum_type(ListType), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=False)
    share_token = db.Column(db.String(64), nullable=True, unique=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    items = db.relationship(
        "CatalogListItem",
        back_populates="catalog_list",
        order_by="CatalogListItem.position",
        cascade="all, delete-orphan",
        lazy=True,
    )

    @property
    def bundles(self) -> list[InventoryBundle]:
        return [item.bundle for item in self.items]

    @property
    def bundle_ids(self) -> list[int]:
        return [item.bundle_id for item in self.items]

    def to_dict(self, include_bundles: bool = True) -> dict:
        data = {
            "id": self.id,
            "nombre": self.name,
            "tipo": self.list_type.value,
            "activa": self.is_active,
            "enlace_publico": self.share_token,
            "created_at": to_utc_z(self.created_at),
        }
        if include_bundles:
            data["sacos"] = [bundle.to_dict() for bundle in self.bundles]
        return data


class CatalogListItem(db.Model):
    """Ordered membership row between a list and a bundle."""
    __tablename__ = "catalog_list_items"
    __table_args__ = (
        db.UniqueConstraint("list_id", "bundle_id", name="uq_catalog_list_items_list_bundle"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    list_id = db.Column(db.Integer, db.ForeignKey("catalog_lists.id"), nullable=False, index=True)
    bundle_id = db.Column(db.Integer, db.ForeignKey("inventory_bundles.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    added_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    catalog_list = db.relationship("CatalogList", back_populates="items")
    bundle = db.relationship("InventoryBundle")

from .enums import (
    BundleState, Category, DebtLevel, GarmentType, ListType, PaymentMethod,
    PurchaseOrderState, QuotationState, Season,
)
from .procurement import Supplier, PurchaseOrder
from .inventory import InventoryBundle, CatalogList, CatalogListItem
from .sales import Quotation, QuotationLine, Payment

__all__ = [
    'BundleState', 'Category', 'DebtLevel', 'GarmentType', 'ListType', 'PaymentMethod',
    'PurchaseOrderState', 'QuotationState', 'Season',
    'Supplier', 'PurchaseOrder',
    'InventoryBundle', 'CatalogList', 'CatalogListItem',
    'Quotation', 'QuotationLine', 'Payment',
]

"""
Closed enumerations for every state machine and categorical tag.

Values are the strings the frontend already speaks; member names are what
the Python code reads.
"""

from __future__ import annotations

import enum


class PurchaseOrderState(str, enum.Enum):
    CREATED = "CREADO"
    IN_TRANSIT = "EN_TRANSITO"
    RECEIVED = "RECIBIDO"
    CLOSED = "CERRADO"


class BundleState(str, enum.Enum):
    RECEIVED = "RECIBIDO"
    AVAILABLE = "DISPONIBLE"
    RESERVED = "RESERVADO"
    SOLD = "VENDIDO"


class QuotationState(str, enum.Enum):
    ISSUED = "EMITIDA"
    RESERVED = "RESERVA"
    PAID = "PAGADA"
    EXPIRED = "VENCIDA"
    DISPATCHED = "DESPACHADA"


class ListType(str, enum.Enum):
    VIP = "VIP"
    BASE = "BASE"


class GarmentType(str, enum.Enum):
    CASUAL_MAN = "CASUAL_HOMBRE"
    CASUAL_WOMAN = "CASUAL_MUJER"
    SPORT_MAN = "DEPORTIVO_HOMBRE"
    SPORT_WOMAN = "DEPORTIVO_MUJER"
    KIDS_BOY = "INFANTIL_NINO"
    KIDS_GIRL = "INFANTIL_NINA"
    FORMAL_MAN = "FORMAL_HOMBRE"
    FORMAL_WOMAN = "FORMAL_MUJER"


class Season(str, enum.Enum):
    SUMMER = "VERANO"
    WINTER = "INVIERNO"
    FALL = "OTONO"


class Category(str, enum.Enum):
    MAN = "HOMBRE"
    WOMAN = "MUJER"
    BOY = "NINO"
    GIRL = "NINA"


class PaymentMethod(str, enum.Enum):
    CASH = "EFECTIVO"
    TRANSFER = "TRANSFERENCIA"
    DEPOSIT = "DEPOSITO"
    YAPE = "YAPE"
    PLIN = "PLIN"
    CARD = "TARJETA"


class DebtLevel(str, enum.Enum):
    NORMAL = "NORMAL"
    HIGH = "ALTO"
    CRITICAL = "CRITICO"

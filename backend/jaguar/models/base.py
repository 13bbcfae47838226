from __future__ import annotations

from decimal import Decimal

from ..extensions import db


def enum_type(enum_cls, length: int = 24):
    """
    Column type for a str-valued Enum.

    Stores the member *value* (the wire string) in a VARCHAR rather than a
    native ENUM, so SQLite and Postgres behave the same. Unknown strings are
    rejected on the Python side (validate_strings).
    """
    return db.Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


def money_json(value: Decimal | None) -> float | None:
    """Money/percentages go out as JSON numbers; the frontend formats them."""
    if value is None:
        return None
    return float(value)

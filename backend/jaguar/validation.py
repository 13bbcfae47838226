from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from .errors import ValidationError
from .time_utils import parse_iso_datetime


# Pagination matches the frontend's PaginatedResponse<T>
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200


def require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", details={"field": field})
    return value.strip()


def optional_text(value: Any, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={"field": field})
    value = value.strip()
    return value or None


def parse_enum(enum_cls: type[Enum], value: Any, field: str) -> Enum:
    """Wire string -> enum member, as a 400 rather than a state error."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"{field} must be one of: {allowed}",
            details={"field": field, "value": value},
        )


def parse_sizes(value: Any, field: str = "tallas_incluidas") -> list[str]:
    """
    Non-empty list of size labels.

    Labels are trimmed and uppercased; duplicates are dropped keeping the
    first occurrence so ["s", "M", "S"] becomes ["S", "M"].
    """
    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError(f"{field} must be a non-empty list", details={"field": field})

    sizes: list[str] = []
    for raw in value:
        if not isinstance(raw, str) or not raw.strip():
            raise ValidationError(f"{field} entries must be non-empty strings", details={"field": field})
        label = raw.strip().upper()
        if label not in sizes:
            sizes.append(label)
    return sizes


def parse_id(value: Any, field: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer id", details={"field": field})
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"{field} must be an integer id", details={"field": field})


def parse_optional_id(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    return parse_id(value, field)


def parse_id_list(value: Any, field: str) -> list[int]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field} must be a list of ids", details={"field": field})
    return [parse_id(item, field) for item in value]


def parse_optional_datetime(value: Any, field: str) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO-8601 string", details={"field": field})
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 string", details={"field": field})


def parse_pagination(page: Any, size: Any) -> tuple[int, int]:
    """Clamp page >= 1 and 1 <= size <= MAX_PAGE_SIZE."""
    try:
        page = int(page) if page is not None else 1
        size = int(size) if size is not None else DEFAULT_PAGE_SIZE
    except (TypeError, ValueError):
        raise ValidationError("page and size must be integers")
    page = max(page, 1)
    size = min(max(size, 1), MAX_PAGE_SIZE)
    return page, size


def paginate(items: Iterable[Any], page: int, size: int, serialize) -> dict:
    rows = list(items)
    total = len(rows)
    start = (page - 1) * size
    return {
        "items": [serialize(row) for row in rows[start:start + size]],
        "total": total,
        "page": page,
        "size": size,
        "pages": (total + size - 1) // size if total else 0,
    }

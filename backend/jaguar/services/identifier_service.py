# Overview: Generation of the customer-facing codes (tracking codes, share tokens, scan codes).

"""
Identifier Service

WHY: Three identifiers leave the system and must never collide:
- tracking code (codigo_seguimiento): typed in by customers on the tracking page
- share token (enlace_publico): part of the public catalog URL, unguessable
- scan code (qr_code): printed on the bundle tag, derived from the bundle id

UNIQUENESS: tracking codes and share tokens are random. A collision is
regenerated silently up to MAX_TOKEN_ATTEMPTS times; only then does the caller
see DuplicateTokenError. Scan codes are derived from the primary key so they
cannot collide.
"""

from __future__ import annotations

import logging
import secrets
from typing import Callable

from ..errors import DuplicateTokenError

logger = logging.getLogger(__name__)

MAX_TOKEN_ATTEMPTS = 5

TRACKING_CODE_PREFIX = "PF"
TRACKING_CODE_LENGTH = 8
# No 0/O, 1/I: customers read these aloud and type them back
TRACKING_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

SHARE_TOKEN_BYTES = 12
SCAN_CODE_PREFIX = "SACO"


def new_tracking_code() -> str:
    body = "".join(secrets.choice(TRACKING_CODE_ALPHABET) for _ in range(TRACKING_CODE_LENGTH))
    return f"{TRACKING_CODE_PREFIX}-{body}"


def normalize_tracking_code(value: str) -> str:
    """Uppercase, no surrounding or inner spaces."""
    return value.upper().strip().replace(" ", "")


def new_share_token() -> str:
    return secrets.token_urlsafe(SHARE_TOKEN_BYTES)


def scan_code_for(bundle_id: int) -> str:
    return f"{SCAN_CODE_PREFIX}-{bundle_id:06d}"


def generate_unique(
    generator: Callable[[], str],
    exists: Callable[[str], bool],
    *,
    label: str,
    attempts: int = MAX_TOKEN_ATTEMPTS,
) -> str:
    """
    Draw from generator until exists() says the value is free.

    Raises:
        DuplicateTokenError: every attempt collided
    """
    for attempt in range(1, attempts + 1):
        candidate = generator()
        if not exists(candidate):
            return candidate
        logger.warning("%s collision on attempt %d/%d", label, attempt, attempts)
    raise DuplicateTokenError(
        f"Could not generate a unique {label}",
        details={"attempts": attempts},
    )

# Overview: Row locking and retry helpers used by the SQL unit of work.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import DuplicateTokenError

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    populate_existing() refreshes rows already sitting in the identity map so
    the caller sees the locked version, not a stale cached one.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the version_id_col on
    bundles/orders/quotations is what catches a lost race (StaleDataError).
    """
    return query.with_for_update().populate_existing()


def run_with_retry(
    session,
    func,
    *,
    attempts: int = 3,
    backoff_base: float = 0.1,
    retry_on_conflict: bool = False,
):
    """
    Run func and commit, as one transaction.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). With retry_on_conflict, an IntegrityError
    (unique token collision) is retried too and surfaces as
    DuplicateTokenError once attempts run out. Anything else rolls back and
    propagates unchanged.
    """
    for attempt in range(attempts):
        try:
            result = func()
            session.commit()
            return result
        except (OperationalError, StaleDataError) as exc:
            session.rollback()
            if attempt >= attempts - 1:
                raise
            logger.warning("Concurrent modification (attempt %d/%d): %s", attempt + 1, attempts, exc)
            time.sleep(backoff_base * (2 ** attempt))
        except IntegrityError as exc:
            session.rollback()
            if not retry_on_conflict:
                raise
            if attempt >= attempts - 1:
                raise DuplicateTokenError(
                    "Could not generate a unique code",
                    details={"attempts": attempts},
                ) from exc
            logger.warning("Unique code collision (attempt %d/%d), regenerating", attempt + 1, attempts)
        except Exception:
            session.rollback()
            raise

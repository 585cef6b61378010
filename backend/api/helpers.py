"""Shared API helpers for route handlers."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from services.exceptions import ConcurrencyConflictError

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Commit everything written inside the block, or nothing.

    Services only flush, so a workflow that fails halfway leaves no partial
    records. A version mismatch on a lot or option position (another
    request wrote it first) becomes a ConcurrencyConflictError.

    Raises:
        ConcurrencyConflictError: on a stale version at flush or commit.
    """
    try:
        yield db
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning("Concurrent modification detected: %s", e)
        raise ConcurrencyConflictError(
            "The record was modified by another request; retry the operation"
        ) from e
    except Exception:
        db.rollback()
        raise

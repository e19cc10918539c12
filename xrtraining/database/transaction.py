"""
Transaction management utilities

Repository writes used inside a transaction only add and flush; the
transaction owns commit and rollback:

    with transaction(db, "Submit quiz 12 for user abc"):
        repo.upsert_history(...)
        repo.upsert_summary(...)
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session, description: str = "transaction") -> Iterator[Session]:
    """
    Commit on success, roll back and re-raise on any exception.
    """
    try:
        yield db
        db.commit()
        logger.debug("Transaction committed", extra={"description": description})
    except Exception as e:
        db.rollback()
        logger.error(
            f"Transaction rolled back: {description}",
            extra={"description": description, "error": str(e), "error_type": type(e).__name__},
        )
        raise

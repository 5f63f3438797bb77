"""
Transaction Helper Service

Wraps service operations in a single database transaction:
- Commit on success, rollback on any failure
- Bounded retry with backoff for dropped connections
- IntegrityError to ConflictError translation at flush time
"""

from functools import wraps
from typing import Callable, List, Tuple
import logging
import time
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, IntegrityError, DisconnectionError
from app import db
from utils.errors import ConflictError

logger = logging.getLogger(__name__)

class TransactionHelper:
    """Helper class for managing database transactions safely"""

    max_retries = 3
    backoff = 0.5

    @staticmethod
    def with_transaction(func: Callable) -> Callable:
        """
        Decorator that wraps a function in a database transaction.
        Commits when the function returns, rolls back and re-raises when it raises.
        Connection-level failures are retried with exponential backoff.

        Usage:
            @TransactionHelper.with_transaction
            def update_truck(self, truck_id, data):
                # Your database operations here
                pass
        """
        @wraps(func)
        def wrapper(*args, **kwargs):
            max_retries = TransactionHelper.max_retries
            for attempt in range(max_retries):
                try:
                    result = func(*args, **kwargs)
                    db.session.commit()
                    return result
                except IntegrityError as e:
                    db.session.rollback()
                    logger.warning(f"Integrity error committing {func.__name__}: {str(e.orig)}")
                    raise ConflictError('The change conflicts with existing records')
                except (DisconnectionError, OperationalError) as e:
                    db.session.rollback()
                    if attempt < max_retries - 1:
                        sleep_time = TransactionHelper.backoff * (2 ** attempt)
                        logger.warning(f"Database connection error in {func.__name__} "
                                       f"(attempt {attempt + 1}/{max_retries}): {str(e)}. "
                                       f"Retrying in {sleep_time}s...")
                        time.sleep(sleep_time)
                        continue
                    logger.error(f"Transaction {func.__name__} failed after {max_retries} attempts: {str(e)}")
                    raise
                except Exception:
                    db.session.rollback()
                    raise
            return None
        return wrapper

    @staticmethod
    def flush_or_conflict(conflict_message: str) -> None:
        """
        Flush pending changes so constraint violations surface inside the service.

        Raises:
            ConflictError: carrying conflict_message when the database rejects the change
        """
        try:
            db.session.flush()
        except IntegrityError as e:
            db.session.rollback()
            logger.info(f"Constraint violation: {str(e.orig)}")
            raise ConflictError(conflict_message)

    @staticmethod
    def check_connection() -> Tuple[bool, List[str]]:
        """
        Validate that the database answers and the session is clean.

        Returns:
            Tuple[bool, List[str]]: (is_healthy, list_of_warnings)
        """
        warnings = []

        if db.session.new or db.session.dirty or db.session.deleted:
            warnings.append("Uncommitted changes detected in the current session")

        try:
            with db.session.no_autoflush:
                db.session.execute(text('SELECT 1'))

            return len(warnings) == 0, warnings

        except Exception as e:
            db.session.rollback()
            warnings.append(f"Database connection check failed: {str(e)}")
            return False, warnings

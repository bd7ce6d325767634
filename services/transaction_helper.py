"""
Transaction Helper Service

Commit/rollback handling for store writes, with a short retry for
transient connection errors.
"""

from functools import wraps
from typing import Callable
import logging
from sqlalchemy.exc import OperationalError, DisconnectionError
from app import db
import time

logger = logging.getLogger(__name__)

class TransactionHelper:
    """Helper class for managing database transactions safely"""

    MAX_RETRIES = 3
    RETRY_DELAY = 0.5

    @staticmethod
    def with_transaction(func: Callable) -> Callable:
        """
        Decorator that wraps a function in a database transaction.
        Commits on success, rolls back on any error. Connection errors are
        retried; everything else is re-raised immediately.

        Usage:
            @TransactionHelper.with_transaction
            def save(self, records):
                # Your database operations here
                pass
        """
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(TransactionHelper.MAX_RETRIES):
                try:
                    result = func(*args, **kwargs)
                    db.session.commit()
                    return result

                except (OperationalError, DisconnectionError) as e:
                    db.session.rollback()
                    logger.error(f"Transaction error (attempt {attempt + 1}/{TransactionHelper.MAX_RETRIES}): {str(e)}")

                    if attempt < TransactionHelper.MAX_RETRIES - 1:
                        # Wait before retry to handle temporary connection issues
                        time.sleep(TransactionHelper.RETRY_DELAY)
                        continue
                    logger.error(f"Transaction failed after {TransactionHelper.MAX_RETRIES} attempts: {str(e)}")
                    raise

                except Exception as e:
                    db.session.rollback()
                    logger.error(f"Non-retryable error in {func.__name__}: {str(e)}")
                    raise
            return None
        return wrapper


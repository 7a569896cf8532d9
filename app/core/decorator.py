import logging
from functools import wraps

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class DBException(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def db_exception(message: str = "Database error occurred"):
    """
    Wrap a service method so storage failures surface as DBException.

    The session passed to the service is rolled back before re-raising, so a
    failed toggle never leaves half-applied counter changes behind.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except IntegrityError:
                self.db.rollback()
                logger.warning(f"{func.__name__}: integrity error", exc_info=True)
                raise DBException("Duplicate entry: already exists", 409)
            except SQLAlchemyError:
                self.db.rollback()
                logger.error(f"{func.__name__}: database failure", exc_info=True)
                raise DBException(message, 500)

        return wrapper

    return decorator

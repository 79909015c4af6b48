from functools import wraps

from flask import current_app
from sqlalchemy.exc import DBAPIError, IntegrityError

from ..errors import TransientIO
from ..extensions import db


def guard_storage(func):
    """Re-raise database driver failures as ``TransientIO``.

    Integrity errors are left alone; they mean the write was refused, not
    that the database was unreachable.
    """
    @wraps(func)
    def wrapped(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IntegrityError:
            raise
        except DBAPIError as exc:
            db.session.rollback()
            current_app.logger.warning("storage unavailable in %s: %s", func.__name__, exc)
            raise TransientIO() from exc
    return wrapped

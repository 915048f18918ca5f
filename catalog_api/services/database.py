from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from catalog_api.errors import Conflict, InternalError, ServiceError, ServiceUnavailable
from catalog_api.extensions import db

logger = logging.getLogger(__name__)

# signed 64-bit, the widest integer column the supported databases store
ID_MIN = -(2**63)
ID_MAX = 2**63 - 1


def id_in_range(value: int) -> bool:
    return ID_MIN <= value <= ID_MAX


def get_row(model: Any, row_id: int) -> Any:
    """``session.get`` that treats ids no integer column can hold as absent."""
    if not id_in_range(row_id):
        return None
    return db.session.get(model, row_id)


def database_is_ready() -> bool:
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("database readiness check failed: %s", exc)
        db.session.rollback()
        return False
    return True


def ensure_database_ready() -> None:
    if not database_is_ready():
        raise ServiceUnavailable(
            "database is not connected",
            {"info": "check DATABASE_URL and that the database is reachable"},
        )


def commit() -> None:
    """Commit the session, mapping constraint violations to ``Conflict``."""
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.info("integrity error on commit: %s", exc.orig)
        raise Conflict("uniqueness or reference constraint violated") from exc


def requires_database(func: Callable[..., Any]) -> Callable[..., Any]:
    """Fail fast when the database is down and tag unexpected DB errors."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        ensure_database_ready()
        try:
            return func(*args, **kwargs)
        except ServiceError:
            raise
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("database operation %s failed", func.__name__)
            raise InternalError("database operation failed", {"error": str(exc)}) from exc

    return wrapper

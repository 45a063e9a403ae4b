"""
Shared plumbing for repositories: statement execution, write commits and
operation metrics.
"""

import functools
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import ConflictError, JoblyError
from ..logger import get_logger
from ..sql import bind_params


def tracked(operation: str) -> Callable:
    """
    Decorator recording attempts and outcomes of a repository operation.

    Failures are logged and re-raised unchanged.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            name = f"{self.entity}.{operation}"
            self.logger.record_operation_attempt(name)
            try:
                result = func(self, *args, **kwargs)
            except JoblyError as e:
                self.logger.record_operation_failure(name, type(e).__name__)
                self.logger.warning(f"{name} failed", error=e.message)
                raise
            self.logger.record_operation_success(name)
            return result

        return wrapper
    return decorator


def numeric_to_float(value: Any) -> Any:
    """NUMERIC columns come back as Decimal (PostgreSQL) or float/int (SQLite)."""
    if value is None:
        return None
    if isinstance(value, (Decimal, int, str)) and not isinstance(value, bool):
        return float(value)
    return value


class BaseRepository:
    """Executes parameterized statements over a SQLAlchemy session."""

    entity = ""

    def __init__(self, session: Session):
        self.session = session
        self.logger = get_logger()

    def _to_record(self, row) -> Dict[str, Any]:
        return dict(row)

    def _execute(self, sql: str, values: Sequence[Any] = ()):
        self.logger.debug("Executing statement", entity=self.entity, sql=" ".join(sql.split()), params=len(values))
        self.logger.record_query()
        return self.session.execute(text(sql), bind_params(values))

    def _fetch_all(self, sql: str, values: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        return [self._to_record(row) for row in self._execute(sql, values).mappings()]

    def _fetch_one(self, sql: str, values: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        row = self._execute(sql, values).mappings().first()
        return self._to_record(row) if row is not None else None

    def _write(self, sql: str, values: Sequence[Any], conflict_message: str) -> Optional[Dict[str, Any]]:
        """
        Execute a single write statement with RETURNING and commit it.

        Returns:
            The returned row, or None if the statement matched nothing

        Raises:
            ConflictError: If the database rejects the write on a constraint
        """
        try:
            row = self._execute(sql, values).mappings().first()
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError(conflict_message) from e
        except (SQLAlchemyError, OverflowError):
            self.session.rollback()
            raise
        return self._to_record(row) if row is not None else None

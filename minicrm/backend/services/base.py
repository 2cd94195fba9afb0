"""
Base Service.

Base class for all services providing common patterns for business logic.
Services orchestrate repositories, enforce the owner boundary, validate
input and wrap store failures.

Usage:
    from minicrm.backend.services.base import BaseService

    class ClientService(BaseService):
        def __init__(self, session: AsyncSession) -> None:
            super().__init__(session)
            self.clients = ClientRepository(session)

        async def get_client(self, owner_id: str, client_id: str) -> Client:
            client = await self._execute_db_operation(
                "get_client", self.clients.get(owner_id, client_id)
            )
            return self._found(client, "Client")
"""

from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.backend.core.exceptions import DatabaseError, NotFoundError, ValidationError
from minicrm.backend.core.logging import get_logger
from minicrm.backend.repositories.client import ClientRepository

T = TypeVar("T")


class BaseService:
    """
    Shared plumbing for the owner-scoped services.

    Store calls go through ``_execute_db_operation`` so a SQLAlchemy
    failure surfaces as DatabaseError naming the step that failed
    (``delete_client_notes``, ``mark_notified``). Services never commit;
    the request session or the poller does.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._logger = get_logger(self.__class__.__module__)

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def _execute_db_operation(
        self,
        operation: str,
        coro: Any,
    ) -> T:
        """Await ``coro``; SQLAlchemy errors become DatabaseError(operation)."""
        try:
            return await coro
        except IntegrityError as e:
            self._logger.warning(
                "Database integrity error",
                extra={"operation": operation, "error": str(e)},
            )
            raise DatabaseError(f"Database constraint violation: {operation}") from e
        except SQLAlchemyError as e:
            self._logger.error(
                "Database error",
                extra={"operation": operation, "error": str(e)},
            )
            raise DatabaseError(f"Database operation failed: {operation}") from e

    @staticmethod
    def _found(instance: T | None, resource: str) -> T:
        """
        Return ``instance`` or raise NotFoundError.

        A record owned by someone else arrives here as None too, so both
        cases produce the same error.
        """
        if instance is None:
            raise NotFoundError(f"{resource} not found")
        return instance

    def _validate_required(
        self,
        fields: dict[str, Any],
        field_names: list[str],
    ) -> None:
        """Raise ValidationError (400) listing names that are absent or blank."""
        missing = [
            name for name in field_names
            if fields.get(name) is None
            or (isinstance(fields[name], str) and not fields[name].strip())
        ]

        if missing:
            raise ValidationError(
                "Required fields missing",
                details={"missing_fields": missing},
            )

    async def _check_client(self, owner_id: str, client_id: str | None) -> None:
        """A referenced client must exist and belong to the same owner."""
        if client_id is None:
            return
        exists = await self._execute_db_operation(
            "check_client", ClientRepository(self._session).exists(owner_id, client_id)
        )
        if not exists:
            raise NotFoundError("Client not found")

    @staticmethod
    def _clean_optional(value: str | None) -> str | None:
        """Trim an optional text field, storing blanks as None."""
        if value is None:
            return None
        value = value.strip()
        return value or None

    def _log(self, level: str, message: str, context: dict[str, Any]) -> None:
        getattr(self._logger, level)(
            message, extra={"service": self.__class__.__name__, **context}
        )

    def _log_operation(self, operation: str, **context: Any) -> None:
        self._log("info", operation, context)

    def _log_debug(self, message: str, **context: Any) -> None:
        self._log("debug", message, context)

"""Base class for Cassandra-backed stores."""

from typing import TYPE_CHECKING, Any

from cassandra import DriverException
from cassandra.cluster import NoHostAvailable

from learnhub.core.exceptions import StorageError
from learnhub.core.logging import get_logger


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


class CassandraStore:
    """Holds the session, the keyspace and the prepared statements.

    Subclasses prepare their statements in ``_prepare_statements`` and run
    them through :meth:`_execute`, which turns driver failures into
    :class:`StorageError`.
    """

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        raise NotImplementedError

    async def _execute(self, statement: Any, params: list[Any] | None = None) -> Any:
        try:
            return await self.session.aexecute(statement, params)
        except (DriverException, NoHostAvailable) as e:
            logger.error(
                "storage_error",
                store=type(self).__name__,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StorageError(f"Storage unavailable: {type(e).__name__}") from e

"""State-query service: asks another chain for storage values by key.

Queries are correlated by a u32 id. The counter saturates at the u32 maximum
instead of wrapping, so an id is never silently reused while a query for it
is still pending.

Data Flow:
    QueryService.submit() -> QueryTransport.submit_query(StateQuery)
    transport callback   -> QueryService.on_result(correlation_id, values)
    caller               -> QueryService.get(correlation_id)
"""

import logging
from collections import deque
from typing import Protocol

from pydantic import BaseModel, Field

from xcm_composer.program.ir import U32, U32_MAX, ChainId, HexBytes

logger = logging.getLogger(__name__)

# Completion records kept for inspection
DEFAULT_HISTORY = 1000


class StateQuery(BaseModel):
    """A read of storage keys on ``chain`` at block ``height``."""

    correlation_id: U32
    chain: ChainId
    height: U32
    keys: tuple[HexBytes, ...] = Field(min_length=1)


class StorageValue(BaseModel):
    """One key and the value stored under it (None if absent)."""

    key: HexBytes
    value: HexBytes | None = None


class QueryCompleted(BaseModel):
    """Log record emitted when a pending query receives its result."""

    correlation_id: U32
    values: tuple[StorageValue, ...]


class QueryRejectedError(Exception):
    """Raised when the transport refuses to send a query."""

    pass


class UnknownQueryError(Exception):
    """Raised for a result whose correlation id is not pending."""

    pass


class QueryTransport(Protocol):
    """Protocol for delivering queries to another chain."""

    def submit_query(self, query: StateQuery) -> bool:
        """Send ``query``. Returns False if it was not accepted."""
        ...


class MockQueryTransport:
    """In-memory QueryTransport for testing.

    Usage:
        transport = MockQueryTransport()
        service = QueryService(transport)
        qid = service.submit(chain=2034, height=100, keys=[b"\\x01"])
        assert transport.sent[0].correlation_id == qid
    """

    def __init__(self) -> None:
        self.sent: list[StateQuery] = []
        self.rejecting = False

    def submit_query(self, query: StateQuery) -> bool:
        if self.rejecting:
            return False
        self.sent.append(query)
        return True


class QueryService:
    """Issues state queries and collects their results.

    Results are kept until ``release`` is called for their id, and a
    completed id stays reserved until then. ``completed`` keeps the last
    ``history`` completion records.
    """

    def __init__(self, transport: QueryTransport, first_id: int = 0, history: int = DEFAULT_HISTORY):
        self.transport = transport
        self._next_id = first_id
        self._pending: set[int] = set()
        self._results: dict[int, tuple[StorageValue, ...]] = {}
        self.completed: deque[QueryCompleted] = deque(maxlen=history)

    @property
    def next_id(self) -> int:
        return self._next_id

    def submit(self, chain: int, height: int, keys: list[bytes]) -> int:
        """Send a query and return its correlation id.

        The counter only advances once the transport accepts the query.

        Raises:
            QueryRejectedError: If the transport refuses the query, or every
                id up to the u32 maximum is still in use
        """
        correlation_id = self._next_id
        if correlation_id in self._pending or correlation_id in self._results:
            raise QueryRejectedError(f"Correlation id {correlation_id} is still in use")

        query = StateQuery(
            correlation_id=correlation_id, chain=chain, height=height, keys=tuple(keys)
        )
        self._pending.add(correlation_id)
        try:
            accepted = self.transport.submit_query(query)
        except Exception:
            self._pending.discard(correlation_id)
            logger.error(f"Transport failed sending query {correlation_id} to chain {chain}")
            raise
        if not accepted:
            self._pending.discard(correlation_id)
            logger.warning(f"Query {correlation_id} to chain {chain} rejected by transport")
            raise QueryRejectedError(f"Transport rejected query {correlation_id} to chain {chain}")

        self._next_id = min(self._next_id + 1, U32_MAX)
        logger.info(f"Query {correlation_id} sent to chain {chain} at height {height}")
        return correlation_id

    def on_result(self, correlation_id: int, values: list[StorageValue]) -> QueryCompleted:
        """Accept the result for a pending query. Each query completes once.

        Raises:
            UnknownQueryError: If the id is not pending
        """
        if correlation_id not in self._pending:
            raise UnknownQueryError(f"No pending query with id {correlation_id}")

        self._pending.discard(correlation_id)
        self._results[correlation_id] = tuple(values)
        record = QueryCompleted(correlation_id=correlation_id, values=tuple(values))
        self.completed.append(record)
        logger.info(f"Query {correlation_id} completed with {len(values)} value(s)")
        return record

    def is_pending(self, correlation_id: int) -> bool:
        return correlation_id in self._pending

    def get(self, correlation_id: int) -> tuple[StorageValue, ...] | None:
        """Result values for a completed query, or None."""
        return self._results.get(correlation_id)

    def release(self, correlation_id: int) -> None:
        """Forget a query, pending or completed, freeing its id."""
        self._pending.discard(correlation_id)
        self._results.pop(correlation_id, None)

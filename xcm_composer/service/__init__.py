"""Dispatch and query services."""

from xcm_composer.service.dispatch_service import DispatchResult, DispatchService
from xcm_composer.service.executor import (
    DispatchError,
    DispatchReceipt,
    Executor,
    HttpExecutor,
    MockExecutor,
)
from xcm_composer.service.query_service import (
    MockQueryTransport,
    QueryRejectedError,
    QueryService,
    UnknownQueryError,
)

__all__ = [
    "DispatchError",
    "DispatchReceipt",
    "DispatchResult",
    "DispatchService",
    "Executor",
    "HttpExecutor",
    "MockExecutor",
    "MockQueryTransport",
    "QueryRejectedError",
    "QueryService",
    "UnknownQueryError",
]

"""Tests for QueryService."""

import pytest
from pydantic import ValidationError

from xcm_composer.program.ir import U32_MAX
from xcm_composer.program.registries.chains import HYDRATION
from xcm_composer.service.query_service import (
    MockQueryTransport,
    QueryRejectedError,
    QueryService,
    StateQuery,
    StorageValue,
    UnknownQueryError,
)

KEY = bytes.fromhex("26aa394eea5630e07c48ae0c9558cef7")


@pytest.fixture
def transport() -> MockQueryTransport:
    return MockQueryTransport()


@pytest.fixture
def service(transport) -> QueryService:
    return QueryService(transport)


class TestSubmit:
    def test_ids_increase(self, service, transport):
        assert service.submit(HYDRATION, 100, [KEY]) == 0
        assert service.submit(HYDRATION, 101, [KEY]) == 1
        assert [q.correlation_id for q in transport.sent] == [0, 1]
        assert transport.sent[0] == StateQuery(
            correlation_id=0, chain=HYDRATION, height=100, keys=(KEY,)
        )

    def test_rejected_query_releases_id(self, service, transport):
        transport.rejecting = True
        with pytest.raises(QueryRejectedError, match="Transport rejected query 0"):
            service.submit(HYDRATION, 100, [KEY])

        assert not service.is_pending(0)
        assert service.next_id == 0

        transport.rejecting = False
        assert service.submit(HYDRATION, 100, [KEY]) == 0

    def test_counter_saturates(self, transport):
        service = QueryService(transport, first_id=U32_MAX)
        assert service.submit(HYDRATION, 1, [KEY]) == U32_MAX
        assert service.next_id == U32_MAX

        with pytest.raises(QueryRejectedError, match="still in use"):
            service.submit(HYDRATION, 1, [KEY])

        service.release(U32_MAX)
        assert service.submit(HYDRATION, 1, [KEY]) == U32_MAX

    def test_needs_a_key(self, service):
        with pytest.raises(ValidationError):
            service.submit(HYDRATION, 1, [])


class TestResults:
    def test_result_accepted_once(self, service):
        qid = service.submit(HYDRATION, 100, [KEY])
        values = [StorageValue(key=KEY, value=b"\x2a")]

        record = service.on_result(qid, values)
        assert record.correlation_id == qid
        assert service.get(qid) == tuple(values)
        assert list(service.completed) == [record]

        with pytest.raises(UnknownQueryError):
            service.on_result(qid, values)

    def test_unknown_id(self, service):
        with pytest.raises(UnknownQueryError, match="42"):
            service.on_result(42, [])

    def test_get_pending_is_none(self, service):
        qid = service.submit(HYDRATION, 100, [KEY])
        assert service.is_pending(qid)
        assert service.get(qid) is None

    def test_missing_value(self, service):
        qid = service.submit(HYDRATION, 100, [KEY])
        service.on_result(qid, [StorageValue(key=KEY)])
        assert service.get(qid)[0].value is None

    def test_release_forgets_result(self, service):
        qid = service.submit(HYDRATION, 100, [KEY])
        service.on_result(qid, [])
        service.release(qid)
        assert service.get(qid) is None

    def test_history_is_bounded(self, transport):
        service = QueryService(transport, history=2)
        for _ in range(3):
            qid = service.submit(HYDRATION, 100, [KEY])
            service.on_result(qid, [])

        assert [r.correlation_id for r in service.completed] == [1, 2]
        assert service.get(0) == ()


class FailingTransport:
    """Transport whose connection drops on the first send."""

    def __init__(self) -> None:
        self.calls = 0

    def submit_query(self, query: StateQuery) -> bool:
        self.calls += 1
        if self.calls == 1:
            raise ConnectionError("link down")
        return True


class TestTransportFailure:
    def test_raising_transport_releases_id(self):
        service = QueryService(FailingTransport())
        with pytest.raises(ConnectionError, match="link down"):
            service.submit(HYDRATION, 100, [KEY])

        assert not service.is_pending(0)
        assert service.next_id == 0
        assert service.submit(HYDRATION, 100, [KEY]) == 0

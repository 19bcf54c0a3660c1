"""Tests for DispatchService and the executors."""

import json

import httpx
import pytest

from tests.conftest import ALICE
from xcm_composer.program.composer import fund_direct
from xcm_composer.program.ir import Program
from xcm_composer.program.primitives import para
from xcm_composer.program.registries.chains import ASSET_HUB, POP
from xcm_composer.service.dispatch_service import DispatchService
from xcm_composer.service.executor import (
    DispatchError,
    HttpExecutor,
    MockExecutor,
)


@pytest.fixture
def program() -> Program:
    return fund_direct(ALICE, POP, ASSET_HUB, 1000).program


class TestDispatchService:
    def test_valid_program_is_submitted_once(self, program):
        executor = MockExecutor()
        result = DispatchService(executor=executor).dispatch(program)

        assert result.status == "success"
        assert result.ok
        assert result.receipt.instructions == 2
        assert len(executor.submissions) == 1
        assert executor.submissions[0].program == program

    def test_invalid_program_never_reaches_executor(self):
        executor = MockExecutor()
        result = DispatchService(executor=executor).dispatch(Program())

        assert result.status == "error"
        assert result.validation_errors == ["program: Program is empty"]
        assert executor.submissions == []

    def test_rejection_reported(self, program):
        executor = MockExecutor(reject_with="insufficient balance")
        result = DispatchService(executor=executor).dispatch(program)

        assert result.status == "error"
        assert result.error == "insufficient balance"
        assert result.receipt is None

    def test_destination_passed_through(self, program):
        executor = MockExecutor()
        result = DispatchService(executor=executor).dispatch(program, para(ASSET_HUB))
        assert result.receipt.destination == para(ASSET_HUB)


class TestMockExecutor:
    def test_receipt_ids_are_distinct(self, program):
        executor = MockExecutor()
        first = executor.submit(program)
        second = executor.submit(program)
        assert first.receipt_id != second.receipt_id
        assert first.receipt_id.startswith("0x")

    def test_reject_toggle(self, program):
        executor = MockExecutor()
        executor.reject("paused")
        with pytest.raises(DispatchError, match="paused"):
            executor.submit(program)


class TestHttpExecutor:
    def test_config_from_environment(self, monkeypatch):
        monkeypatch.setenv("XCM_EXECUTOR_URL", "http://executor.test/run")
        monkeypatch.setenv("XCM_EXECUTOR_TIMEOUT", "5")
        executor = HttpExecutor()
        assert executor.url == "http://executor.test/run"
        assert executor.timeout == 5.0

    def _patch_transport(self, monkeypatch, handler):
        real_client = httpx.Client
        monkeypatch.setattr(
            httpx,
            "Client",
            lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
        )

    def test_posts_program_json(self, monkeypatch, program):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"receipt_id": "0xabc", "instructions": 2})

        self._patch_transport(monkeypatch, handler)
        receipt = HttpExecutor(url="http://executor.test/run", auth_token="t0k").submit(program)

        assert receipt.receipt_id == "0xabc"
        assert seen["url"] == "http://executor.test/run"
        assert seen["body"]["program"][0]["type"] == "withdraw_asset"
        assert seen["body"]["destination"] is None
        assert seen["auth"] == "Bearer t0k"

    def test_non_200_raises(self, monkeypatch, program):
        self._patch_transport(monkeypatch, lambda request: httpx.Response(503, text="busy"))
        with pytest.raises(DispatchError, match="HTTP 503"):
            HttpExecutor(url="http://executor.test/run").submit(program)

    def test_transport_error_raises(self, monkeypatch, program):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self._patch_transport(monkeypatch, handler)
        with pytest.raises(DispatchError, match="Failed to call executor"):
            HttpExecutor(url="http://executor.test/run").submit(program)

    def test_non_json_receipt_raises(self, monkeypatch, program):
        self._patch_transport(monkeypatch, lambda request: httpx.Response(200, text="not json"))
        with pytest.raises(DispatchError, match="Malformed executor receipt"):
            HttpExecutor(url="http://executor.test/run").submit(program)

    def test_incomplete_receipt_raises(self, monkeypatch, program):
        self._patch_transport(monkeypatch, lambda request: httpx.Response(200, json={"status": "ok"}))
        with pytest.raises(DispatchError, match="Malformed executor receipt"):
            HttpExecutor(url="http://executor.test/run").submit(program)

    def test_malformed_receipt_reported_by_service(self, monkeypatch, program):
        """A garbled 200 response becomes an error result, not an exception."""
        self._patch_transport(monkeypatch, lambda request: httpx.Response(200, text="not json"))
        service = DispatchService(executor=HttpExecutor(url="http://executor.test/run"))
        result = service.dispatch(program)

        assert result.status == "error"
        assert result.error.startswith("Malformed executor receipt")
        assert result.receipt is None

    def test_no_retry(self, monkeypatch, program):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500, text="boom")

        self._patch_transport(monkeypatch, handler)
        with pytest.raises(DispatchError):
            HttpExecutor(url="http://executor.test/run").submit(program)
        assert len(calls) == 1

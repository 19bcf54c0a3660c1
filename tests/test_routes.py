"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from tests.conftest import ALICE
from xcm_composer.main import app
from xcm_composer.program.accounts import hashed_account
from xcm_composer.program.primitives import para
from xcm_composer.routes.programs import get_dispatch_service
from xcm_composer.service.dispatch_service import DispatchService
from xcm_composer.service.executor import MockExecutor

ALICE_HEX = "0x" + ALICE.hex()
NATIVE = {"parents": 1, "interior": []}
USDT = {
    "parents": 1,
    "interior": [
        {"type": "parachain", "id": 1000},
        {"type": "pallet_instance", "index": 50},
        {"type": "general_index", "index": 1984},
    ],
}


def asset(location: dict, amount: int) -> dict:
    return {"id": location, "fun": {"type": "fungible", "amount": amount}}


@pytest.fixture
def executor():
    return MockExecutor()


@pytest.fixture
def client(executor):
    app.dependency_overrides[get_dispatch_service] = lambda: DispatchService(executor=executor)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestFundRoutes:
    def test_fund_direct(self, client, executor):
        response = client.post(
            "/programs/fund-direct",
            json={"account": ALICE_HEX, "from_chain": 4001, "to_chain": 1000, "amount": 1000},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["route"] == "4001 -> 1000"
        assert body["depth"] == 2
        assert body["program"][0]["type"] == "withdraw_asset"
        assert body["outline"].startswith("WithdrawAsset(1000 of (1, Here))")
        assert body["transfers"] == [
            {"account": ALICE_HEX, "amount": 1000, "from_chain": 4001, "to_chain": 1000}
        ]
        assert body["dispatch"] is None
        assert executor.submissions == []

    def test_fund_direct_dispatch(self, client, executor):
        response = client.post(
            "/programs/fund-direct",
            json={
                "account": ALICE_HEX,
                "from_chain": 4001,
                "to_chain": 1000,
                "amount": 1000,
                "dispatch": True,
            },
        )
        assert response.status_code == 200
        assert response.json()["dispatch"]["status"] == "success"
        assert len(executor.submissions) == 1

    def test_dispatch_rejection_is_reported(self, client, executor):
        executor.reject("paused")
        response = client.post(
            "/programs/fund-direct",
            json={
                "account": ALICE_HEX,
                "from_chain": 4001,
                "to_chain": 1000,
                "amount": 1000,
                "dispatch": True,
            },
        )
        assert response.status_code == 200
        assert response.json()["dispatch"] == {
            "status": "error",
            "receipt": None,
            "error": "paused",
            "validation_errors": [],
        }

    def test_same_chain_rejected(self, client):
        response = client.post(
            "/programs/fund-direct",
            json={"account": ALICE_HEX, "from_chain": 4001, "to_chain": 4001, "amount": 1000},
        )
        assert response.status_code == 422

    def test_bad_account_width(self, client):
        response = client.post(
            "/programs/fund-direct",
            json={"account": "0x0102", "from_chain": 4001, "to_chain": 1000, "amount": 1000},
        )
        assert response.status_code == 422

    def test_fund_indirect(self, client):
        response = client.post(
            "/programs/fund-indirect",
            json={
                "account": ALICE_HEX,
                "from_chain": 4001,
                "hop": 1000,
                "to_chain": 2034,
                "amount": 1000,
                "hashed": True,
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["depth"] == 3
        assert len(body["transfers"]) == 2
        deposit = body["program"][1]["xcm"][1]["xcm"][1]
        derived = "0x" + hashed_account(4001, ALICE).hex()
        assert deposit["beneficiary"]["interior"][0]["id"] == derived


class TestSwapRoute:
    def _request(self, **overrides) -> dict:
        request = {
            "from_chain": 4001,
            "reserve": 1000,
            "swap_chain": 2034,
            "amount": 10**12,
            "give": asset(NATIVE, 5 * 10**11),
            "want": asset(USDT, 10**6),
            "beneficiary": ALICE_HEX,
        }
        request.update(overrides)
        return request

    def test_swap_and_deposit(self, client):
        response = client.post("/programs/swap", json=self._request())
        assert response.status_code == 200
        terminal = response.json()["program"][1]["xcm"][1]["xcm"]
        assert [i["type"] for i in terminal] == ["buy_execution", "exchange_asset", "deposit_asset"]

    def test_swap_and_forward(self, client):
        response = client.post("/programs/swap", json=self._request(forward_to=1000))
        assert response.status_code == 200
        assert response.json()["depth"] == 4

    def test_forward_to_swap_chain_rejected(self, client):
        response = client.post("/programs/swap", json=self._request(forward_to=2034))
        assert response.status_code == 422
        assert "to itself" in response.json()["detail"]


class TestComposeRoute:
    def test_custom_program(self, client):
        custom = [
            {
                "type": "deposit_asset",
                "assets": {"type": "all"},
                "beneficiary": {
                    "parents": 0,
                    "interior": [{"type": "account_id32", "id": ALICE_HEX}],
                },
            }
        ]
        response = client.post(
            "/programs/compose",
            json={
                "route": {"origin": 4001, "hops": [1000, 2034]},
                "amount": 1000,
                "action": {"type": "custom", "program": custom},
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["program"][1]["xcm"][1]["xcm"][0]["type"] == "deposit_asset"
        assert body["transfers"][0]["account"] is None

    def test_fee_divisor_from_environment(self, client, monkeypatch):
        monkeypatch.setenv("XCM_FEE_DIVISOR", "4")
        response = client.post(
            "/programs/compose",
            json={
                "route": {"origin": 4001, "hops": [1000]},
                "amount": 1000,
                "action": {"type": "deposit", "beneficiary": ALICE_HEX},
            },
        )
        assert response.status_code == 200
        fee = response.json()["program"][1]["xcm"][0]["fees"]
        assert fee["fun"]["amount"] == 250


class TestExecuteRoute:
    def _request(self, **overrides) -> dict:
        request = {
            "from_chain": 4001,
            "chain": 2034,
            "call": "0x0a0b0c",
            "fee": asset(NATIVE, 10**10),
            "weight": {"ref_time": 800_000_000, "proof_size": 500_000},
        }
        request.update(overrides)
        return request

    def test_builds_transact_program(self, client, executor):
        response = client.post("/programs/execute", json=self._request())
        assert response.status_code == 200
        body = response.json()
        assert body["route"] == "4001 -> 2034"
        assert [i["type"] for i in body["program"]] == ["withdraw_asset", "buy_execution", "transact"]
        assert body["program"][2]["call"] == "0x0a0b0c"
        assert body["destination"] == {"parents": 1, "interior": [{"type": "parachain", "id": 2034}]}
        assert body["transfers"] == []
        assert executor.submissions == []

    def test_dispatch_sends_to_target_chain(self, client, executor):
        response = client.post("/programs/execute", json=self._request(dispatch=True))
        assert response.status_code == 200
        dispatch = response.json()["dispatch"]
        assert dispatch["status"] == "success"
        assert dispatch["receipt"]["destination"]["interior"] == [{"type": "parachain", "id": 2034}]
        assert executor.submissions[0].destination == para(2034)

    def test_same_chain_rejected(self, client):
        response = client.post("/programs/execute", json=self._request(chain=4001))
        assert response.status_code == 422

    def test_empty_call_rejected(self, client):
        response = client.post("/programs/execute", json=self._request(call="0x"))
        assert response.status_code == 422


class TestAccountRoutes:
    def test_derive(self, client):
        response = client.get("/accounts/derive", params={"chain_id": 4001, "account": ALICE_HEX})
        assert response.status_code == 200
        assert response.json() == {
            "chain_id": 4001,
            "account": ALICE_HEX,
            "derived": "0x" + hashed_account(4001, ALICE).hex(),
        }

    def test_bad_hex(self, client):
        response = client.get("/accounts/derive", params={"chain_id": 4001, "account": "0xzz"})
        assert response.status_code == 422

    def test_bad_width(self, client):
        response = client.get("/accounts/derive", params={"chain_id": 4001, "account": "0x0102"})
        assert response.status_code == 422

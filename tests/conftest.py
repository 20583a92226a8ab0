"""Pytest fixtures for testing"""

import asyncio
import json
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from teller_client.api.main import create_app
from teller_client.services.container import Services, build_services

BANK_URL = "https://bank.test"
TOKEN = "token-alice"
CUSTOMER_ID = "42"
COMMIT_PATHS = ("/deposit", "/withdraw", "/transferFunds")


class FakeBank:
    """
    Stateful stand-in for the banking backend, served through httpx.MockTransport.

    Fees are deducted server-side for withdrawals and transfers; deposits credit
    the full amount.
    """

    def __init__(self):
        self.users = {"alice": ("secret", CUSTOMER_ID, TOKEN)}
        self.balances: Dict[str, Decimal] = {"001": Decimal("500.00"), "002": Decimal("200.00")}
        self.types = {"001": "Savings", "002": "Checking"}
        self.fee = Decimal("5")
        self.requests: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []
        # Overrides: path -> (status, body) or the string "network"
        self.overrides: Dict[str, Any] = {}
        # When set, commit calls block until the event is set
        self.commit_gate: Optional[asyncio.Event] = None

    # --------------------------------------------------------------
    # helpers for tests
    # --------------------------------------------------------------

    def calls(self, path: str) -> int:
        return sum(1 for _, p, _ in self.requests if p == path)

    @property
    def commit_calls(self) -> int:
        return sum(self.calls(p) for p in COMMIT_PATHS)

    # --------------------------------------------------------------
    # transport
    # --------------------------------------------------------------

    async def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        payload = json.loads(request.content) if request.content else None
        self.requests.append((request.method, path, payload))

        if self.commit_gate is not None and path in COMMIT_PATHS:
            await self.commit_gate.wait()

        override = self.overrides.get(path)
        if override == "network":
            raise httpx.ConnectError("connection refused", request=request)
        if override is not None:
            status, body = override
            content = body if isinstance(body, str) else json.dumps(body)
            return httpx.Response(status, content=content.encode())

        if path == "/login":
            return self._login(payload)
        if path in ("/accountTypes", "/register", "/forgotPassword", "/resetPassword"):
            return self._public(path)
        if request.headers.get("Authorization") != f"Bearer {TOKEN}":
            return httpx.Response(401, json={"message": "Unauthorized"})
        return self._authenticated(request, path, payload)

    def _login(self, payload: Dict[str, Any]) -> httpx.Response:
        user = self.users.get(payload["usernameOrEmail"])
        if user is None or user[0] != payload["password"]:
            return httpx.Response(401, json={"message": "Invalid credentials"})
        return httpx.Response(200, json={"data": {"token": user[2], "customerId": int(user[1]), "username": "alice"}})

    def _public(self, path: str) -> httpx.Response:
        if path == "/accountTypes":
            return httpx.Response(
                200,
                json={"data": [{"accountTypeId": 0, "accountType": "Savings"}, {"accountTypeId": 1, "accountType": "Checking"}]},
            )
        return httpx.Response(200, json={"message": f"{path[1:]} ok"})

    def _accounts_body(self) -> Dict[str, Any]:
        return {
            "data": [
                {"accountNumber": number, "accountType": self.types[number], "balance": float(balance)}
                for number, balance in self.balances.items()
            ]
        }

    def _authenticated(self, request: httpx.Request, path: str, payload: Any) -> httpx.Response:
        if path == f"/customer/{CUSTOMER_ID}/accounts":
            return httpx.Response(200, json=self._accounts_body())
        if path == "/charges":
            return httpx.Response(200, json={"data": {"transactionCost": float(self.fee)}})
        if path == "/transactionCosts":
            return httpx.Response(200, json={"data": {"transferFee": 7, "withdrawFee": 3}})
        if path == "/createAccount":
            number = f"{len(self.balances) + 1:03d}"
            self.balances[number] = Decimal("0")
            self.types[number] = payload["accountType"]
            return httpx.Response(200, json={"data": {"accountNumber": number, "accountType": payload["accountType"], "balance": 0}})
        if path.startswith("/account/") and path.endswith("/statement"):
            return httpx.Response(
                200,
                json={"data": [{"transactionCode": "TX1", "transactionType": "DEPOSIT", "amount": 50.5, "toAccount": "001", "date": "2024-05-01T10:00:00"}]},
            )
        if path == "/updatePassword":
            return httpx.Response(200, json={"message": "Password updated"})

        amount = Decimal(str(payload["amount"]))
        if path == "/deposit":
            self.balances[payload["toAccount"]] += amount
            return httpx.Response(200, json={"message": "Deposit successful"})
        if path == "/withdraw":
            return self._debit(payload["fromAccount"], amount, "Withdrawal successful")
        if path == "/transferFunds":
            response = self._debit(payload["fromAccount"], amount, "Transfer successful")
            if response.status_code == 200 and payload["toAccount"] in self.balances:
                self.balances[payload["toAccount"]] += amount
            return response
        return httpx.Response(404, json={"message": "Not found"})

    def _debit(self, account: str, amount: Decimal, message: str) -> httpx.Response:
        if self.balances[account] < amount + self.fee:
            return httpx.Response(400, json={"message": "Insufficient funds"})
        self.balances[account] -= amount + self.fee
        return httpx.Response(200, json={"message": message})


@pytest.fixture
def fake_bank() -> FakeBank:
    return FakeBank()


@pytest.fixture
def transport(fake_bank: FakeBank) -> httpx.MockTransport:
    return httpx.MockTransport(fake_bank.handle)


@pytest.fixture
def storage_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path}/storage.db"


@pytest.fixture
def services(storage_url: str, transport: httpx.MockTransport) -> Services:
    """Fully wired components talking to the fake bank"""
    return build_services(storage_url=storage_url, bank_api_base=BANK_URL, transport=transport)


@pytest.fixture
async def logged_in(services: Services) -> Services:
    """Services with an active session and a loaded account cache"""
    session = await services.session_store.login("alice", "secret")
    await services.account_cache.refresh(session.customer_id)
    return services


@pytest.fixture
def client(services: Services) -> TestClient:
    """Create FastAPI test client driving the fake bank"""
    return TestClient(create_app(services))

"""Banking backend HTTP client - the only code that talks to the network"""

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from teller_client.config import settings
from teller_client.domain import payloads
from teller_client.domain.classifier import classify, parse_body
from teller_client.domain.exceptions import BankAPIError
from teller_client.domain.models import (
    Account,
    AccountType,
    ClassifiedError,
    ErrorKind,
    Session,
    StatementEntry,
    TransactionKind,
)
from teller_client.infrastructure.observability.metrics import bank_call_failures_counter

logger = logging.getLogger(__name__)

T = TypeVar("T")
AuthHeaderProvider = Callable[[], Dict[str, str]]


def _json_amount(amount: Decimal) -> Any:
    """Amounts travel as JSON numbers"""
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


class BankClient:
    """
    Client for the REST/JSON banking backend.

    Every failure leaves this class as a BankAPIError carrying a ClassifiedError;
    httpx exceptions and unparsed bodies never reach callers.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        auth_header: AuthHeaderProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.bank_api_base).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.auth_header = auth_header or (lambda: {})
        self.transport = transport

    def _fail(self, error: ClassifiedError, path: str) -> BankAPIError:
        bank_call_failures_counter.labels(error_kind=error.kind.value).inc()
        logger.warning(
            f"Bank call failed: {error}",
            extra={"path": path, "error_kind": error.kind.value, "http_status": error.http_status},
        )
        return BankAPIError(error)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Any:
        """Send one request and return its decoded JSON body (None when empty)"""
        headers = dict(self.auth_header()) if authenticated else {}
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            try:
                response = await client.request(method, path, json=json, params=params, headers=headers)
            except httpx.TimeoutException as e:
                raise self._fail(classify(None, f"timeout after {self.timeout}s"), path) from e
            except httpx.RequestError as e:
                raise self._fail(classify(None, str(e) or type(e).__name__), path) from e

        # Redirects are not followed; anything outside 2xx is not an acknowledgment
        if not response.is_success:
            raise self._fail(classify(response.status_code, response.text), path)

        body = parse_body(response.text)
        # Some endpoints acknowledge with 2xx but carry {error} instead of {message}
        if isinstance(body, dict) and body.get("error") and "data" not in body and "message" not in body:
            raise self._fail(classify(response.status_code, response.text), path)
        return body

    def _parse(self, parser: Callable[[Any], T], body: Any, what: str, path: str) -> T:
        try:
            return parser(body)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            error = ClassifiedError(kind=ErrorKind.UNKNOWN, message=f"Invalid {what} data from bank: {e}")
            raise self._fail(error, path) from e

    # ------------------------------------------------------------------
    # Authentication and credential recovery
    # ------------------------------------------------------------------

    async def login(self, username_or_email: str, password: str) -> Session:
        body = await self._request(
            "POST",
            "/login",
            json={"usernameOrEmail": username_or_email, "password": password},
            authenticated=False,
        )
        return self._parse(payloads.to_session, body, "login", "/login")

    async def register(self, profile: Dict[str, Any]) -> str:
        body = await self._request("POST", "/register", json=profile, authenticated=False)
        return payloads.to_message(body, "Registration successful")

    async def forgot_password(self, email: str | None = None, phone_number: str | None = None) -> str:
        body = await self._request(
            "POST",
            "/forgotPassword",
            json={"email": email, "phoneNumber": phone_number},
            authenticated=False,
        )
        return payloads.to_message(body, "Reset instructions sent")

    async def reset_password(
        self,
        new_password: str,
        email: str | None = None,
        phone_number: str | None = None,
        token: str | None = None,
        otp: str | None = None,
    ) -> str:
        body = await self._request(
            "POST",
            "/resetPassword",
            json={
                "email": email,
                "phoneNumber": phone_number,
                "token": token,
                "otp": otp,
                "newPassword": new_password,
            },
            authenticated=False,
        )
        return payloads.to_message(body, "Password reset successfully")

    async def update_password(
        self,
        username_or_email: str,
        old_password: str,
        new_password: str,
        confirm_password: str,
    ) -> str:
        body = await self._request(
            "POST",
            "/updatePassword",
            json={
                "usernameOrEmail": username_or_email,
                "oldPassword": old_password,
                "newPassword": new_password,
                "confirmPassword": confirm_password,
            },
        )
        return payloads.to_message(body, "Password updated successfully")

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def get_accounts(self, customer_id: str) -> List[Account]:
        path = f"/customer/{customer_id}/accounts"
        body = await self._request("GET", path)
        return self._parse(payloads.to_accounts, body, "account", path)

    async def get_account_types(self) -> List[AccountType]:
        """Fetch account types, falling back to the legacy route when the current one is missing"""
        path = "/accountTypes"
        try:
            body = await self._request("GET", path, authenticated=False)
        except BankAPIError as e:
            if e.error.http_status != 404:
                raise
            path = "/fetchAccountTypes"
            body = await self._request("GET", path, authenticated=False)
        return self._parse(payloads.to_account_types, body, "account type", path)

    async def create_account(self, customer_id: str, account_type: str) -> Account:
        body = await self._request(
            "POST",
            "/createAccount",
            json={"customerId": str(customer_id), "accountType": account_type},
        )
        return self._parse(lambda b: payloads.to_account(payloads.unwrap(b)), body, "account", "/createAccount")

    async def get_statement(self, account_number: str) -> List[StatementEntry]:
        path = f"/account/{account_number}/statement"
        body = await self._request("GET", path)
        return self._parse(payloads.to_statement, body, "statement", path)

    # ------------------------------------------------------------------
    # Money movement (non-idempotent: callers must never retry these)
    # ------------------------------------------------------------------

    async def deposit(self, to_account: str, amount: Decimal) -> str:
        body = await self._request(
            "POST",
            "/deposit",
            json={"toAccount": to_account.strip(), "amount": _json_amount(amount)},
        )
        return payloads.to_message(body, "Deposit successful")

    async def withdraw(self, from_account: str, amount: Decimal) -> str:
        body = await self._request(
            "POST",
            "/withdraw",
            json={"fromAccount": from_account.strip(), "amount": _json_amount(amount)},
        )
        return payloads.to_message(body, "Withdrawal successful")

    async def transfer_funds(self, from_account: str, to_account: str, amount: Decimal) -> str:
        body = await self._request(
            "POST",
            "/transferFunds",
            json={
                "fromAccount": from_account.strip(),
                "toAccount": to_account.strip(),
                "amount": _json_amount(amount),
            },
        )
        return payloads.to_message(body, "Transfer successful")

    # ------------------------------------------------------------------
    # Fees
    # ------------------------------------------------------------------

    async def get_charges(self, kind: TransactionKind, amount: Decimal) -> Decimal:
        body = await self._request(
            "GET",
            "/charges",
            params={"amount": str(amount), "type": kind.charge_type},
        )
        return self._parse(lambda b: payloads.to_fee(b, kind), body, "charges", "/charges")

    async def get_transaction_costs(self, kind: TransactionKind) -> Decimal:
        body = await self._request("GET", "/transactionCosts")
        return self._parse(lambda b: payloads.to_fee(b, kind), body, "transaction cost", "/transactionCosts")

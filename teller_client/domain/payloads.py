"""Response-unwrapping helpers: backend JSON shapes -> domain types"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from teller_client.domain.models import Account, AccountType, Session, StatementEntry, TransactionKind

FEE_KEYS = {
    TransactionKind.DEPOSIT: ("transactionCost", "depositFee", "cost", "fee"),
    TransactionKind.WITHDRAW: ("transactionCost", "withdrawFee", "cost", "fee"),
    TransactionKind.TRANSFER: ("transactionCost", "transferFee", "cost", "fee"),
}


def unwrap(body: Any) -> Any:
    """Return `body["data"]` when the backend wrapped its payload, else the body itself"""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def _decimal(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"not a number: {value!r}")
    return amount


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def to_session(body: Any) -> Session:
    """
    Build a Session from a login response.

    Raises:
        ValueError: When the response lacks a token or customer id
    """
    payload = unwrap(body)
    if not isinstance(payload, dict):
        raise ValueError("login response is not an object")
    return Session(
        customer_id=_text(payload.get("customerId")) or "",
        token=_text(payload.get("token")) or "",
    )


def to_account(item: Dict[str, Any]) -> Account:
    balance = item.get("balance")
    return Account(
        account_number=str(item["accountNumber"]).strip(),
        account_type=str(item.get("accountType") or ""),
        balance=Decimal(0) if balance is None else _decimal(balance),
    )


def to_accounts(body: Any) -> List[Account]:
    payload = unwrap(body)
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ValueError("accounts payload is not a list")
    return [to_account(item) for item in payload]


def to_account_types(body: Any) -> List[AccountType]:
    payload = unwrap(body)
    if not isinstance(payload, list):
        raise ValueError("account types payload is not a list")
    types = []
    for index, item in enumerate(payload):
        if isinstance(item, str):
            types.append(AccountType(account_type_id=str(index), name=item))
        else:
            types.append(
                AccountType(
                    account_type_id=str(item.get("accountTypeId", index)),
                    name=str(item.get("accountType") or item.get("name")),
                )
            )
    return types


def to_statement(body: Any) -> List[StatementEntry]:
    payload = unwrap(body) or []
    if not isinstance(payload, list):
        raise ValueError("statement payload is not a list")
    return [
        StatementEntry(
            transaction_code=str(item.get("transactionCode") or ""),
            transaction_type=str(item.get("transactionType") or ""),
            amount=_decimal(item.get("amount", 0)),
            date=str(item.get("date") or ""),
            from_account=_text(item.get("fromAccount")),
            to_account=_text(item.get("toAccount")),
            account_type_id=_text(item.get("accountTypeId")),
        )
        for item in payload
    ]


def to_fee(body: Any, kind: TransactionKind) -> Decimal:
    """
    Read the fee for `kind` out of a charges or transactionCosts response.

    Raises:
        ValueError: When no recognizable fee field is present
    """
    payload = unwrap(body)
    if isinstance(payload, (int, float, str)) and not isinstance(payload, bool):
        return _decimal(payload)
    if isinstance(payload, dict):
        for key in FEE_KEYS[kind]:
            if payload.get(key) is not None:
                return _decimal(payload[key])
    raise ValueError(f"no fee for {kind.value} in response")


def to_message(body: Any, default: str) -> str:
    """Pick the acknowledgment message out of a mutation response"""
    if isinstance(body, dict):
        for candidate in (body, unwrap(body)):
            if isinstance(candidate, dict) and isinstance(candidate.get("message"), str):
                return candidate["message"]
    return default

"""Structural checks run on a draft before any network call"""

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from teller_client.domain.exceptions import ValidationError
from teller_client.domain.models import Account, TransactionDraft, TransactionKind


def parse_amount(value: Any) -> Decimal:
    """Coerce user input into a finite Decimal amount"""
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"invalid amount {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"invalid amount {value!r}")
    return amount


def _clean(account: Optional[str]) -> str:
    return (account or "").strip()


def normalize_draft(draft: TransactionDraft) -> TransactionDraft:
    """Trim account numbers, the same way the backend payloads are built"""
    try:
        kind = TransactionKind(draft.kind)
    except ValueError:
        raise ValidationError(f"unknown transaction kind {draft.kind!r}")
    return TransactionDraft(
        kind=kind,
        amount=parse_amount(draft.amount),
        from_account=_clean(draft.from_account) or None,
        to_account=_clean(draft.to_account) or None,
    )


def validate_draft(draft: TransactionDraft, accounts: Iterable[Account]) -> TransactionDraft:
    """
    Validate a draft against the cached account set.

    Rules:
    - amount > 0
    - Transfer: both accounts present and different
    - Deposit/Withdraw: the account is one of the cached accounts

    Returns the normalized draft.

    Raises:
        ValidationError: On the first violated rule
    """
    draft = normalize_draft(draft)

    if draft.amount <= 0:
        raise ValidationError("amount must be greater than zero")

    if draft.kind is TransactionKind.TRANSFER:
        if not draft.from_account or not draft.to_account:
            raise ValidationError("transfer requires both source and destination accounts")
        if draft.from_account == draft.to_account:
            raise ValidationError("same-account transfer")
        return draft

    account_number = draft.target_account
    if not account_number:
        side = "destination" if draft.kind is TransactionKind.DEPOSIT else "source"
        raise ValidationError(f"{draft.kind.value.lower()} requires a {side} account")

    known = {account.account_number for account in accounts}
    if account_number not in known:
        raise ValidationError(f"unknown account {account_number}")

    return draft

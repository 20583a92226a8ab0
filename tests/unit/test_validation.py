"""Unit tests for local draft validation"""

from decimal import Decimal

import pytest

from teller_client.domain.exceptions import ValidationError
from teller_client.domain.models import Account, TransactionDraft, TransactionKind
from teller_client.domain.validation import parse_amount, validate_draft

ACCOUNTS = [
    Account(account_number="001", account_type="Savings", balance=Decimal("500")),
    Account(account_number="002", account_type="Checking", balance=Decimal("200")),
]


def test_same_account_transfer_rejected():
    """Test same-account transfer fails with a Validation error"""
    draft = TransactionDraft(kind=TransactionKind.TRANSFER, amount=Decimal("50"), from_account="001", to_account="001")
    with pytest.raises(ValidationError) as exc_info:
        validate_draft(draft, ACCOUNTS)
    assert str(exc_info.value) == "Validation: same-account transfer"


def test_same_account_transfer_detected_after_trimming():
    draft = TransactionDraft(kind=TransactionKind.TRANSFER, amount=Decimal("50"), from_account=" 001", to_account="001 ")
    with pytest.raises(ValidationError, match="same-account transfer"):
        validate_draft(draft, ACCOUNTS)


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1"), Decimal("-0.01")])
def test_non_positive_amount_rejected(amount):
    draft = TransactionDraft(kind=TransactionKind.DEPOSIT, amount=amount, to_account="001")
    with pytest.raises(ValidationError, match="greater than zero"):
        validate_draft(draft, ACCOUNTS)


def test_transfer_requires_both_accounts():
    draft = TransactionDraft(kind=TransactionKind.TRANSFER, amount=Decimal("10"), from_account="001", to_account="")
    with pytest.raises(ValidationError, match="both source and destination"):
        validate_draft(draft, ACCOUNTS)


def test_transfer_to_foreign_account_allowed():
    """Test transfer destination need not be one of the customer's accounts"""
    draft = TransactionDraft(kind=TransactionKind.TRANSFER, amount=Decimal("10"), from_account="001", to_account="999")
    assert validate_draft(draft, ACCOUNTS).to_account == "999"


def test_withdraw_from_unknown_account_rejected():
    draft = TransactionDraft(kind=TransactionKind.WITHDRAW, amount=Decimal("10"), from_account="777")
    with pytest.raises(ValidationError, match="unknown account 777"):
        validate_draft(draft, ACCOUNTS)


def test_deposit_without_account_rejected():
    draft = TransactionDraft(kind=TransactionKind.DEPOSIT, amount=Decimal("10"))
    with pytest.raises(ValidationError, match="destination account"):
        validate_draft(draft, ACCOUNTS)


def test_deposit_against_empty_cache_rejected():
    draft = TransactionDraft(kind=TransactionKind.DEPOSIT, amount=Decimal("10"), to_account="001")
    with pytest.raises(ValidationError):
        validate_draft(draft, [])


def test_string_kind_and_amount_normalized():
    draft = TransactionDraft(kind="Deposit", amount="12.50", to_account="001")
    normalized = validate_draft(draft, ACCOUNTS)
    assert normalized.kind is TransactionKind.DEPOSIT
    assert normalized.amount == Decimal("12.50")


def test_unknown_kind_rejected():
    with pytest.raises(ValidationError, match="unknown transaction kind"):
        validate_draft(TransactionDraft(kind="Loan", amount=Decimal("1")), ACCOUNTS)


@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", None])
def test_parse_amount_rejects_garbage(value):
    with pytest.raises(ValidationError):
        parse_amount(value)


def test_parse_amount_float_keeps_short_repr():
    assert parse_amount(0.1) == Decimal("0.1")

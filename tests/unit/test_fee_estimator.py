"""Unit tests for fee previews"""

from decimal import Decimal

import pytest

from teller_client.domain.models import ErrorKind, TransactionDraft, TransactionKind
from teller_client.services.fees import FeeEstimator


async def test_preview_returns_backend_fee(logged_in, fake_bank):
    quote = await logged_in.fee_estimator.preview(TransactionKind.WITHDRAW, Decimal("100"))

    assert quote.fee == Decimal("5")
    assert quote.total == Decimal("105")
    assert quote.reliable is True
    method, path, _ = fake_bank.requests[-1]
    assert (method, path) == ("GET", "/charges")


@pytest.mark.parametrize(
    "override, reason",
    [
        ("network", ErrorKind.NETWORK),
        ((500, {"message": "boom"}), ErrorKind.SERVER_REJECTED),
        ((401, {"message": "expired"}), ErrorKind.AUTH_EXPIRED),
        ((200, "not json"), ErrorKind.UNKNOWN),
        ((200, {"data": {"transactionCost": -3}}), ErrorKind.UNKNOWN),
    ],
)
async def test_preview_degrades_to_zero_fee(logged_in, fake_bank, override, reason):
    """Test preview never raises: backend trouble yields a zero-fee quote"""
    fake_bank.overrides["/charges"] = override

    quote = await logged_in.fee_estimator.preview(TransactionKind.TRANSFER, Decimal("50"))

    assert quote.fee == Decimal("0")
    assert quote.total == Decimal("50")
    assert quote.reliable is False
    assert quote.degraded_by is reason


async def test_degraded_preview_is_logged(logged_in, fake_bank, caplog):
    fake_bank.overrides["/charges"] = "network"
    await logged_in.fee_estimator.preview(TransactionKind.DEPOSIT, Decimal("10"))
    assert "Fee preview unavailable" in caplog.text


async def test_preview_has_no_effect_on_accounts(logged_in):
    before = logged_in.account_cache.current()
    await logged_in.fee_estimator.preview(TransactionKind.DEPOSIT, Decimal("10"))
    assert logged_in.account_cache.current() == before
    assert logged_in.account_cache.generation == 1


async def test_transaction_costs_endpoint(logged_in):
    estimator = FeeEstimator(logged_in.client, endpoint="transactionCosts")
    quote = await estimator.preview("Transfer", Decimal("100"))
    assert quote.fee == Decimal("7")
    assert quote.total == Decimal("107")


async def test_quote_goes_stale_when_draft_changes(logged_in):
    quote = await logged_in.fee_estimator.preview(TransactionKind.DEPOSIT, Decimal("10"))
    assert quote.matches(TransactionDraft(kind=TransactionKind.DEPOSIT, amount=Decimal("10.00"), to_account="001"))
    assert not quote.matches(TransactionDraft(kind=TransactionKind.DEPOSIT, amount=Decimal("11"), to_account="001"))
    assert not quote.matches(TransactionDraft(kind=TransactionKind.WITHDRAW, amount=Decimal("10"), from_account="001"))

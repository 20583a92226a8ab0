"""Pydantic schemas for API request/response validation"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from teller_client.domain.models import Account, FeeQuote, TransactionDraft, TransactionKind, TransactionResult


class LoginRequest(BaseModel):
    """Request body for POST /v1/session/login"""

    username_or_email: str = Field(..., min_length=1, description="Username or email address")
    password: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    """Current session state (the token itself is never echoed back)"""

    authenticated: bool
    customer_id: Optional[str] = None


class AccountSchema(BaseModel):
    account_number: str
    account_type: str
    balance: Decimal

    @classmethod
    def from_domain(cls, account: Account) -> "AccountSchema":
        return cls(account_number=account.account_number, account_type=account.account_type, balance=account.balance)


class AccountsResponse(BaseModel):
    """Response for GET /v1/accounts and POST /v1/accounts/refresh"""

    accounts: List[AccountSchema]
    generation: int


class CreateAccountRequest(BaseModel):
    account_type: str = Field(..., min_length=1)


class AccountTypeSchema(BaseModel):
    account_type_id: str
    name: str


class StatementEntrySchema(BaseModel):
    transaction_code: str
    transaction_type: str
    amount: Decimal
    date: str
    from_account: Optional[str] = None
    to_account: Optional[str] = None
    account_type_id: Optional[str] = None


class FeeQuoteSchema(BaseModel):
    kind: TransactionKind
    amount: Decimal
    fee: Decimal
    total: Decimal
    reliable: bool

    @classmethod
    def from_domain(cls, quote: FeeQuote) -> "FeeQuoteSchema":
        return cls(kind=quote.kind, amount=quote.amount, fee=quote.fee, total=quote.total, reliable=quote.reliable)


class DraftRequest(BaseModel):
    """Request body for POST /v1/transactions and PUT /v1/transactions/{flow_id}"""

    kind: TransactionKind
    amount: Decimal
    from_account: Optional[str] = None
    to_account: Optional[str] = None

    def to_domain(self) -> TransactionDraft:
        return TransactionDraft(
            kind=self.kind,
            amount=self.amount,
            from_account=self.from_account,
            to_account=self.to_account,
        )


class PendingTransactionResponse(BaseModel):
    """A drafted and quoted flow waiting for confirm or cancel"""

    flow_id: str
    draft: DraftRequest
    quote: FeeQuoteSchema


class TransactionResultResponse(BaseModel):
    outcome: str
    message: str
    error_kind: Optional[str] = None
    warning: Optional[str] = None
    accounts: Optional[List[AccountSchema]] = None

    @classmethod
    def from_domain(cls, result: TransactionResult) -> "TransactionResultResponse":
        accounts = None
        if result.refreshed_accounts is not None:
            accounts = [AccountSchema.from_domain(a) for a in result.refreshed_accounts]
        return cls(
            outcome=result.outcome.value,
            message=result.message,
            error_kind=result.error.kind.value if result.error else None,
            warning=result.warning,
            accounts=accounts,
        )

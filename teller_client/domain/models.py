"""Domain models - pure Python dataclasses representing banking entities"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class TransactionKind(str, Enum):
    """Money-movement operations supported by the executor"""

    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    TRANSFER = "Transfer"

    @property
    def charge_type(self) -> str:
        """Value of the `type` query parameter understood by the charges endpoint"""
        return self.value.lower()


class Outcome(str, Enum):
    SUCCESS = "Success"
    FAILURE = "Failure"
    CANCELLED = "Cancelled"


class ErrorKind(str, Enum):
    """Normalized error taxonomy"""

    NETWORK = "Network"
    AUTH_EXPIRED = "AuthExpired"
    VALIDATION = "Validation"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    SERVER_REJECTED = "ServerRejected"
    UNKNOWN = "Unknown"


class ExecutorState(str, Enum):
    IDLE = "Idle"
    DRAFTING = "Drafting"
    QUOTED = "Quoted"
    AWAITING_CONFIRMATION = "AwaitingConfirmation"
    COMMITTING = "Committing"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


@dataclass(frozen=True)
class Session:
    """Authenticated identity and bearer credential of the current user"""

    customer_id: str
    token: str

    def __post_init__(self) -> None:
        # Partial sessions are not representable
        if not self.customer_id or not self.token:
            raise ValueError("Session requires both customer_id and token")

    @property
    def auth_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@dataclass(frozen=True)
class Account:
    """Bank account as last reported by the backend"""

    account_number: str
    account_type: str
    balance: Decimal


@dataclass(frozen=True)
class AccountType:
    account_type_id: str
    name: str


@dataclass(frozen=True)
class StatementEntry:
    """Single line of an account statement"""

    transaction_code: str
    transaction_type: str
    amount: Decimal
    date: str
    from_account: Optional[str] = None
    to_account: Optional[str] = None
    account_type_id: Optional[str] = None


@dataclass(frozen=True)
class TransactionDraft:
    """Unconfirmed description of a money-movement operation"""

    kind: TransactionKind
    amount: Decimal
    from_account: Optional[str] = None
    to_account: Optional[str] = None

    @property
    def target_account(self) -> Optional[str]:
        """Account whose existence is checked for single-account operations"""
        if self.kind is TransactionKind.DEPOSIT:
            return self.to_account
        if self.kind is TransactionKind.WITHDRAW:
            return self.from_account
        return None


@dataclass(frozen=True)
class ClassifiedError:
    """Normalized error value, independent of the backend's response shape"""

    kind: ErrorKind
    message: str
    http_status: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class FeeQuote:
    """Advisory fee preview for one draft"""

    kind: TransactionKind
    amount: Decimal
    fee: Decimal
    total: Decimal
    reliable: bool = True
    degraded_by: Optional[ErrorKind] = None

    def matches(self, draft: TransactionDraft) -> bool:
        """A quote is stale as soon as the draft's kind or amount differs"""
        return self.kind is draft.kind and self.amount == draft.amount


@dataclass(frozen=True)
class PendingConfirmation:
    """What the caller must acknowledge before a commit is issued"""

    draft: TransactionDraft
    quote: FeeQuote


@dataclass(frozen=True)
class TransactionResult:
    """Terminal value of one executor flow"""

    outcome: Outcome
    message: str
    refreshed_accounts: Optional[Tuple[Account, ...]] = None
    error: Optional[ClassifiedError] = None
    warning: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCESS

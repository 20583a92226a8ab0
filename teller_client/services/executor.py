"""TransactionExecutor - confirm-then-commit protocol for money movement"""

import logging
import time
from typing import List, Optional

from teller_client.domain.exceptions import BankAPIError, InvalidStateError
from teller_client.domain.models import (
    ClassifiedError,
    ErrorKind,
    ExecutorState,
    FeeQuote,
    Outcome,
    PendingConfirmation,
    TransactionDraft,
    TransactionKind,
    TransactionResult,
)
from teller_client.domain.validation import validate_draft
from teller_client.infrastructure.clients.bank import BankClient
from teller_client.infrastructure.observability.logging import log_transaction
from teller_client.infrastructure.observability.metrics import commit_latency_histogram, record_transaction
from teller_client.services.accounts import AccountCache
from teller_client.services.fees import FeeEstimator
from teller_client.services.session import SessionStore

logger = logging.getLogger(__name__)

STALE_BALANCES_WARNING = "Transaction completed, but balances could not be reloaded and may be out of date."

CANCELLABLE_STATES = (ExecutorState.DRAFTING, ExecutorState.QUOTED, ExecutorState.AWAITING_CONFIRMATION)
AMENDABLE_STATES = (ExecutorState.QUOTED, ExecutorState.AWAITING_CONFIRMATION)


class TransactionExecutor:
    """
    Drives one money-movement flow at a time through:

        Idle -> Drafting -> Quoted -> AwaitingConfirmation -> Committing
             -> Succeeded | Failed -> Idle

    No network call is made before `confirm()`, exactly one commit call is made
    per confirmed flow, and nothing is ever retried.
    """

    def __init__(
        self,
        session_store: SessionStore,
        account_cache: AccountCache,
        fee_estimator: FeeEstimator,
        client: BankClient,
    ):
        self.session_store = session_store
        self.account_cache = account_cache
        self.fee_estimator = fee_estimator
        self.client = client
        self._state = ExecutorState.IDLE
        self._draft: Optional[TransactionDraft] = None
        self._quote: Optional[FeeQuote] = None
        self._started_at: Optional[float] = None
        self.transitions: List[ExecutorState] = [ExecutorState.IDLE]

    @property
    def state(self) -> ExecutorState:
        return self._state

    @property
    def draft(self) -> Optional[TransactionDraft]:
        return self._draft

    @property
    def quote(self) -> Optional[FeeQuote]:
        return self._quote

    @property
    def started_at(self) -> Optional[float]:
        """Epoch seconds when the current flow began, None while Idle"""
        return self._started_at

    def _enter(self, state: ExecutorState) -> None:
        self._state = state
        self.transitions.append(state)

    def _require(self, *states: ExecutorState) -> None:
        if self._state not in states:
            expected = ", ".join(s.value for s in states)
            raise InvalidStateError(f"cannot do that while {self._state.value} (expected {expected})")

    def _reset(self) -> None:
        self._draft = None
        self._quote = None
        self._started_at = None
        self._enter(ExecutorState.IDLE)

    # ------------------------------------------------------------------
    # Drafting and quoting
    # ------------------------------------------------------------------

    def begin(self, draft: TransactionDraft) -> TransactionDraft:
        """
        Idle -> Drafting.

        Raises:
            ValidationError: The draft fails a structural check; state stays Idle
            InvalidStateError: Another flow is in progress
        """
        self._require(ExecutorState.IDLE)
        draft = validate_draft(draft, self.account_cache.current())
        self._draft = draft
        self._started_at = time.time()
        self._enter(ExecutorState.DRAFTING)
        return draft

    async def request_quote(self) -> PendingConfirmation:
        """Drafting -> Quoted -> AwaitingConfirmation"""
        self._require(ExecutorState.DRAFTING)
        draft = self._draft
        quote = await self.fee_estimator.preview(draft.kind, draft.amount)
        if self._draft is not draft or self._state is not ExecutorState.DRAFTING:
            raise InvalidStateError("draft changed while the quote was being computed")
        self._quote = quote
        self._enter(ExecutorState.QUOTED)
        self._enter(ExecutorState.AWAITING_CONFIRMATION)
        return PendingConfirmation(draft=draft, quote=quote)

    async def prepare(self, draft: TransactionDraft) -> PendingConfirmation:
        """Validate and quote a draft, stopping at the confirmation gate"""
        self.begin(draft)
        return await self.request_quote()

    async def amend(self, draft: TransactionDraft) -> PendingConfirmation:
        """
        Replace the pending draft; the previous quote is discarded and a new one computed.

        An invalid replacement raises ValidationError and leaves the pending flow as it was.
        """
        self._require(*AMENDABLE_STATES)
        draft = validate_draft(draft, self.account_cache.current())
        self._draft = draft
        self._quote = None
        self._enter(ExecutorState.DRAFTING)
        return await self.request_quote()

    # ------------------------------------------------------------------
    # Confirmation gate
    # ------------------------------------------------------------------

    def cancel(self) -> TransactionResult:
        """Abandon the flow before commit; never touches the network or the account cache"""
        self._require(*CANCELLABLE_STATES)
        draft = self._draft
        result = TransactionResult(outcome=Outcome.CANCELLED, message="Operation cancelled.")
        self._finish(draft, result)
        return result

    async def confirm(self) -> TransactionResult:
        """
        AwaitingConfirmation -> Committing -> Succeeded | Failed -> Idle.

        Issues exactly one commit call. A second `confirm()` while the first is in
        flight raises InvalidStateError instead of submitting twice.
        """
        self._require(ExecutorState.AWAITING_CONFIRMATION)
        draft, quote = self._draft, self._quote
        if quote is None or not quote.matches(draft):
            raise InvalidStateError("quote is stale; request a new quote before confirming")

        session = self.session_store.current
        if session is None:
            self._enter(ExecutorState.FAILED)
            error = ClassifiedError(kind=ErrorKind.AUTH_EXPIRED, message="No active session. Please log in.")
            result = TransactionResult(outcome=Outcome.FAILURE, message=error.message, error=error)
            self._finish(draft, result)
            return result

        self._enter(ExecutorState.COMMITTING)
        try:
            with commit_latency_histogram.time():
                message = await self._commit(draft)
        except BankAPIError as e:
            self._enter(ExecutorState.FAILED)
            self.session_store.expire_if_rejected(e.error)
            result = TransactionResult(outcome=Outcome.FAILURE, message=e.error.message, error=e.error)
            self._finish(draft, result)
            return result

        # The caller must not see success before the cache reflects the mutation
        warning = None
        refreshed = None
        try:
            refreshed = tuple(await self.account_cache.refresh(session.customer_id))
        except BankAPIError as e:
            warning = STALE_BALANCES_WARNING
            logger.warning(f"Post-commit refresh failed: {e}")
            self.session_store.expire_if_rejected(e.error)

        self._enter(ExecutorState.SUCCEEDED)
        result = TransactionResult(
            outcome=Outcome.SUCCESS,
            message=message,
            refreshed_accounts=refreshed,
            warning=warning,
            details={"fee": str(quote.fee), "total": str(quote.total), "fee_reliable": quote.reliable},
        )
        self._finish(draft, result)
        return result

    async def _commit(self, draft: TransactionDraft) -> str:
        if draft.kind is TransactionKind.DEPOSIT:
            return await self.client.deposit(draft.to_account, draft.amount)
        if draft.kind is TransactionKind.WITHDRAW:
            return await self.client.withdraw(draft.from_account, draft.amount)
        return await self.client.transfer_funds(draft.from_account, draft.to_account, draft.amount)

    def _finish(self, draft: Optional[TransactionDraft], result: TransactionResult) -> None:
        kind = draft.kind.value if draft else "unknown"
        duration_ms = (time.time() - self._started_at) * 1000 if self._started_at else 0.0
        record_transaction(kind, result.outcome.value)
        log_transaction(
            kind=kind,
            outcome=result.outcome.value,
            amount=str(draft.amount) if draft else "",
            fee=str(self._quote.fee) if self._quote else None,
            duration_ms=duration_ms,
            error_kind=result.error.kind.value if result.error else None,
            warning=result.warning,
        )
        self._reset()

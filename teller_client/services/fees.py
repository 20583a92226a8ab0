"""FeeEstimator - advisory fee previews that never block the operation"""

import logging
from decimal import Decimal
from typing import Any

from teller_client.config import settings
from teller_client.domain.exceptions import BankAPIError
from teller_client.domain.models import ErrorKind, FeeQuote, TransactionKind
from teller_client.infrastructure.clients.bank import BankClient
from teller_client.infrastructure.observability.metrics import fee_preview_degraded_counter

logger = logging.getLogger(__name__)


class FeeEstimator:
    """Previews the cost of a prospective transaction without committing it"""

    def __init__(self, client: BankClient, endpoint: str | None = None):
        self.client = client
        self.endpoint = endpoint or settings.fee_endpoint

    async def preview(self, kind: Any, amount: Decimal) -> FeeQuote:
        """
        Quote the fee for `kind` and `amount`.

        Never raises on backend trouble: an unreachable or failing backend yields a
        zero-fee quote flagged as unreliable.
        """
        kind = TransactionKind(kind)
        try:
            if self.endpoint == "transactionCosts":
                fee = await self.client.get_transaction_costs(kind)
            else:
                fee = await self.client.get_charges(kind, amount)
        except BankAPIError as e:
            return self._degraded(kind, amount, e.kind)

        if fee < 0:
            return self._degraded(kind, amount, ErrorKind.UNKNOWN)

        return FeeQuote(kind=kind, amount=amount, fee=fee, total=amount + fee)

    def _degraded(self, kind: TransactionKind, amount: Decimal, reason: ErrorKind) -> FeeQuote:
        fee_preview_degraded_counter.labels(error_kind=reason.value).inc()
        logger.warning(
            "Fee preview unavailable, assuming zero fee",
            extra={"transaction_kind": kind.value, "error_kind": reason.value},
        )
        return FeeQuote(
            kind=kind,
            amount=amount,
            fee=Decimal(0),
            total=amount,
            reliable=False,
            degraded_by=reason,
        )

"""AccountCache - latest known account set of the current session"""

import logging
from typing import List, Optional, Tuple

from teller_client.domain.exceptions import BankAPIError, ValidationError
from teller_client.domain.models import Account, AccountType, StatementEntry
from teller_client.infrastructure.clients.bank import BankClient

logger = logging.getLogger(__name__)


class AccountCache:
    """
    Holds the account set of the last successful fetch.

    The set is only ever replaced wholesale by `refresh`; balances are never
    patched locally.
    """

    def __init__(self, client: BankClient):
        self.client = client
        self._accounts: Tuple[Account, ...] = ()
        self._generation = 0
        self._tickets_issued = 0
        self._applied_ticket = 0

    @property
    def generation(self) -> int:
        """Number of successful refreshes applied since the last invalidation"""
        return self._generation

    def current(self) -> List[Account]:
        return list(self._accounts)

    def find(self, account_number: str) -> Optional[Account]:
        account_number = account_number.strip()
        for account in self._accounts:
            if account.account_number == account_number:
                return account
        return None

    def invalidate(self) -> None:
        self._accounts = ()
        self._generation = 0
        self._applied_ticket = self._tickets_issued

    async def refresh(self, customer_id: str) -> List[Account]:
        """
        Fetch the authoritative account set and replace the cache.

        A failed fetch leaves the previous set in place. When two refreshes
        overlap, a response older than the one already applied is discarded.

        Raises:
            BankAPIError: Fetch failed; the cache is unchanged
        """
        self._tickets_issued += 1
        ticket = self._tickets_issued

        accounts = tuple(await self.client.get_accounts(customer_id))

        numbers = [account.account_number for account in accounts]
        if len(set(numbers)) != len(numbers):
            logger.warning("Backend returned duplicate account numbers", extra={"customer_id": customer_id})

        if ticket > self._applied_ticket:
            self._accounts = accounts
            self._applied_ticket = ticket
            self._generation += 1
        else:
            logger.info("Discarding account set from an outdated refresh", extra={"customer_id": customer_id})
        return list(self._accounts)

    async def account_types(self) -> List[AccountType]:
        return await self.client.get_account_types()

    async def open_account(self, customer_id: str, account_type: str) -> Account:
        """Create an account, then reload the whole set so the new one shows up"""
        if not account_type:
            raise ValidationError("account type is required")
        account = await self.client.create_account(customer_id, account_type)
        try:
            await self.refresh(customer_id)
        except BankAPIError as e:
            logger.warning(f"Account {account.account_number} created but reload failed: {e}")
        return account

    async def statement(self, account_number: str) -> List[StatementEntry]:
        if not account_number or not account_number.strip():
            raise ValidationError("account number is required")
        return await self.client.get_statement(account_number.strip())

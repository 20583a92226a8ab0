"""Wiring of the process-wide client components"""

from dataclasses import dataclass

import httpx

from teller_client.infrastructure.clients.bank import BankClient
from teller_client.infrastructure.database.session import create_session_factory, create_storage_engine
from teller_client.services.accounts import AccountCache
from teller_client.services.executor import TransactionExecutor
from teller_client.services.fees import FeeEstimator
from teller_client.services.session import SessionStore


@dataclass
class Services:
    """One SessionStore and AccountCache per process, shared by every flow"""

    client: BankClient
    session_store: SessionStore
    account_cache: AccountCache
    fee_estimator: FeeEstimator

    def new_executor(self) -> TransactionExecutor:
        """Each user-initiated flow gets its own state machine"""
        return TransactionExecutor(self.session_store, self.account_cache, self.fee_estimator, self.client)


def build_services(
    storage_url: str | None = None,
    bank_api_base: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    restore: bool = True,
) -> Services:
    """Create the components and restore any persisted session"""
    session_factory = create_session_factory(create_storage_engine(storage_url))

    session_store: SessionStore
    client = BankClient(
        base_url=bank_api_base,
        auth_header=lambda: session_store.current_auth_header(),
        transport=transport,
    )
    session_store = SessionStore(client, session_factory)
    account_cache = AccountCache(client)
    session_store.add_logout_listener(account_cache.invalidate)

    if restore:
        session_store.restore_from_persistence()

    return Services(
        client=client,
        session_store=session_store,
        account_cache=account_cache,
        fee_estimator=FeeEstimator(client),
    )

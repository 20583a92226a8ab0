"""Account endpoints: cached view, reload, opening and statements"""

import logging
from typing import List
from fastapi import APIRouter, Depends, Request

from teller_client.api.dependencies import get_request_id, get_services, to_http_exception
from teller_client.api.v1.schemas import (
    AccountSchema,
    AccountsResponse,
    AccountTypeSchema,
    CreateAccountRequest,
    StatementEntrySchema,
)
from teller_client.domain.exceptions import BankAPIError, BankingError
from teller_client.services.container import Services

router = APIRouter()


def _accounts_response(services: Services) -> AccountsResponse:
    return AccountsResponse(
        accounts=[AccountSchema.from_domain(a) for a in services.account_cache.current()],
        generation=services.account_cache.generation,
    )


@router.get("/accounts", response_model=AccountsResponse)
def cached_accounts(services: Services = Depends(get_services)):
    """Last successfully fetched account set; no network call"""
    return _accounts_response(services)


@router.post("/accounts/refresh", response_model=AccountsResponse)
async def refresh_accounts(request: Request, services: Services = Depends(get_services)):
    """Reload the account set; on failure the previous set stays cached"""
    try:
        session = services.session_store.require_session()
        await services.account_cache.refresh(session.customer_id)
    except BankAPIError as e:
        services.session_store.expire_if_rejected(e.error)
        logging.warning(f"Account refresh failed: {e}", extra={"request_id": get_request_id(request)})
        raise to_http_exception(e)
    except BankingError as e:
        raise to_http_exception(e)
    return _accounts_response(services)


@router.post("/accounts", response_model=AccountSchema, status_code=201)
async def open_account(request_body: CreateAccountRequest, services: Services = Depends(get_services)):
    try:
        session = services.session_store.require_session()
        account = await services.account_cache.open_account(session.customer_id, request_body.account_type)
    except BankAPIError as e:
        services.session_store.expire_if_rejected(e.error)
        raise to_http_exception(e)
    except BankingError as e:
        raise to_http_exception(e)
    return AccountSchema.from_domain(account)


@router.get("/account-types", response_model=List[AccountTypeSchema])
async def account_types(services: Services = Depends(get_services)):
    try:
        types = await services.account_cache.account_types()
    except BankingError as e:
        raise to_http_exception(e)
    return [AccountTypeSchema(account_type_id=t.account_type_id, name=t.name) for t in types]


@router.get("/accounts/{account_number}/statement", response_model=List[StatementEntrySchema])
async def statement(account_number: str, services: Services = Depends(get_services)):
    try:
        services.session_store.require_session()
        entries = await services.account_cache.statement(account_number)
    except BankAPIError as e:
        services.session_store.expire_if_rejected(e.error)
        raise to_http_exception(e)
    except BankingError as e:
        raise to_http_exception(e)
    return [
        StatementEntrySchema(
            transaction_code=entry.transaction_code,
            transaction_type=entry.transaction_type,
            amount=entry.amount,
            date=entry.date,
            from_account=entry.from_account,
            to_account=entry.to_account,
            account_type_id=entry.account_type_id,
        )
        for entry in entries
    ]

"""POST /v1/session/login, POST /v1/session/logout, GET /v1/session"""

import logging
from fastapi import APIRouter, Depends, Request

from teller_client.api.dependencies import get_request_id, get_services, to_http_exception
from teller_client.api.v1.schemas import LoginRequest, SessionResponse
from teller_client.domain.exceptions import BankingError
from teller_client.services.container import Services

router = APIRouter()


@router.post("/session/login", response_model=SessionResponse)
async def login(
    request_body: LoginRequest,
    request: Request,
    services: Services = Depends(get_services),
):
    """
    Authenticate and make the session the process-wide credential.

    After login the account cache is loaded so the caller can draft transactions
    against known accounts straight away.
    """
    request_id = get_request_id(request)
    previous = services.session_store.current
    try:
        session = await services.session_store.login(request_body.username_or_email, request_body.password)
    except BankingError as e:
        logging.warning(f"Login failed: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    if previous is not None and previous != session:
        request.app.state.flows.clear()

    try:
        await services.account_cache.refresh(session.customer_id)
    except BankingError as e:
        logging.warning(f"Initial account load failed: {e}", extra={"request_id": request_id})

    return SessionResponse(authenticated=True, customer_id=session.customer_id)


@router.post("/session/logout", response_model=SessionResponse)
def logout(request: Request, services: Services = Depends(get_services)):
    services.session_store.logout()
    request.app.state.flows.clear()
    return SessionResponse(authenticated=False)


@router.get("/session", response_model=SessionResponse)
def current_session(services: Services = Depends(get_services)):
    session = services.session_store.current
    if session is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(authenticated=True, customer_id=session.customer_id)

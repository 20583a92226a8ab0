"""Transaction endpoints: fee preview and the draft/confirm/cancel flow"""

import time
import uuid
import logging
from decimal import Decimal
from typing import Dict
from fastapi import APIRouter, Depends, HTTPException, Request

from teller_client.api.dependencies import get_flows, get_request_id, get_services, to_http_exception
from teller_client.api.v1.schemas import (
    DraftRequest,
    FeeQuoteSchema,
    PendingTransactionResponse,
    TransactionResultResponse,
)
from teller_client.config import settings
from teller_client.domain.exceptions import BankingError
from teller_client.domain.models import ExecutorState, PendingConfirmation, TransactionKind
from teller_client.services.container import Services
from teller_client.services.executor import CANCELLABLE_STATES, TransactionExecutor

router = APIRouter()


def _pending_response(flow_id: str, pending: PendingConfirmation) -> PendingTransactionResponse:
    draft = pending.draft
    return PendingTransactionResponse(
        flow_id=flow_id,
        draft=DraftRequest(
            kind=draft.kind,
            amount=draft.amount,
            from_account=draft.from_account,
            to_account=draft.to_account,
        ),
        quote=FeeQuoteSchema.from_domain(pending.quote),
    )


def _evict_expired(flows: Dict[str, TransactionExecutor]) -> None:
    """Cancel and drop flows abandoned before commit; a flow that is committing is never touched"""
    cutoff = time.time() - settings.flow_ttl_seconds
    for flow_id, executor in list(flows.items()):
        started_at = executor.started_at
        if executor.state in CANCELLABLE_STATES and started_at is not None and started_at <= cutoff:
            executor.cancel()
            flows.pop(flow_id, None)
            logging.info(f"Expired pending transaction flow {flow_id}")


def _get_flow(flows: Dict[str, TransactionExecutor], flow_id: str) -> TransactionExecutor:
    _evict_expired(flows)
    executor = flows.get(flow_id)
    if executor is None:
        raise HTTPException(status_code=404, detail="Transaction flow not found")
    return executor


@router.get("/fees/preview", response_model=FeeQuoteSchema)
async def preview_fee(kind: TransactionKind, amount: Decimal, services: Services = Depends(get_services)):
    """Advisory quote; falls back to a zero fee flagged as unreliable"""
    quote = await services.fee_estimator.preview(kind, amount)
    return FeeQuoteSchema.from_domain(quote)


@router.post("/transactions", response_model=PendingTransactionResponse, status_code=201)
async def draft_transaction(
    request_body: DraftRequest,
    request: Request,
    services: Services = Depends(get_services),
    flows: Dict[str, TransactionExecutor] = Depends(get_flows),
):
    """
    Validate and quote a transaction, then stop at the confirmation gate.

    Nothing is committed until POST /v1/transactions/{flow_id}/confirm.
    """
    if services.session_store.current is None:
        raise HTTPException(status_code=401, detail={"error_kind": "AuthExpired", "message": "Please log in."})

    executor = services.new_executor()
    try:
        pending = await executor.prepare(request_body.to_domain())
    except BankingError as e:
        logging.info(f"Draft rejected: {e}", extra={"request_id": get_request_id(request)})
        raise to_http_exception(e)

    _evict_expired(flows)
    flow_id = str(uuid.uuid4())
    flows[flow_id] = executor
    return _pending_response(flow_id, pending)


@router.put("/transactions/{flow_id}", response_model=PendingTransactionResponse)
async def amend_transaction(
    flow_id: str,
    request_body: DraftRequest,
    flows: Dict[str, TransactionExecutor] = Depends(get_flows),
):
    """Change amount, kind or accounts of a pending flow; the quote is recomputed"""
    executor = _get_flow(flows, flow_id)
    try:
        pending = await executor.amend(request_body.to_domain())
    except BankingError as e:
        raise to_http_exception(e)
    return _pending_response(flow_id, pending)


@router.post("/transactions/{flow_id}/confirm", response_model=TransactionResultResponse)
async def confirm_transaction(
    flow_id: str,
    request: Request,
    flows: Dict[str, TransactionExecutor] = Depends(get_flows),
):
    executor = _get_flow(flows, flow_id)
    try:
        result = await executor.confirm()
    except BankingError as e:
        raise to_http_exception(e)
    finally:
        if executor.state is ExecutorState.IDLE:
            flows.pop(flow_id, None)

    if not result.succeeded:
        logging.info(f"Transaction failed: {result.message}", extra={"request_id": get_request_id(request)})
    return TransactionResultResponse.from_domain(result)


@router.post("/transactions/{flow_id}/cancel", response_model=TransactionResultResponse)
def cancel_transaction(flow_id: str, flows: Dict[str, TransactionExecutor] = Depends(get_flows)):
    executor = _get_flow(flows, flow_id)
    try:
        result = executor.cancel()
    except BankingError as e:
        raise to_http_exception(e)
    flows.pop(flow_id, None)
    return TransactionResultResponse.from_domain(result)

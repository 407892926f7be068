"""Payout request endpoints"""

import logging
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from octobooks_royalties.api.v1.schemas import (
    PayoutCreateRequest,
    PayoutListResponse,
    PayoutProcessRequest,
    PayoutResponse,
)
from octobooks_royalties.api.dependencies import get_payout_gateway, get_request_id
from octobooks_royalties.infrastructure.clients.payout_gateway import PayoutGatewayClient
from octobooks_royalties.infrastructure.database.models import PayoutRequestRecord
from octobooks_royalties.infrastructure.database.session import get_db
from octobooks_royalties.domain.exceptions import EntityNotFound, PersistenceFailure, ValidationFailure
from octobooks_royalties.domain.models import PayoutRole, PayoutStatus
from octobooks_royalties.services.payouts import PayoutService

router = APIRouter()


def _to_response(record: PayoutRequestRecord) -> PayoutResponse:
    return PayoutResponse(
        request_id=str(record.id),
        user_id=record.user_id,
        user_name=record.user_name,
        role=record.role,
        amount_cents=record.amount_cents,
        status=record.status,
        payment_method=record.payment_method,
        payment_details=record.payment_details or {},
        notes=record.notes,
        requested_at=record.requested_at,
        processed_at=record.processed_at,
    )


@router.post("/payouts", response_model=PayoutResponse, status_code=201)
def create_payout(request_body: PayoutCreateRequest, db: Session = Depends(get_db)):
    """Open a pending payout request for an author or publisher"""
    service = PayoutService(db)
    try:
        request_id = service.create_payout_request(
            user_id=request_body.user_id,
            user_name=request_body.user_name,
            role=request_body.role,
            amount_cents=request_body.amount_cents,
            payment_method=request_body.payment_method,
            payment_details=request_body.payment_details,
        )
    except ValidationFailure as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceFailure:
        raise HTTPException(status_code=503, detail="Payout request could not be saved")

    return _to_response(service.get_payout_request(request_id))


@router.get("/payouts", response_model=PayoutListResponse)
def list_payouts(
    status: Optional[PayoutStatus] = Query(None),
    role: Optional[PayoutRole] = Query(None),
    db: Session = Depends(get_db),
):
    """Payout requests, newest first"""
    records = PayoutService(db).list_payout_requests(status=status, role=role)
    return PayoutListResponse(payouts=[_to_response(r) for r in records])


@router.post("/payouts/{request_id}/process", response_model=PayoutResponse)
def process_payout(
    request_id: str,
    request_body: PayoutProcessRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    gateway: PayoutGatewayClient = Depends(get_payout_gateway),
):
    """
    Approve or reject a pending payout request.

    Approval schedules a PAYOUT_APPROVED webhook to the payment provider;
    the transfer itself happens there and is confirmed via /paid.
    """
    try:
        record = PayoutService(db).process_payout_request(request_id, request_body.status, request_body.notes)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationFailure as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceFailure:
        raise HTTPException(status_code=503, detail="Payout request could not be updated")

    if record.status == PayoutStatus.APPROVED.value:
        background_tasks.add_task(
            gateway.send_payout_event,
            {
                "event": "PAYOUT_APPROVED",
                "request_id": str(record.id),
                "user_id": record.user_id,
                "role": record.role,
                "amount_cents": record.amount_cents,
                "payment_method": record.payment_method,
                "payment_details": record.payment_details,
            },
        )
        logging.info("Payout approval event scheduled", extra={"request_id": get_request_id(request)})

    return _to_response(record)


@router.post("/payouts/{request_id}/paid", response_model=PayoutResponse)
def confirm_payout_paid(request_id: str, db: Session = Depends(get_db)):
    """Mark an approved payout as paid once the provider confirms the transfer"""
    try:
        record = PayoutService(db).mark_payout_paid(request_id)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationFailure as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceFailure:
        raise HTTPException(status_code=503, detail="Payout request could not be updated")

    return _to_response(record)

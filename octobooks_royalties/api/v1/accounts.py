"""Author and publisher endpoints: registration and balances"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from octobooks_royalties.api.v1.schemas import (
    AuthorCreateRequest,
    AuthorResponse,
    BalanceResponse,
    PublisherCreateRequest,
    PublisherResponse,
)
from octobooks_royalties.api.dependencies import get_royalty_config
from octobooks_royalties.infrastructure.database.session import get_db
from octobooks_royalties.domain.exceptions import EntityNotFound, PersistenceFailure, ValidationFailure
from octobooks_royalties.domain.models import RoyaltyConfig
from octobooks_royalties.services.registry import register_author, register_publisher
from octobooks_royalties.services.sale_recorder import SaleRecorder

router = APIRouter()


@router.post("/authors", response_model=AuthorResponse, status_code=status.HTTP_201_CREATED)
def create_author(request_body: AuthorCreateRequest, db: Session = Depends(get_db)):
    """Register an author; the user wallet link is resolved here by email when not given"""
    try:
        author = register_author(
            db,
            name=request_body.name,
            email=request_body.email,
            royalty_rate=request_body.royalty_rate,
            user_id=request_body.user_id,
        )
    except ValidationFailure as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceFailure:
        raise HTTPException(status_code=503, detail="Author could not be saved")

    return AuthorResponse(
        author_id=author.id,
        name=author.name,
        email=author.email,
        royalty_rate=author.royalty_rate,
        user_id=author.user_id,
        total_earnings_cents=author.total_earnings_cents,
    )


@router.post("/publishers", response_model=PublisherResponse, status_code=status.HTTP_201_CREATED)
def create_publisher(request_body: PublisherCreateRequest, db: Session = Depends(get_db)):
    try:
        publisher = register_publisher(
            db,
            name=request_body.name,
            contact_email=request_body.contact_email,
            royalty_rate=request_body.royalty_rate,
        )
    except ValidationFailure as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PersistenceFailure:
        raise HTTPException(status_code=503, detail="Publisher could not be saved")

    return PublisherResponse(
        publisher_id=publisher.id,
        name=publisher.name,
        contact_email=publisher.contact_email,
        royalty_rate=publisher.royalty_rate,
        total_earnings_cents=publisher.total_earnings_cents,
    )


@router.get("/authors/{author_id}/royalty-balance", response_model=BalanceResponse)
def get_author_balance(
    author_id: str,
    db: Session = Depends(get_db),
    config: RoyaltyConfig = Depends(get_royalty_config),
):
    """Running author balance next to the sum of royalties over recorded sales"""
    try:
        total, recorded = SaleRecorder(db, config).reconcile_author(author_id)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return BalanceResponse(entity_id=author_id, total_earnings_cents=total, recorded_sales_cents=recorded)


@router.get("/publishers/{publisher_id}/earnings", response_model=BalanceResponse)
def get_publisher_earnings(
    publisher_id: str,
    db: Session = Depends(get_db),
    config: RoyaltyConfig = Depends(get_royalty_config),
):
    try:
        total, recorded = SaleRecorder(db, config).reconcile_publisher(publisher_id)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return BalanceResponse(entity_id=publisher_id, total_earnings_cents=total, recorded_sales_cents=recorded)

"""POST /v1/sales - record an order's line items and allocate royalties"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from octobooks_royalties.api.v1.schemas import RecordSalesRequest, RecordSalesResponse
from octobooks_royalties.api.dependencies import get_request_id, get_royalty_config
from octobooks_royalties.infrastructure.database.session import get_db
from octobooks_royalties.domain.models import Book, Order, OrderLine, RoyaltyConfig
from octobooks_royalties.domain.exceptions import EntityNotFound, PersistenceFailure, ValidationFailure
from octobooks_royalties.services.sale_recorder import SaleRecorder

router = APIRouter()


@router.post("/sales", response_model=RecordSalesResponse, status_code=status.HTTP_201_CREATED)
def record_sales(
    request_body: RecordSalesRequest,
    request: Request,
    db: Session = Depends(get_db),
    config: RoyaltyConfig = Depends(get_royalty_config),
):
    """
    Record one sale per order line item and allocate royalties.

    Flow:
    1. Resolve author and publisher for every line
    2. Split each line between platform, author and publisher
    3. Insert sale rows and increment balances in one transaction
    4. Return the sale ids (existing ids for lines already recorded)
    """
    start_time = time.time()
    request_id = get_request_id(request)

    order = Order(
        order_id=request_body.order_id,
        user_id=request_body.user_id,
        lines=[
            OrderLine(
                book=Book(
                    book_id=line.book_id,
                    title=line.title,
                    author_id=line.author_id,
                    publisher_id=line.publisher_id,
                    final_price_cents=line.final_price_cents,
                ),
                quantity=line.quantity,
            )
            for line in request_body.lines
        ],
    )

    try:
        sale_ids = SaleRecorder(db, config).record_order(order)

    except EntityNotFound as e:
        logging.warning(f"Sale recording aborted: {e}", extra={"request_id": request_id, "order_id": order.order_id})
        raise HTTPException(status_code=404, detail=str(e))

    except ValidationFailure as e:
        logging.warning(f"Invalid sale: {e}", extra={"request_id": request_id, "order_id": order.order_id})
        raise HTTPException(status_code=422, detail=str(e))

    except PersistenceFailure as e:
        logging.error(f"Persistence error: {e}", extra={"request_id": request_id, "order_id": order.order_id})
        raise HTTPException(status_code=503, detail="Sale could not be recorded")

    logging.info(
        "Order sales recorded",
        extra={
            "request_id": request_id,
            "order_id": order.order_id,
            "line_count": len(sale_ids),
            "duration_ms": (time.time() - start_time) * 1000,
        },
    )
    return RecordSalesResponse(order_id=order.order_id, sale_ids=sale_ids)

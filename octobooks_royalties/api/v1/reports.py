"""GET /v1/sales, /v1/sales/export, /v1/reports/monthly - sales reporting endpoints"""

import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from octobooks_royalties.api.v1.schemas import (
    MonthlyReportResponse,
    PeriodSchema,
    SaleSchema,
    SalesReportResponse,
)
from octobooks_royalties.api.dependencies import get_request_id
from octobooks_royalties.infrastructure.database.session import get_db
from octobooks_royalties.domain.export import ExportVariant, export_sales_csv
from octobooks_royalties.domain.exceptions import PersistenceFailure
from octobooks_royalties.domain.models import ReportScope, Sale
from octobooks_royalties.services.reporting import get_sales_report, monthly_report
from octobooks_royalties.utils.date_utils import utc_now

router = APIRouter()


def _to_schema(sale: Sale) -> SaleSchema:
    return SaleSchema(
        sale_id=sale.sale_id,
        book_id=sale.book_id,
        book_title=sale.book_title,
        author_id=sale.author_id,
        author_name=sale.author_name,
        publisher_id=sale.publisher_id,
        publisher_name=sale.publisher_name,
        order_id=sale.order_id,
        quantity=sale.quantity,
        sale_amount_cents=sale.sale_amount_cents,
        platform_fee_cents=sale.platform_fee_cents,
        author_royalty_cents=sale.author_royalty_cents,
        publisher_share_cents=sale.publisher_share_cents,
        net_amount_cents=sale.net_amount_cents,
        date=sale.date,
    )


@router.get("/sales", response_model=SalesReportResponse)
def list_sales(
    request: Request,
    author_id: Optional[str] = Query(None),
    publisher_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None, description="Inclusive lower bound"),
    end: Optional[datetime] = Query(None, description="Inclusive upper bound"),
    limit: Optional[int] = Query(None, gt=0, le=1000),
    db: Session = Depends(get_db),
):
    """Recorded sales, newest first"""
    try:
        sales = get_sales_report(db, author_id=author_id, publisher_id=publisher_id, start=start, end=end, limit=limit)
    except PersistenceFailure as e:
        logging.error(f"Sales report failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Sales report unavailable")

    return SalesReportResponse(sales=[_to_schema(s) for s in sales])


@router.get("/sales/export")
def export_sales(
    request: Request,
    variant: ExportVariant = Query(ExportVariant.ADMIN),
    author_id: Optional[str] = Query(None),
    publisher_id: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Download sales as CSV.

    The admin variant lists ids, the author and publisher variants list
    book titles and names.
    """
    try:
        sales = get_sales_report(db, author_id=author_id, publisher_id=publisher_id, start=start, end=end)
    except PersistenceFailure as e:
        logging.error(f"Sales export failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Sales export unavailable")

    filename = f"{variant.value}-sales-report-{utc_now().date().isoformat()}.csv"
    return Response(
        content=export_sales_csv(sales, variant),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/reports/monthly", response_model=MonthlyReportResponse)
def get_monthly_report(
    scope: ReportScope = Query(ReportScope.PLATFORM),
    selector_id: Optional[str] = Query(None, description="Author or publisher id, depending on scope"),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Monthly sales summary for the dashboards.

    Falls back to sample data (is_sample=true) when sales cannot be loaded.
    """
    if scope != ReportScope.PLATFORM and not selector_id:
        raise HTTPException(status_code=422, detail=f"selector_id is required for {scope.value} reports")

    report = monthly_report(db, scope, selector_id=selector_id, start=start, end=end)
    return MonthlyReportResponse(
        scope=report.scope,
        is_sample=report.is_sample,
        periods=[PeriodSchema(**vars(p)) for p in report.periods],
    )

"""Sales reports: raw listings, monthly aggregation and dashboard fallback"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from octobooks_royalties.domain.exceptions import PersistenceFailure
from octobooks_royalties.domain.models import MonthlyReport, PeriodSummary, ReportScope, Sale
from octobooks_royalties.infrastructure.database.repositories import SaleRepository
from octobooks_royalties.infrastructure.observability.metrics import report_fallback_counter
from octobooks_royalties.utils.date_utils import month_key, month_label

logger = logging.getLogger(__name__)

# Shown on the dashboards when sales cannot be loaded.
# Platform rows carry the 10% fee, author rows a 30% share, publisher rows 20%.
SAMPLE_MONTHLY_PERIODS: Dict[ReportScope, List[PeriodSummary]] = {
    ReportScope.AUTHOR: [
        PeriodSummary("2024-01", "Jan 2024", 1200, 4_200_000, 1_260_000, 1200, 1050, 1560),
        PeriodSummary("2024-02", "Feb 2024", 1500, 5_250_000, 1_575_000, 1500, 1050, 1890),
        PeriodSummary("2024-03", "Mar 2024", 1800, 6_300_000, 1_890_000, 1800, 1050, 2250),
    ],
    ReportScope.PUBLISHER: [
        PeriodSummary("2024-01", "Jan 2024", 1200, 4_200_000, 840_000, 1200, 700, 1560),
        PeriodSummary("2024-02", "Feb 2024", 1500, 5_250_000, 1_050_000, 1500, 700, 1890),
        PeriodSummary("2024-03", "Mar 2024", 1800, 6_300_000, 1_260_000, 1800, 700, 2250),
    ],
    ReportScope.PLATFORM: [
        PeriodSummary("2024-01", "Jan 2024", 1200, 4_200_000, 420_000, 1200, 350, 1560),
        PeriodSummary("2024-02", "Feb 2024", 1500, 5_250_000, 525_000, 1500, 350, 1890),
        PeriodSummary("2024-03", "Mar 2024", 1800, 6_300_000, 630_000, 1800, 350, 2250),
        PeriodSummary("2024-04", "Apr 2024", 2000, 7_000_000, 700_000, 2000, 350, 2500),
        PeriodSummary("2024-05", "May 2024", 2500, 8_750_000, 875_000, 2500, 350, 3125),
        PeriodSummary("2024-06", "Jun 2024", 3500, 12_250_000, 1_225_000, 3500, 350, 4375),
        PeriodSummary("2024-07", "Jul 2024", 4200, 14_700_000, 1_470_000, 4200, 350, 5250),
        PeriodSummary("2024-08", "Aug 2024", 4800, 16_800_000, 1_680_000, 4800, 350, 6000),
    ],
}


def get_sales_report(
    db: Session,
    author_id: Optional[str] = None,
    publisher_id: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[Sale]:
    """
    Fetch recorded sales for an author, a publisher, or everyone.

    Returns sales newest first. Raises PersistenceFailure if the query fails.
    """
    try:
        records = SaleRepository(db).query_sales(
            author_id=author_id,
            publisher_id=publisher_id,
            start=start,
            end=end,
            limit=limit,
        )
    except SQLAlchemyError as e:
        raise PersistenceFailure(f"Sales query failed: {e}") from e

    return [SaleRepository.to_domain(r) for r in records]


def _royalty_for(sale: Sale, scope: ReportScope) -> int:
    if scope == ReportScope.AUTHOR:
        return sale.author_royalty_cents
    if scope == ReportScope.PUBLISHER:
        return sale.publisher_share_cents
    return sale.platform_fee_cents


def aggregate_monthly(sales: Iterable[Sale], scope: ReportScope) -> List[PeriodSummary]:
    """
    Group sales into calendar-month buckets (UTC), oldest month first.

    Each bucket sums units, revenue and the scope's share of the revenue
    (author royalty, publisher share or platform fee), plus the average
    share per unit sold in whole cents and the number of distinct orders.
    """
    buckets: Dict[str, PeriodSummary] = {}
    orders: Dict[str, Set[str]] = {}
    for sale in sales:
        key = month_key(sale.date)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = PeriodSummary(
                month_key=key,
                period=month_label(sale.date),
                total_sales=0,
                total_revenue_cents=0,
                royalties_cents=0,
                books_sold=0,
                average_royalty_per_book_cents=0,
            )
            orders[key] = set()
        bucket.total_sales += sale.quantity
        bucket.total_revenue_cents += sale.sale_amount_cents
        bucket.royalties_cents += _royalty_for(sale, scope)
        bucket.books_sold += sale.quantity
        orders[key].add(sale.order_id)

    for key, bucket in buckets.items():
        bucket.orders_processed = len(orders[key])
        bucket.average_royalty_per_book_cents = (
            bucket.royalties_cents // bucket.books_sold if bucket.books_sold > 0 else 0
        )

    return [buckets[key] for key in sorted(buckets)]


def monthly_report(
    db: Session,
    scope: ReportScope,
    selector_id: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> MonthlyReport:
    """
    Monthly report for a dashboard.

    The selector is an author id for AUTHOR scope, a publisher id for
    PUBLISHER scope and ignored for PLATFORM. If the sales cannot be loaded
    the sample report is returned with is_sample=True; this never raises.
    """
    author_id = selector_id if scope == ReportScope.AUTHOR else None
    publisher_id = selector_id if scope == ReportScope.PUBLISHER else None

    try:
        sales = get_sales_report(db, author_id=author_id, publisher_id=publisher_id, start=start, end=end)
    except PersistenceFailure as e:
        report_fallback_counter.inc()
        logger.warning(
            f"Falling back to sample report: {e}",
            extra={"scope": scope.value, "selector_id": selector_id},
        )
        return MonthlyReport(scope=scope, periods=[_copy(p) for p in SAMPLE_MONTHLY_PERIODS[scope]], is_sample=True)

    return MonthlyReport(scope=scope, periods=aggregate_monthly(sales, scope))


def _copy(period: PeriodSummary) -> PeriodSummary:
    return PeriodSummary(**vars(period))

"""Tests for sales report queries and the dashboard fallback"""

import pytest
from datetime import datetime, timezone
from sqlalchemy.exc import OperationalError

from octobooks_royalties.domain.exceptions import PersistenceFailure
from octobooks_royalties.domain.models import Book, Order, ReportScope
from octobooks_royalties.infrastructure.database.repositories import (
    AuthorRepository,
    PublisherRepository,
    SaleRepository,
)
from octobooks_royalties.services.reporting import get_sales_report, monthly_report
from octobooks_royalties.services.sale_recorder import SaleRecorder


def at(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def recorded_sales(db, config, make_book, author, publisher):
    """Three sales for the author fixture plus one for a second author/publisher pair"""
    for order_id, day, price in [
        ("order_1", at(2024, 1, 5), 30000),
        ("order_2", at(2024, 1, 20), 25000),
        ("order_3", at(2024, 2, 11), 10000),
    ]:
        SaleRecorder(db, config, clock=lambda day=day: day).record_sale(
            Order(order_id), make_book(final_price_cents=price), 1
        )

    other_author = AuthorRepository(db).create_author(name="Vikram Sen", email="vikram@example.com")
    other_publisher = PublisherRepository(db).create_publisher(name="Indigo", contact_email="ops@indigo.example")
    db.commit()
    SaleRecorder(db, config, clock=lambda: at(2024, 3, 1)).record_sale(
        Order("order_4"), Book("book_x", "Salt Roads", other_author.id, other_publisher.id, 20000), 1
    )
    return other_author, other_publisher


def test_sales_report_newest_first(db, recorded_sales):
    sales = get_sales_report(db)

    assert [s.order_id for s in sales] == ["order_4", "order_3", "order_2", "order_1"]
    assert all(s.date.tzinfo is not None for s in sales)


def test_sales_report_by_author(db, recorded_sales, author):
    sales = get_sales_report(db, author_id=author.id)

    assert [s.order_id for s in sales] == ["order_3", "order_2", "order_1"]


def test_sales_report_by_publisher(db, recorded_sales):
    _, other_publisher = recorded_sales

    sales = get_sales_report(db, publisher_id=other_publisher.id)

    assert [s.book_title for s in sales] == ["Salt Roads"]


def test_sales_report_date_range_inclusive(db, recorded_sales):
    sales = get_sales_report(db, start=at(2024, 1, 20), end=at(2024, 2, 11))

    assert [s.order_id for s in sales] == ["order_3", "order_2"]


def test_sales_report_query_failure_raises(db, monkeypatch):
    def broken_query(self, **kwargs):
        raise OperationalError("SELECT sales", {}, Exception("connection reset"))

    monkeypatch.setattr(SaleRepository, "query_sales", broken_query)

    with pytest.raises(PersistenceFailure):
        get_sales_report(db)


def test_monthly_report_for_author(db, recorded_sales, author):
    report = monthly_report(db, ReportScope.AUTHOR, selector_id=author.id)

    assert report.is_sample is False
    assert [p.period for p in report.periods] == ["Jan 2024", "Feb 2024"]
    jan = report.periods[0]
    assert jan.total_sales == 2
    assert jan.total_revenue_cents == 55000
    assert jan.royalties_cents == 4500 + 3750


def test_monthly_report_platform_covers_everyone(db, recorded_sales):
    report = monthly_report(db, ReportScope.PLATFORM)

    assert [p.period for p in report.periods] == ["Jan 2024", "Feb 2024", "Mar 2024"]
    assert report.periods[-1].royalties_cents == 2000  # 10% of ₹200


def test_monthly_report_falls_back_to_sample(db, monkeypatch):
    def broken_query(self, **kwargs):
        raise OperationalError("SELECT sales", {}, Exception("connection reset"))

    monkeypatch.setattr(SaleRepository, "query_sales", broken_query)

    report = monthly_report(db, ReportScope.AUTHOR, selector_id="author_1")

    assert report.is_sample is True
    assert [p.period for p in report.periods] == ["Jan 2024", "Feb 2024", "Mar 2024"]
    assert report.periods[0].average_royalty_per_book_cents == 1050


@pytest.mark.parametrize(
    "scope, rate_percent",
    [(ReportScope.AUTHOR, 30), (ReportScope.PUBLISHER, 20), (ReportScope.PLATFORM, 10)],
)
def test_sample_report_matches_scope(db, monkeypatch, scope, rate_percent):
    """Each dashboard gets its own share of the sample revenue"""

    def broken_query(self, **kwargs):
        raise OperationalError("SELECT sales", {}, Exception("connection reset"))

    monkeypatch.setattr(SaleRepository, "query_sales", broken_query)

    report = monthly_report(db, scope, selector_id="someone")

    assert report.is_sample is True
    assert report.scope == scope
    for period in report.periods:
        assert period.royalties_cents * 100 == period.total_revenue_cents * rate_percent
        assert period.orders_processed > 0


def test_monthly_report_counts_orders(db, recorded_sales, author):
    report = monthly_report(db, ReportScope.AUTHOR, selector_id=author.id)

    assert [p.orders_processed for p in report.periods] == [2, 1]

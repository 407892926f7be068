"""Data access layer for royalty ledger entities"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from octobooks_royalties.infrastructure.database.models import (
    AuthorRecord,
    PayoutRequestRecord,
    PublisherRecord,
    SaleRecord,
    UserRecord,
)
from octobooks_royalties.domain.models import Book, Order, RoyaltySplit, Sale
from octobooks_royalties.utils.date_utils import ensure_utc


class UserRepository:
    """Repository for platform user accounts"""

    def __init__(self, db: Session):
        self.db = db

    def create_user(self, name: str, email: str, wallet_balance_cents: int = 0) -> UserRecord:
        db_user = UserRecord(name=name, email=email, wallet_balance_cents=wallet_balance_cents)
        self.db.add(db_user)
        self.db.flush()
        return db_user

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.db.get(UserRecord, user_id)

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        return self.db.query(UserRecord).filter(UserRecord.email == email).first()

    def increment_wallet(self, user_id: str, delta_cents: int, at: datetime) -> int:
        """Additive update; returns number of rows touched"""
        return (
            self.db.query(UserRecord)
            .filter(UserRecord.id == user_id)
            .update(
                {
                    UserRecord.wallet_balance_cents: UserRecord.wallet_balance_cents + delta_cents,
                    UserRecord.updated_at: at,
                },
                synchronize_session=False,
            )
        )


class AuthorRepository:
    """Repository for authors and their running earnings"""

    def __init__(self, db: Session):
        self.db = db

    def create_author(
        self,
        name: str,
        email: str,
        royalty_rate: Optional[float] = None,
        user_id: Optional[str] = None,
    ) -> AuthorRecord:
        db_author = AuthorRecord(name=name, email=email, royalty_rate=royalty_rate, user_id=user_id)
        self.db.add(db_author)
        self.db.flush()
        return db_author

    def get_author(self, author_id: str) -> Optional[AuthorRecord]:
        return self.db.get(AuthorRecord, author_id)

    def find_by_user(self, user_id: str) -> Optional[AuthorRecord]:
        return self.db.query(AuthorRecord).filter(AuthorRecord.user_id == user_id).first()

    def increment_earnings(self, author_id: str, delta_cents: int, at: datetime) -> int:
        """
        Add to total_earnings_cents in SQL (total = total + delta).

        Never read-modify-write: concurrent sales against the same author
        commute because the database applies each delta to the current value.
        """
        return (
            self.db.query(AuthorRecord)
            .filter(AuthorRecord.id == author_id)
            .update(
                {
                    AuthorRecord.total_earnings_cents: AuthorRecord.total_earnings_cents + delta_cents,
                    AuthorRecord.updated_at: at,
                },
                synchronize_session=False,
            )
        )


class PublisherRepository:
    """Repository for publishers and their running earnings"""

    def __init__(self, db: Session):
        self.db = db

    def create_publisher(self, name: str, contact_email: str, royalty_rate: Optional[float] = None) -> PublisherRecord:
        db_publisher = PublisherRecord(name=name, contact_email=contact_email, royalty_rate=royalty_rate)
        self.db.add(db_publisher)
        self.db.flush()
        return db_publisher

    def get_publisher(self, publisher_id: str) -> Optional[PublisherRecord]:
        return self.db.get(PublisherRecord, publisher_id)

    def increment_earnings(self, publisher_id: str, delta_cents: int, at: datetime) -> int:
        """Additive update, same semantics as AuthorRepository.increment_earnings"""
        return (
            self.db.query(PublisherRecord)
            .filter(PublisherRecord.id == publisher_id)
            .update(
                {
                    PublisherRecord.total_earnings_cents: PublisherRecord.total_earnings_cents + delta_cents,
                    PublisherRecord.updated_at: at,
                },
                synchronize_session=False,
            )
        )


class SaleRepository:
    """Repository for immutable sale records"""

    def __init__(self, db: Session):
        self.db = db

    def create_sale(
        self,
        order: Order,
        book: Book,
        quantity: int,
        author: AuthorRecord,
        publisher: PublisherRecord,
        split: RoyaltySplit,
        recorded_at: datetime,
    ) -> SaleRecord:
        """Insert sale row with denormalized author/publisher names"""
        db_sale = SaleRecord(
            book_id=book.book_id,
            book_title=book.title,
            author_id=author.id,
            author_name=author.name or "Unknown Author",
            publisher_id=publisher.id,
            publisher_name=publisher.name or "Unknown Publisher",
            order_id=order.order_id,
            quantity=quantity,
            sale_amount_cents=split.sale_amount_cents,
            platform_fee_cents=split.platform_fee_cents,
            author_royalty_cents=split.author_royalty_cents,
            publisher_share_cents=split.publisher_share_cents,
            date=recorded_at,
        )
        self.db.add(db_sale)
        self.db.flush()  # Get ID without committing
        return db_sale

    def find_by_order_and_book(self, order_id: str, book_id: str) -> Optional[SaleRecord]:
        return (
            self.db.query(SaleRecord)
            .filter(SaleRecord.order_id == order_id, SaleRecord.book_id == book_id)
            .first()
        )

    def query_sales(
        self,
        author_id: Optional[str] = None,
        publisher_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[SaleRecord]:
        """Fetch sales newest first; date bounds are inclusive"""
        query = self.db.query(SaleRecord)
        if author_id:
            query = query.filter(SaleRecord.author_id == author_id)
        if publisher_id:
            query = query.filter(SaleRecord.publisher_id == publisher_id)
        if start is not None:
            query = query.filter(SaleRecord.date >= ensure_utc(start))
        if end is not None:
            query = query.filter(SaleRecord.date <= ensure_utc(end))

        query = query.order_by(SaleRecord.date.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def sum_author_royalty(self, author_id: str) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(SaleRecord.author_royalty_cents), 0))
            .filter(SaleRecord.author_id == author_id)
            .scalar()
        )
        return int(total)

    def sum_publisher_share(self, publisher_id: str) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(SaleRecord.publisher_share_cents), 0))
            .filter(SaleRecord.publisher_id == publisher_id)
            .scalar()
        )
        return int(total)

    @staticmethod
    def to_domain(record: SaleRecord) -> Sale:
        return Sale(
            sale_id=str(record.id),
            book_id=record.book_id,
            book_title=record.book_title,
            author_id=record.author_id,
            author_name=record.author_name,
            publisher_id=record.publisher_id,
            publisher_name=record.publisher_name,
            order_id=record.order_id,
            quantity=record.quantity,
            sale_amount_cents=record.sale_amount_cents,
            platform_fee_cents=record.platform_fee_cents,
            author_royalty_cents=record.author_royalty_cents,
            publisher_share_cents=record.publisher_share_cents,
            date=ensure_utc(record.date),
        )


class PayoutRequestRepository:
    """Repository for payout requests"""

    def __init__(self, db: Session):
        self.db = db

    def create_request(
        self,
        user_id: str,
        user_name: str,
        role: str,
        amount_cents: int,
        payment_method: str,
        payment_details: Dict[str, Any],
        requested_at: datetime,
        notes: Optional[str] = None,
    ) -> PayoutRequestRecord:
        db_request = PayoutRequestRecord(
            user_id=user_id,
            user_name=user_name,
            role=role,
            amount_cents=amount_cents,
            status="pending",
            payment_method=payment_method,
            payment_details=payment_details,
            requested_at=requested_at,
            notes=notes,
        )
        self.db.add(db_request)
        self.db.flush()
        return db_request

    def get_request(self, request_id: uuid.UUID) -> Optional[PayoutRequestRecord]:
        return self.db.get(PayoutRequestRecord, request_id)

    def list_requests(self, status: Optional[str] = None, role: Optional[str] = None) -> List[PayoutRequestRecord]:
        query = self.db.query(PayoutRequestRecord)
        if status:
            query = query.filter(PayoutRequestRecord.status == status)
        if role:
            query = query.filter(PayoutRequestRecord.role == role)
        return query.order_by(PayoutRequestRecord.requested_at.desc()).all()

"""SQLAlchemy ORM models for the royalty ledger"""

import uuid
from sqlalchemy import Column, String, BigInteger, Float, DateTime, Integer, ForeignKey, Text, JSON, Uuid, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


class UserRecord(Base):
    """Platform account; only the wallet balance is written here"""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True, index=True)
    wallet_balance_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)


class AuthorRecord(Base):
    """Royalty recipient; total_earnings_cents is only ever incremented"""

    __tablename__ = "authors"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, index=True)
    royalty_rate = Column(Float, nullable=True)  # NULL -> configured default
    total_earnings_cents = Column(BigInteger, nullable=False, default=0)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)


class PublisherRecord(Base):
    """Publishing house receiving a share of each sale"""

    __tablename__ = "publishers"

    id = Column(String(64), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    contact_email = Column(Text, nullable=False)
    royalty_rate = Column(Float, nullable=True)
    total_earnings_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)


class SaleRecord(Base):
    """Append-only sale fact, one per order line item"""

    __tablename__ = "sales"
    __table_args__ = (UniqueConstraint("order_id", "book_id", name="uq_sales_order_book"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    book_id = Column(Text, nullable=False)
    book_title = Column(Text, nullable=False)
    author_id = Column(String(64), ForeignKey("authors.id"), nullable=False, index=True)
    author_name = Column(Text, nullable=False)
    publisher_id = Column(String(64), ForeignKey("publishers.id"), nullable=False, index=True)
    publisher_name = Column(Text, nullable=False)
    order_id = Column(Text, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    sale_amount_cents = Column(BigInteger, nullable=False)
    platform_fee_cents = Column(BigInteger, nullable=False)
    author_royalty_cents = Column(BigInteger, nullable=False)
    publisher_share_cents = Column(BigInteger, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, index=True)


class PayoutRequestRecord(Base):
    """Request to pay out accrued earnings, processed by an admin"""

    __tablename__ = "payout_requests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    user_name = Column(Text, nullable=False)
    role = Column(Text, nullable=False)  # author | publisher
    amount_cents = Column(BigInteger, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    payment_method = Column(Text, nullable=False)
    payment_details = Column(JSON, nullable=False, default=dict)
    notes = Column(Text, nullable=True)
    requested_at = Column(DateTime(timezone=True), nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)

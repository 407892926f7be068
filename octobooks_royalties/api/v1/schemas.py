"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, List, Optional

from octobooks_royalties.domain.models import PaymentMethod, PayoutRole, PayoutStatus, ReportScope


class OrderLineSchema(BaseModel):
    """Book line item handed over by the order flow"""

    book_id: str = Field(..., min_length=1)
    title: str
    author_id: str = Field(..., min_length=1)
    publisher_id: str = Field(..., min_length=1)
    final_price_cents: int = Field(..., ge=0, description="Unit price after discount in cents")
    quantity: int = Field(..., gt=0)


class RecordSalesRequest(BaseModel):
    """Request body for POST /v1/sales"""

    order_id: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    lines: List[OrderLineSchema] = Field(..., min_length=1)


class RecordSalesResponse(BaseModel):
    """Response for POST /v1/sales"""

    order_id: str
    sale_ids: List[str]


class SaleSchema(BaseModel):
    """Single recorded sale"""

    sale_id: str
    book_id: str
    book_title: str
    author_id: str
    author_name: str
    publisher_id: str
    publisher_name: str
    order_id: str
    quantity: int
    sale_amount_cents: int
    platform_fee_cents: int
    author_royalty_cents: int
    publisher_share_cents: int
    net_amount_cents: int
    date: datetime


class SalesReportResponse(BaseModel):
    """Response for GET /v1/sales"""

    sales: List[SaleSchema]


class PeriodSchema(BaseModel):
    month_key: str
    period: str
    total_sales: int
    total_revenue_cents: int
    royalties_cents: int
    books_sold: int
    average_royalty_per_book_cents: int
    orders_processed: int


class MonthlyReportResponse(BaseModel):
    """Response for GET /v1/reports/monthly"""

    scope: ReportScope
    is_sample: bool
    periods: List[PeriodSchema]


class BalanceResponse(BaseModel):
    """Running balance next to the sum of recorded sales"""

    entity_id: str
    total_earnings_cents: int
    recorded_sales_cents: int


class AuthorCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    royalty_rate: Optional[float] = Field(None, ge=0, le=1)
    user_id: Optional[str] = None


class AuthorResponse(BaseModel):
    author_id: str
    name: str
    email: str
    royalty_rate: Optional[float]
    user_id: Optional[str]
    total_earnings_cents: int


class PublisherCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    contact_email: str = Field(..., min_length=3)
    royalty_rate: Optional[float] = Field(None, ge=0, le=1)


class PublisherResponse(BaseModel):
    publisher_id: str
    name: str
    contact_email: str
    royalty_rate: Optional[float]
    total_earnings_cents: int


class PayoutCreateRequest(BaseModel):
    """Request body for POST /v1/payouts"""

    user_id: str = Field(..., min_length=1)
    user_name: str
    role: PayoutRole
    amount_cents: int = Field(..., gt=0)
    payment_method: PaymentMethod
    payment_details: Dict[str, Any] = Field(default_factory=dict)


class PayoutProcessRequest(BaseModel):
    """Request body for POST /v1/payouts/{request_id}/process"""

    status: PayoutStatus
    notes: Optional[str] = None


class PayoutResponse(BaseModel):
    request_id: str
    user_id: str
    user_name: str
    role: PayoutRole
    amount_cents: int
    status: PayoutStatus
    payment_method: PaymentMethod
    payment_details: Dict[str, Any]
    notes: Optional[str] = None
    requested_at: datetime
    processed_at: Optional[datetime] = None


class PayoutListResponse(BaseModel):
    payouts: List[PayoutResponse]

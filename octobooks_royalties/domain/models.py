"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


def to_rate(value: float | Decimal | str) -> Decimal:
    """Normalize a rate to Decimal without binary float noise (0.15 -> Decimal('0.15'))"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class RoyaltyConfig:
    """Rates used when splitting a sale; injected into the calculator and recorder"""

    platform_fee_rate: Decimal = Decimal("0.10")
    default_author_royalty_rate: Decimal = Decimal("0.15")
    default_publisher_royalty_rate: Decimal = Decimal("0.20")

    @classmethod
    def from_rates(
        cls,
        platform_fee_rate: float | Decimal | str,
        default_author_royalty_rate: float | Decimal | str,
        default_publisher_royalty_rate: float | Decimal | str,
    ) -> "RoyaltyConfig":
        return cls(
            platform_fee_rate=to_rate(platform_fee_rate),
            default_author_royalty_rate=to_rate(default_author_royalty_rate),
            default_publisher_royalty_rate=to_rate(default_publisher_royalty_rate),
        )


DEFAULT_ROYALTY_CONFIG = RoyaltyConfig()


@dataclass
class RoyaltySplit:
    """Output of the royalty calculator, all amounts in cents"""

    sale_amount_cents: int
    platform_fee_cents: int
    author_royalty_cents: int
    publisher_share_cents: int
    net_amount_cents: int


@dataclass
class Book:
    """Catalog entry as handed over by the order flow"""

    book_id: str
    title: str
    author_id: str
    publisher_id: str
    final_price_cents: int  # unit price after discount


@dataclass
class OrderLine:
    """Single book line item within an order"""

    book: Book
    quantity: int


@dataclass
class Order:
    """Placed order; one sale is recorded per line"""

    order_id: str
    user_id: Optional[str] = None
    lines: List[OrderLine] = field(default_factory=list)


@dataclass
class Sale:
    """Immutable record of one book line-item transaction"""

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
    date: datetime

    @property
    def net_amount_cents(self) -> int:
        return (
            self.sale_amount_cents
            - self.platform_fee_cents
            - self.author_royalty_cents
            - self.publisher_share_cents
        )


class ReportScope(str, Enum):
    """Whose share a report sums up"""

    AUTHOR = "author"
    PUBLISHER = "publisher"
    PLATFORM = "platform"


@dataclass
class PeriodSummary:
    """Sales aggregated over one calendar month"""

    month_key: str  # "2024-01"
    period: str  # "Jan 2024"
    total_sales: int
    total_revenue_cents: int
    royalties_cents: int
    books_sold: int
    average_royalty_per_book_cents: int
    orders_processed: int = 0  # distinct orders with a sale in the month


@dataclass
class MonthlyReport:
    """Monthly buckets plus a flag telling the dashboard it is looking at sample data"""

    scope: ReportScope
    periods: List[PeriodSummary]
    is_sample: bool = False


class PayoutRole(str, Enum):
    AUTHOR = "author"
    PUBLISHER = "publisher"


class PayoutStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    PAYPAL = "paypal"

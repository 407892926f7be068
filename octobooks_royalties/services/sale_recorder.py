"""Sale recording and royalty allocation"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from sqlalchemy.orm import Session

from octobooks_royalties.domain.exceptions import EntityNotFound, PersistenceFailure, ValidationFailure
from octobooks_royalties.domain.models import Book, Order, OrderLine, RoyaltyConfig, RoyaltySplit
from octobooks_royalties.domain.royalties import calculate_royalties, validate_rates
from octobooks_royalties.infrastructure.database.repositories import (
    AuthorRepository,
    PublisherRepository,
    SaleRepository,
    UserRepository,
)
from octobooks_royalties.infrastructure.database.session import atomic
from octobooks_royalties.infrastructure.observability.logging import log_sale_recorded
from octobooks_royalties.infrastructure.observability.metrics import (
    duplicate_sales_counter,
    record_sale,
    sale_recording_failures_counter,
)
from octobooks_royalties.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


class SaleRecorder:
    """
    Records sales and allocates royalties to authors, publishers and linked wallets.

    Every call is one database transaction: the sale rows and all balance
    increments are committed together or not at all. Line items already
    recorded for the same (order, book) are returned as-is, so replaying an
    order after a failure never double-counts earnings.
    """

    def __init__(
        self,
        db: Session,
        config: RoyaltyConfig,
        clock: Callable[[], datetime] = utc_now,
    ):
        validate_rates(
            config.platform_fee_rate,
            config.default_author_royalty_rate,
            config.default_publisher_royalty_rate,
        )
        self.db = db
        self.config = config
        self.clock = clock
        self.sales = SaleRepository(db)
        self.authors = AuthorRepository(db)
        self.publishers = PublisherRepository(db)
        self.users = UserRepository(db)

    def record_sale(self, order: Order, book: Book, quantity: int) -> str:
        """Record a single line item and return the new sale id"""
        return self.record_lines(order, [OrderLine(book=book, quantity=quantity)])[0]

    def record_order(self, order: Order) -> List[str]:
        """Record every line item of an order in one transaction"""
        return self.record_lines(order, order.lines)

    def record_lines(self, order: Order, lines: List[OrderLine]) -> List[str]:
        """
        Record the given line items atomically.

        Raises:
            ValidationFailure: Non-positive quantity, negative price or invalid rates
            EntityNotFound: Book references a missing author or publisher
            PersistenceFailure: The transaction could not be committed
        """
        recorded: List[Tuple[str, OrderLine, Optional[RoyaltySplit], bool]] = []
        try:
            _validate_lines(lines)
            with atomic(self.db):
                for line in lines:
                    recorded.append(self._record_line(order, line))
        except EntityNotFound:
            sale_recording_failures_counter.labels(reason="not_found").inc()
            raise
        except ValidationFailure:
            sale_recording_failures_counter.labels(reason="validation").inc()
            raise
        except PersistenceFailure:
            sale_recording_failures_counter.labels(reason="persistence").inc()
            raise

        # Only report what actually committed
        for sale_id, line, split, wallet_credited in recorded:
            if split is None:
                continue
            record_sale(split)
            log_sale_recorded(sale_id, order.order_id, line.book.book_id, line.quantity, split, wallet_credited)

        return [sale_id for sale_id, _, _, _ in recorded]

    def _record_line(self, order: Order, line: OrderLine) -> Tuple[str, OrderLine, Optional[RoyaltySplit], bool]:
        book = line.book

        existing = self.sales.find_by_order_and_book(order.order_id, book.book_id)
        if existing is not None:
            duplicate_sales_counter.inc()
            logger.info(
                "Sale already recorded, skipping",
                extra={"order_id": order.order_id, "book_id": book.book_id, "sale_id": str(existing.id)},
            )
            return str(existing.id), line, None, False

        author = self.authors.get_author(book.author_id)
        if author is None:
            raise EntityNotFound("authors", book.author_id)
        publisher = self.publishers.get_publisher(book.publisher_id)
        if publisher is None:
            raise EntityNotFound("publishers", book.publisher_id)

        split = calculate_royalties(
            book.final_price_cents,
            line.quantity,
            author_royalty_rate=author.royalty_rate,
            publisher_royalty_rate=publisher.royalty_rate,
            config=self.config,
        )

        now = self.clock()
        db_sale = self.sales.create_sale(order, book, line.quantity, author, publisher, split, now)

        self.authors.increment_earnings(author.id, split.author_royalty_cents, now)
        self.publishers.increment_earnings(publisher.id, split.publisher_share_cents, now)

        wallet_credited = False
        if author.user_id:
            if self.users.increment_wallet(author.user_id, split.author_royalty_cents, now):
                wallet_credited = True
            else:
                logger.warning(
                    "Linked user account missing, wallet not credited",
                    extra={"author_id": author.id, "user_id": author.user_id},
                )

        return str(db_sale.id), line, split, wallet_credited

    def author_royalty_balance(self, author_id: str) -> int:
        """Sum of author royalties over all recorded sales"""
        return self.sales.sum_author_royalty(author_id)

    def publisher_earnings(self, publisher_id: str) -> int:
        """Sum of publisher shares over all recorded sales"""
        return self.sales.sum_publisher_share(publisher_id)

    def reconcile_author(self, author_id: str) -> Tuple[int, int]:
        """
        Compare the author's running balance with the recorded sales.

        Returns: (total_earnings_cents, sum_of_sales_cents)
        """
        author = self.authors.get_author(author_id)
        if author is None:
            raise EntityNotFound("authors", author_id)
        return author.total_earnings_cents, self.author_royalty_balance(author_id)

    def reconcile_publisher(self, publisher_id: str) -> Tuple[int, int]:
        """Same as reconcile_author, for a publisher"""
        publisher = self.publishers.get_publisher(publisher_id)
        if publisher is None:
            raise EntityNotFound("publishers", publisher_id)
        return publisher.total_earnings_cents, self.publisher_earnings(publisher_id)


def _validate_lines(lines: List[OrderLine]) -> None:
    seen = set()
    for line in lines:
        book_id = line.book.book_id
        if line.quantity <= 0:
            raise ValidationFailure(f"Quantity must be positive, got {line.quantity} for book {book_id}")
        if line.book.final_price_cents < 0:
            raise ValidationFailure(f"Price cannot be negative for book {book_id}")
        # (order, book) is the dedupe key
        if book_id in seen:
            raise ValidationFailure(f"Book {book_id} appears more than once in the order")
        seen.add(book_id)

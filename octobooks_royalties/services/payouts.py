"""Payout request lifecycle: pending -> approved|rejected, approved -> paid"""

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy.orm import Session

from octobooks_royalties.config import settings
from octobooks_royalties.domain.exceptions import EntityNotFound, ValidationFailure
from octobooks_royalties.domain.export import format_cents
from octobooks_royalties.domain.models import PaymentMethod, PayoutRole, PayoutStatus
from octobooks_royalties.infrastructure.database.models import PayoutRequestRecord
from octobooks_royalties.infrastructure.database.repositories import (
    AuthorRepository,
    PayoutRequestRepository,
    PublisherRepository,
)
from octobooks_royalties.infrastructure.database.session import atomic
from octobooks_royalties.infrastructure.observability.metrics import payout_requests_counter
from octobooks_royalties.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    PayoutStatus.PENDING: {PayoutStatus.APPROVED, PayoutStatus.REJECTED},
    PayoutStatus.APPROVED: {PayoutStatus.PAID},
    PayoutStatus.REJECTED: set(),
    PayoutStatus.PAID: set(),
}


class PayoutService:
    """Creates and processes payout requests for authors and publishers"""

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utc_now,
        minimum_payout_cents: Optional[int] = None,
    ):
        self.db = db
        self.clock = clock
        self.minimum_payout_cents = (
            minimum_payout_cents if minimum_payout_cents is not None else settings.minimum_payout_cents
        )
        self.requests = PayoutRequestRepository(db)
        self.authors = AuthorRepository(db)
        self.publishers = PublisherRepository(db)

    def create_payout_request(
        self,
        user_id: str,
        user_name: str,
        role: PayoutRole,
        amount_cents: int,
        payment_method: PaymentMethod,
        payment_details: Dict[str, Any],
    ) -> str:
        """
        Open a pending payout request and return its id.

        user_id is the author's linked user account for AUTHOR requests and the
        publisher id for PUBLISHER requests. The earnings balance must reach the
        minimum payout and cover the requested amount.
        """
        if amount_cents <= 0:
            raise ValidationFailure(f"Payout amount must be positive, got {amount_cents}")

        with atomic(self.db):
            balance = self._earnings_balance(user_id, role)
            if balance < self.minimum_payout_cents:
                raise ValidationFailure(
                    f"Minimum ₹{format_cents(self.minimum_payout_cents)} royalty balance required for payout, "
                    f"balance is ₹{format_cents(balance)}"
                )
            if amount_cents > balance:
                raise ValidationFailure(
                    f"Payout of ₹{format_cents(amount_cents)} exceeds balance of ₹{format_cents(balance)}"
                )

            db_request = self.requests.create_request(
                user_id=user_id,
                user_name=user_name,
                role=role.value,
                amount_cents=amount_cents,
                payment_method=payment_method.value,
                payment_details=payment_details,
                requested_at=self.clock(),
                notes=f"Payout request for {role.value} earnings",
            )
            request_id = str(db_request.id)

        payout_requests_counter.labels(status=PayoutStatus.PENDING.value).inc()
        logger.info("Payout requested", extra={"request_id": request_id, "user_id": user_id, "amount_cents": amount_cents})
        return request_id

    def process_payout_request(
        self,
        request_id: str,
        status: PayoutStatus,
        notes: Optional[str] = None,
    ) -> PayoutRequestRecord:
        """Approve or reject a pending request"""
        if status not in (PayoutStatus.APPROVED, PayoutStatus.REJECTED):
            raise ValidationFailure(f"Payout requests can only be approved or rejected, not {status.value}")
        return self._transition(request_id, status, notes)

    def mark_payout_paid(self, request_id: str, notes: Optional[str] = None) -> PayoutRequestRecord:
        """Confirm the out-of-band payment of an approved request"""
        return self._transition(request_id, PayoutStatus.PAID, notes)

    def get_payout_request(self, request_id: str) -> PayoutRequestRecord:
        db_request = self.requests.get_request(_parse_id(request_id))
        if db_request is None:
            raise EntityNotFound("payoutRequests", request_id)
        return db_request

    def list_payout_requests(
        self,
        status: Optional[PayoutStatus] = None,
        role: Optional[PayoutRole] = None,
    ) -> List[PayoutRequestRecord]:
        return self.requests.list_requests(
            status=status.value if status else None,
            role=role.value if role else None,
        )

    def _earnings_balance(self, user_id: str, role: PayoutRole) -> int:
        if role == PayoutRole.AUTHOR:
            account = self.authors.find_by_user(user_id)
        else:
            account = self.publishers.get_publisher(user_id)
        if account is None:
            raise ValidationFailure(f"No {role.value} earnings found for '{user_id}'")
        return account.total_earnings_cents

    def _transition(self, request_id: str, status: PayoutStatus, notes: Optional[str]) -> PayoutRequestRecord:
        with atomic(self.db):
            db_request = self.get_payout_request(request_id)
            current = PayoutStatus(db_request.status)
            if status not in ALLOWED_TRANSITIONS[current]:
                raise ValidationFailure(f"Cannot move payout request from {current.value} to {status.value}")

            db_request.status = status.value
            db_request.processed_at = self.clock()
            if notes is not None:
                db_request.notes = notes

        payout_requests_counter.labels(status=status.value).inc()
        logger.info("Payout request processed", extra={"request_id": request_id, "status": status.value})
        self.db.refresh(db_request)
        return db_request


def _parse_id(request_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(request_id)
    except ValueError:
        raise EntityNotFound("payoutRequests", request_id)

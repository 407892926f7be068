"""Author and publisher registration"""

import logging
from typing import Optional
from sqlalchemy.orm import Session

from octobooks_royalties.domain.exceptions import ValidationFailure
from octobooks_royalties.infrastructure.database.models import AuthorRecord, PublisherRecord
from octobooks_royalties.infrastructure.database.repositories import (
    AuthorRepository,
    PublisherRepository,
    UserRepository,
)
from octobooks_royalties.infrastructure.database.session import atomic

logger = logging.getLogger(__name__)


def _check_rate(royalty_rate: Optional[float]) -> None:
    if royalty_rate is not None and not 0 <= royalty_rate <= 1:
        raise ValidationFailure(f"Royalty rate must be between 0 and 1, got {royalty_rate}")


def register_author(
    db: Session,
    name: str,
    email: str,
    royalty_rate: Optional[float] = None,
    user_id: Optional[str] = None,
) -> AuthorRecord:
    """
    Create an author, linking the platform user account once, here.

    When no user_id is given the account is looked up by email; sales later
    credit the linked wallet through this foreign key only.
    """
    _check_rate(royalty_rate)
    users = UserRepository(db)

    with atomic(db):
        if user_id is None:
            user = users.find_by_email(email)
            user_id = user.id if user is not None else None
        elif users.get_user(user_id) is None:
            raise ValidationFailure(f"User '{user_id}' does not exist")

        author = AuthorRepository(db).create_author(name=name, email=email, royalty_rate=royalty_rate, user_id=user_id)

    logger.info("Author registered", extra={"author_id": author.id, "user_id": user_id})
    return author


def register_publisher(
    db: Session,
    name: str,
    contact_email: str,
    royalty_rate: Optional[float] = None,
) -> PublisherRecord:
    _check_rate(royalty_rate)
    with atomic(db):
        publisher = PublisherRepository(db).create_publisher(
            name=name, contact_email=contact_email, royalty_rate=royalty_rate
        )

    logger.info("Publisher registered", extra={"publisher_id": publisher.id})
    return publisher

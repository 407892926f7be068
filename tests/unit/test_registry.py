"""Tests for author/publisher registration and the user wallet link"""

import pytest
from octobooks_royalties.domain.exceptions import ValidationFailure
from octobooks_royalties.infrastructure.database.repositories import UserRepository
from octobooks_royalties.services.registry import register_author, register_publisher


def test_register_author_links_user_by_email(db, user):
    author = register_author(db, name="Anita Rao", email="anita@example.com")

    assert author.user_id == user.id
    assert author.total_earnings_cents == 0


def test_register_author_without_account(db):
    author = register_author(db, name="Pen Name", email="nobody@example.com", royalty_rate=0.3)

    assert author.user_id is None
    assert author.royalty_rate == 0.3


def test_register_author_with_explicit_user(db):
    other = UserRepository(db).create_user(name="Agent", email="agent@example.com")
    db.commit()

    author = register_author(db, name="Client", email="client@example.com", user_id=other.id)

    assert author.user_id == other.id


def test_register_author_unknown_user(db):
    with pytest.raises(ValidationFailure):
        register_author(db, name="Client", email="client@example.com", user_id="missing")


@pytest.mark.parametrize("rate", [-0.01, 1.01])
def test_register_rejects_bad_rate(db, rate):
    with pytest.raises(ValidationFailure):
        register_author(db, name="X", email="x@example.com", royalty_rate=rate)
    with pytest.raises(ValidationFailure):
        register_publisher(db, name="Y", contact_email="y@example.com", royalty_rate=rate)


def test_register_publisher_default_rate(db):
    publisher = register_publisher(db, name="Lotus Press", contact_email="rights@lotus.example")

    assert publisher.royalty_rate is None
    assert publisher.total_earnings_cents == 0

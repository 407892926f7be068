"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class EntityNotFound(DomainException):
    """A referenced author, publisher or payout request does not exist"""

    def __init__(self, collection: str, entity_id: str):
        super().__init__(f"{collection} '{entity_id}' not found")
        self.collection = collection
        self.entity_id = entity_id


class PersistenceFailure(DomainException):
    """The atomic write against the database failed"""

    pass


class ValidationFailure(DomainException):
    """Input rejected before any write: bad quantity, price, rate set or payout transition"""

    pass


class PayoutGatewayError(DomainException):
    """Payout gateway did not accept the event after all retries"""

    pass

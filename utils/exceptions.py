"""Custom exceptions for the experience roster client."""

from typing import Optional


class RosterError(Exception):
    """Base exception for the roster client."""

    pass


class TransportError(RosterError):
    """Raised when the API cannot be reached or answers with an HTTP error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFound(RosterError):
    """Raised when the API reports that an id does not exist."""

    def __init__(self, collection: str, item_id: str):
        super().__init__(f"{collection} {item_id} not found")
        self.collection = collection
        self.item_id = item_id


class ValidationRejected(RosterError):
    """Raised when the API refuses a record because of a constraint."""

    def __init__(self, message: str, detail: object = None):
        super().__init__(message)
        self.detail = detail


class SecretMismatch(RosterError):
    """Raised when the password and its confirmation differ."""

    pass


class NotPersisted(RosterError):
    """Raised when an operation needs an id the entry does not have yet."""

    pass


class ConfigurationError(RosterError):
    """Raised when configuration is invalid."""

    pass

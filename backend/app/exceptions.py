"""Custom exceptions for the development roster API."""


class RosterAPIError(Exception):
    """Base exception for the roster API."""

    pass


class UnknownId(RosterAPIError):
    """Raised when a record id does not exist."""

    def __init__(self, collection: str, item_id: str):
        super().__init__(f"{collection} {item_id} not found")
        self.collection = collection
        self.item_id = item_id


class DuplicateMail(RosterAPIError):
    """Raised when a user is saved with an address another user has."""

    def __init__(self, mail: str):
        super().__init__(f"mail {mail} is already registered")
        self.mail = mail

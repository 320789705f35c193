"""Exception types shared by the services and the HTTP layer."""


class IPBanWebError(Exception):
    """Base exception class for all application-specific errors."""

    pass


class ResourceNotFound(IPBanWebError):
    """Raised when a write needs a file (database or config) that does not exist."""

    pass


class InvalidInput(IPBanWebError):
    """Raised for malformed documents, blank keys and empty payloads."""

    pass


class StorageError(IPBanWebError):
    """Raised when the database or filesystem fails during open, read or write."""

    pass

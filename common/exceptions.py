"""Exception classes shared by the storage client and the CLI."""

from typing import Optional


class StorageClientError(Exception):
    """
    Base exception class for all object transfer errors.
    """
    pass


class ValidationError(StorageClientError):
    """
    Raised when connection parameters or a request are missing or invalid.
    """
    pass


class LocalFileError(StorageClientError):
    """
    Raised when a local file cannot be opened, read, written or renamed.
    """
    pass


class NetworkError(StorageClientError):
    """
    Raised when dialing, reading from or writing to the endpoint fails.
    """
    pass


class TransferTimeoutError(NetworkError):
    """
    Raised when the endpoint does not answer within the final-wait window.
    """
    pass


class ProtocolError(StorageClientError):
    """
    Raised on a malformed response or a non-success status.

    The message is the response body when the endpoint sent one.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class IntegrityError(StorageClientError):
    """
    Raised when a downloaded object's size or checksum does not match.
    """
    pass

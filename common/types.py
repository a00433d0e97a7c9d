"""Shared data type definitions (ObjectInfo, PutObjectResult, GetObjectResult)."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TransferStatus(str, Enum):
    """Terminal outcome of a single transfer."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ObjectInfo:
    """
    Metadata returned by a HEAD object call.
    """
    size: int
    last_modified: str
    etag: str


@dataclass(frozen=True)
class PutObjectResult:
    """
    Terminal outcome of an upload.

    A failed result never carries an entity tag or a download URL.
    """
    status: TransferStatus
    etag: str = ""
    base64_md5: str = ""
    download_url: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status is TransferStatus.SUCCEEDED

    @classmethod
    def succeeded(cls, etag: str, base64_md5: str,
                  download_url: Optional[str] = None) -> 'PutObjectResult':
        return cls(TransferStatus.SUCCEEDED, etag, base64_md5, download_url)

    @classmethod
    def failed(cls, error: Exception) -> 'PutObjectResult':
        return cls(TransferStatus.FAILED, error=error)


@dataclass(frozen=True)
class GetObjectResult:
    """
    Terminal outcome of a download.
    """
    status: TransferStatus
    save_path: str = ""
    size: int = 0
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status is TransferStatus.SUCCEEDED

    @classmethod
    def succeeded(cls, save_path: str, size: int) -> 'GetObjectResult':
        return cls(TransferStatus.SUCCEEDED, save_path, size)

    @classmethod
    def failed(cls, error: Exception) -> 'GetObjectResult':
        return cls(TransferStatus.FAILED, error=error)

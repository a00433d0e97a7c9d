"""Transfer request types passed to StorageClient operations."""

from dataclasses import dataclass, field
from typing import Optional

from common.constants import DEFAULT_CONTENT_TYPE
from storage_client.progress import ProgressTracker


@dataclass
class PutObjectRequest:
    """
    Upload a local file to bucket/object_key.

    Attributes:
        bucket: Target bucket
        object_key: Target object name
        file_path: Local file to send
        gen_url: Return a download URL for the stored object
        signed: Sign the download URL
        expires_in: Download URL lifetime in seconds
        content_type: Content-Type sent with the object
        progress: Upload progress, updated by the writer thread
    """
    bucket: str
    object_key: str
    file_path: str
    gen_url: bool = False
    signed: bool = False
    expires_in: int = 0
    content_type: str = DEFAULT_CONTENT_TYPE
    progress: ProgressTracker = field(default_factory=ProgressTracker)

    def enable_download_url(self, signed: bool, expires_in: int) -> 'PutObjectRequest':
        self.gen_url = True
        self.signed = signed
        self.expires_in = expires_in
        return self

    def disable_download_url(self) -> 'PutObjectRequest':
        self.gen_url = False
        self.signed = False
        self.expires_in = 0
        return self

    def set_enable_progress(self, enable: bool) -> 'PutObjectRequest':
        self.progress = ProgressTracker(enabled=enable)
        return self


@dataclass
class GetObjectRequest:
    """
    Download an object by name (bucket + object_key) or by URL.

    Attributes:
        save_path: Final local path of the object
        bucket: Source bucket (by-name requests)
        object_key: Source object name (by-name requests)
        url: Download URL (by-URL requests, sent unsigned)
        base64_md5: Optional expected Content-MD5 style digest
        object_size: Size reported by the endpoint, filled in by the download
        progress: Download progress, updated by the polling thread
    """
    save_path: str
    bucket: str = ""
    object_key: str = ""
    url: Optional[str] = None
    base64_md5: str = ""
    object_size: int = 0
    progress: ProgressTracker = field(default_factory=ProgressTracker)

    @classmethod
    def by_name(cls, bucket: str, object_key: str, save_path: str) -> 'GetObjectRequest':
        return cls(save_path=save_path, bucket=bucket, object_key=object_key)

    @classmethod
    def by_url(cls, url: str, save_path: str) -> 'GetObjectRequest':
        return cls(save_path=save_path, url=url)

    @property
    def is_by_url(self) -> bool:
        return self.url is not None

    def set_base64_md5(self, value: str) -> 'GetObjectRequest':
        self.base64_md5 = value
        return self

    def set_enable_progress(self, enable: bool) -> 'GetObjectRequest':
        self.progress = ProgressTracker(enabled=enable)
        return self

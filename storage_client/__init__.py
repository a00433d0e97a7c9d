"""Object upload/download client for S3-compatible endpoints."""

from storage_client.client import StorageClient
from storage_client.connection import ConnectionParams
from storage_client.models import GetObjectRequest, PutObjectRequest
from storage_client.upload_engine import EngineSettings, UploadEngine

__all__ = [
    "StorageClient",
    "ConnectionParams",
    "GetObjectRequest",
    "PutObjectRequest",
    "EngineSettings",
    "UploadEngine",
]

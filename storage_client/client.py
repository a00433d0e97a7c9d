"""Entry point bundling endpoint parameters with every object operation."""

import logging
from typing import Optional

import httpx

from common.exceptions import ProtocolError, StorageClientError, ValidationError
from common.types import GetObjectResult, ObjectInfo, PutObjectResult
from storage_client.connection import ConnectionParams
from storage_client.download import ObjectDownloader
from storage_client.http_client import ObjectHttpClient
from storage_client.models import GetObjectRequest, PutObjectRequest
from storage_client.upload_engine import EngineSettings, UploadEngine
from storage_client.urlgen import generate_download_url

logger = logging.getLogger(__name__)


class StorageClient:
    """
    Client for one S3-compatible endpoint.

    Every operation validates the connection parameters first. Transfers
    return a result object; metadata and URL calls raise
    StorageClientError subclasses.
    """

    def __init__(self, ip: str, port: int, access_key: str, secret_key: str,
                 session: Optional[httpx.Client] = None,
                 engine_settings: Optional[EngineSettings] = None):
        self.params = ConnectionParams.from_parts(ip, port, access_key, secret_key)
        self.http_client = ObjectHttpClient(self.params, session=session)
        self.engine_settings = engine_settings or EngineSettings()
        logger.info(f"Initialized StorageClient [host={self.params.host}]")

    def put_object(self, request: PutObjectRequest) -> PutObjectResult:
        engine = UploadEngine(self.params, self.engine_settings, url_generator=self.generate_download_url)
        return engine.put(request)

    def get_object(self, request: GetObjectRequest) -> GetObjectResult:
        try:
            self.params.validate()
        except ValidationError as e:
            return GetObjectResult.failed(e)
        return ObjectDownloader(self.http_client).get(request)

    def get_object_info(self, bucket: str, object_key: str) -> ObjectInfo:
        self.params.validate()
        return self.http_client.head_object(bucket, object_key)

    def get_object_info_by_url(self, url: str) -> ObjectInfo:
        self.params.validate()
        return self.http_client.head_url(url)

    def generate_download_url(self, bucket: str, object_key: str,
                              signed: bool = False, expires_in: int = 0) -> str:
        """
        Build a download URL for an existing object.

        Args:
            bucket: Bucket name
            object_key: Object name
            signed: Sign the URL
            expires_in: Lifetime of a signed URL in seconds

        Raises:
            ProtocolError: If the object does not exist ("Bad object")
        """
        try:
            self.get_object_info(bucket, object_key)
        except StorageClientError as e:
            logger.warning(f"Cannot generate URL for /{bucket}/{object_key}: {e}")
            raise ProtocolError("Bad object", getattr(e, 'status_code', None)) from e
        return generate_download_url(self.params, bucket, object_key, signed, expires_in)

    def close(self) -> None:
        self.http_client.close()

    def __enter__(self) -> 'StorageClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

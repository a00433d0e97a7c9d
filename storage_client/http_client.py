"""Single round-trip HTTP calls (HEAD, streaming GET) against the endpoint."""

import logging
from contextlib import contextmanager
from email.utils import formatdate
from typing import Iterator, Optional

import httpx

from common.constants import BODY_CHUNK_SIZE_BYTES, HTTP_TIMEOUT_SECONDS
from common.exceptions import NetworkError, ProtocolError, TransferTimeoutError
from common.types import ObjectInfo
from storage_client.connection import ConnectionParams
from storage_client.signer import authorization_header, signature
from storage_client.urlgen import object_path

logger = logging.getLogger(__name__)


def _transport_error(context: str, error: httpx.HTTPError) -> NetworkError:
    if isinstance(error, httpx.TimeoutException):
        return TransferTimeoutError(f"{context}, {error}")
    return NetworkError(f"{context}, {error}")


class ObjectHttpClient:
    """
    Blocking request/response client for object metadata and downloads.

    By-name calls are signed; by-URL calls are sent as-is, since a
    shareable URL either carries its own signature or needs none.
    """

    def __init__(self, params: ConnectionParams, session: Optional[httpx.Client] = None,
                 timeout: float = HTTP_TIMEOUT_SECONDS):
        self.params = params
        self.session = session or httpx.Client(timeout=timeout)

    def object_url(self, bucket: str, object_key: str) -> str:
        return f"http://{self.params.host}{object_path(bucket, object_key)}"

    def signed_headers(self, method: str, resource: str) -> dict:
        """
        Build Date/Accept-Encoding headers and sign them.

        Args:
            method: HTTP method
            resource: Resource path, e.g. "/bucket/key"

        Returns:
            Header dictionary including Authorization
        """
        headers = {
            'Date': formatdate(usegmt=True),
            'Accept-Encoding': 'identity',
        }
        sig = signature(self.params.secret_key, method, headers, resource)
        headers['Authorization'] = authorization_header(self.params.access_key, sig)
        return headers

    @staticmethod
    def unsigned_headers() -> dict:
        return {
            'Date': formatdate(usegmt=True),
            'Accept-Encoding': 'identity',
        }

    def head_object(self, bucket: str, object_key: str) -> ObjectInfo:
        """
        Fetch size, Last-Modified and ETag of bucket/object_key.

        Raises:
            NetworkError: If the request cannot be completed
            ProtocolError: If the status is not 200
        """
        headers = self.signed_headers('HEAD', object_path(bucket, object_key))
        return self._head(self.object_url(bucket, object_key), headers)

    def head_url(self, url: str) -> ObjectInfo:
        return self._head(url, self.unsigned_headers())

    def _head(self, url: str, headers: dict) -> ObjectInfo:
        try:
            response = self.session.request('HEAD', url, headers=headers)
        except httpx.HTTPError as e:
            raise _transport_error("Do request err", e) from e

        logger.debug(f"HEAD {url} status={response.status_code}")
        if response.status_code != 200:
            raise ProtocolError(f"Response StatusCode({response.status_code}) != 200", response.status_code)

        try:
            size = int(response.headers.get('Content-Length', '0'))
        except ValueError:
            raise ProtocolError(f"Malformed Content-Length: {response.headers.get('Content-Length')!r}")

        return ObjectInfo(
            size=size,
            last_modified=response.headers.get('Last-Modified', ''),
            etag=response.headers.get('ETag', ''),
        )

    @contextmanager
    def open_object(self, bucket: str, object_key: str) -> Iterator[httpx.Response]:
        headers = self.signed_headers('GET', object_path(bucket, object_key))
        with self._open(self.object_url(bucket, object_key), headers) as response:
            yield response

    @contextmanager
    def open_url(self, url: str) -> Iterator[httpx.Response]:
        with self._open(url, self.unsigned_headers()) as response:
            yield response

    @contextmanager
    def _open(self, url: str, headers: dict) -> Iterator[httpx.Response]:
        """
        Send a GET and yield the response with its body still unread.

        Raises:
            NetworkError: If the request cannot be sent
            ProtocolError: If the status is not 200 (message is the body)
        """
        try:
            with self.session.stream('GET', url, headers=headers) as response:
                if response.status_code != 200:
                    body = response.read().decode('utf-8', errors='replace')
                    raise ProtocolError(body or f"Response StatusCode({response.status_code}) != 200",
                                        response.status_code)
                yield response
        except httpx.HTTPError as e:
            raise _transport_error("Do request err", e) from e

    @staticmethod
    def iter_body(response: httpx.Response, chunk_size: int = BODY_CHUNK_SIZE_BYTES) -> Iterator[bytes]:
        """
        Stream the response body, turning transport failures into NetworkError.
        """
        try:
            for chunk in response.iter_bytes(chunk_size=chunk_size):
                yield chunk
        except httpx.HTTPError as e:
            raise _transport_error("Read response body err", e) from e

    def close(self) -> None:
        self.session.close()

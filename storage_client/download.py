"""
Object download and safe persistence.

The body is streamed into "<save path>.download"; only a copy that has
the expected size (and, when given, the expected base64 MD5) is renamed
onto the final path. Any failure removes the temp file and leaves a
previous file at the destination untouched.
"""

import logging
import os
import threading
from typing import BinaryIO, Iterable, Optional

from common.constants import DOWNLOAD_TEMP_SUFFIX, PROGRESS_INTERVAL_SECONDS
from common.exceptions import IntegrityError, LocalFileError, StorageClientError
from common.types import GetObjectResult
from storage_client.checksum import base64_md5_of_stream
from storage_client.http_client import ObjectHttpClient
from storage_client.models import GetObjectRequest
from storage_client.progress import ProgressTracker

logger = logging.getLogger(__name__)


class _SizePoller:
    """Publishes the temp file's on-disk size as progress once per interval."""

    def __init__(self, stream: BinaryIO, total: int, progress: ProgressTracker,
                 interval: float = PROGRESS_INTERVAL_SECONDS):
        self._fileno = stream.fileno()
        self._total = total
        self._progress = progress
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._poll_loop, daemon=True, name="DownloadProgress")

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread.is_alive():
            self._thread.join()

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._interval):
            try:
                size = os.fstat(self._fileno).st_size
            except OSError as e:
                logger.debug(f"Progress poll failed: {e}")
                continue
            self._progress.update(size, self._total)


def _remove_temp(tmp_path: str) -> None:
    try:
        os.remove(tmp_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Failed to remove temp file {tmp_path}: {e}")


def _copy_verified(chunks: Iterable[bytes], stream: BinaryIO, expected_size: int,
                   expected_md5: str) -> int:
    written = 0
    for chunk in chunks:
        try:
            stream.write(chunk)
        except OSError as e:
            raise LocalFileError(f"Write file content err, {e}") from e
        written += len(chunk)

    if written != expected_size:
        raise IntegrityError(
            f"Loss of data during writing, {written} bytes written, {expected_size} is needed"
        )

    try:
        stream.flush()
        os.fsync(stream.fileno())
    except OSError as e:
        raise LocalFileError(f"Sync object to file err, {e}") from e

    if expected_md5:
        try:
            actual_md5 = base64_md5_of_stream(stream)
        except OSError as e:
            raise LocalFileError(f"Cal Base64MD5 err, {e}") from e
        if actual_md5 != expected_md5:
            raise IntegrityError(f"Base64Md5 not equal, expected {expected_md5}, got {actual_md5}")

    return written


def save_stream(chunks: Iterable[bytes], save_path: str, expected_size: int,
                expected_md5: str = '', progress: Optional[ProgressTracker] = None,
                poll_interval: float = PROGRESS_INTERVAL_SECONDS) -> int:
    """
    Persist a body stream at save_path, atomically.

    Args:
        chunks: Body pieces, in order
        save_path: Final destination
        expected_size: Number of bytes the body must contain
        expected_md5: Optional base64(MD5) the saved file must match
        progress: Optional tracker updated by a polling thread
        poll_interval: Seconds between progress polls

    Returns:
        Number of bytes saved

    Raises:
        LocalFileError: If the temp file cannot be written, synced or renamed
        IntegrityError: If the size or checksum does not match
        NetworkError: If the body stream fails
    """
    save_path = os.path.abspath(save_path)
    tmp_path = save_path + DOWNLOAD_TEMP_SUFFIX
    saved = False

    try:
        try:
            stream = open(tmp_path, 'w+b')
        except OSError as e:
            raise LocalFileError(f"Open file {tmp_path} err, {e}") from e

        with stream:
            poller = None
            if progress is not None and progress.enabled:
                poller = _SizePoller(stream, expected_size, progress, poll_interval)
                poller.start()
            try:
                written = _copy_verified(chunks, stream, expected_size, expected_md5)
            finally:
                if poller is not None:
                    poller.stop()

        try:
            os.replace(tmp_path, save_path)
        except OSError as e:
            raise LocalFileError(f"Rename file err, {e}") from e
        saved = True
    finally:
        if not saved:
            _remove_temp(tmp_path)

    if progress is not None:
        progress.complete()
    return written


class ObjectDownloader:
    """Downloads objects by name or by URL through an ObjectHttpClient."""

    def __init__(self, http_client: ObjectHttpClient,
                 poll_interval: float = PROGRESS_INTERVAL_SECONDS):
        self.http_client = http_client
        self.poll_interval = poll_interval

    def get(self, request: GetObjectRequest) -> GetObjectResult:
        """
        Fetch an object and save it at request.save_path.

        Args:
            request: Download request; object_size and progress are updated in place

        Returns:
            GetObjectResult with the saved path and size, or the error
        """
        source = request.url if request.is_by_url else f"/{request.bucket}/{request.object_key}"
        try:
            size = self._get(request)
        except StorageClientError as e:
            logger.warning(f"Download of {source} to {request.save_path} failed: {e}")
            return GetObjectResult.failed(e)

        logger.info(f"Downloaded {source} to {request.save_path} ({size} bytes)")
        return GetObjectResult.succeeded(os.path.abspath(request.save_path), size)

    def _get(self, request: GetObjectRequest) -> int:
        if request.is_by_url:
            info = self.http_client.head_url(request.url)
            opener = self.http_client.open_url(request.url)
        else:
            info = self.http_client.head_object(request.bucket, request.object_key)
            opener = self.http_client.open_object(request.bucket, request.object_key)

        request.object_size = info.size
        request.progress.reset()

        with opener as response:
            return save_stream(
                ObjectHttpClient.iter_body(response),
                request.save_path,
                info.size,
                expected_md5=request.base64_md5,
                progress=request.progress,
                poll_interval=self.poll_interval,
            )

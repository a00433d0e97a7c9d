"""
Duplex upload engine.

An object PUT is framed by hand on a raw TCP connection so the socket
can be read while the body is still being written. The endpoint may
answer (and close the connection) before the client finishes sending;
a half-duplex request/response exchange would either deadlock or drop
that answer.

Per transfer:

    calling thread ──── coordinator: waits on the event channel
        │
        ├── writer thread: header block, body chunks, trailing CRLF
        └── reader thread: parses responses with a short read deadline

The writer and reader never share a socket object: the reader works on
a dup() of the connection so each side owns its own timeout. Both
threads are joined before the sockets are closed and before any result
is returned.
"""

import io
import logging
import os
import queue
import socket
import threading
import time
from dataclasses import dataclass
from email.message import Message
from email.utils import formatdate
from enum import Enum
from http.client import parse_headers
from typing import BinaryIO, Callable, Optional, Tuple

from common.constants import (
    BODY_CHUNK_SIZE_BYTES,
    DIAL_TIMEOUT_SECONDS,
    FINAL_WAIT_SECONDS,
    PROGRESS_INTERVAL_SECONDS,
    READ_DEADLINE_SECONDS,
    UNBOUNDED_WAIT_SECONDS,
    USER_AGENT,
    WRITE_DEADLINE_SECONDS,
)
from common.exceptions import (
    LocalFileError,
    NetworkError,
    ProtocolError,
    StorageClientError,
    TransferTimeoutError,
)
from common.types import PutObjectResult
from storage_client.checksum import base64_md5_of_stream
from storage_client.connection import ConnectionParams
from storage_client.models import PutObjectRequest
from storage_client.progress import ProgressTracker
from storage_client.signer import authorization_header, signature
from storage_client.urlgen import generate_download_url, object_path

logger = logging.getLogger(__name__)

# (bucket, object_key, signed, expires_in) -> download URL
UrlGenerator = Callable[[str, str, bool, int], str]

NO_BODY_STATUSES = (204, 304)


@dataclass(frozen=True)
class EngineSettings:
    """Chunk size and deadlines of one upload (seconds)."""
    chunk_size: int = BODY_CHUNK_SIZE_BYTES
    dial_timeout: float = DIAL_TIMEOUT_SECONDS
    read_deadline: float = READ_DEADLINE_SECONDS
    write_deadline: float = WRITE_DEADLINE_SECONDS
    final_wait: float = FINAL_WAIT_SECONDS
    progress_interval: float = PROGRESS_INTERVAL_SECONDS


@dataclass(frozen=True)
class ParsedResponse:
    """One complete HTTP response read off the connection."""
    status: int
    reason: str
    headers: Message
    body: bytes

    @property
    def provisional(self) -> bool:
        return self.status < 200


class EventKind(Enum):
    ERROR = "error"
    RESPONSE = "response"
    WRITE_DONE = "write_done"


@dataclass(frozen=True)
class TransferEvent:
    """Message sent from a worker thread to the coordinator."""
    kind: EventKind
    source: str
    error: Optional[Exception] = None
    response: Optional[ParsedResponse] = None


class EventChannel:
    """
    Thread-safe event queue shared by the worker threads and the coordinator.

    send() after close() is a no-op, so a worker that finishes late can
    never break a transfer that is already tearing down.
    """

    def __init__(self):
        self._queue: "queue.Queue[TransferEvent]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    def send(self, event: TransferEvent) -> bool:
        with self._lock:
            if self._closed:
                logger.debug(f"Dropping {event.kind.value} event from {event.source}: channel closed")
                return False
            self._queue.put(event)
            return True

    def receive(self, timeout: float) -> Optional[TransferEvent]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        with self._lock:
            self._closed = True


class ResponseParser:
    """
    Incremental HTTP/1.1 response parser.

    Bytes are buffered across reads, so a read that times out halfway
    through a response loses nothing; parsing resumes on the next feed().
    """

    MAX_HEADER_BYTES = 64 * 1024

    def __init__(self):
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        self._buffer += data

    def next_response(self, eof: bool = False) -> Optional[ParsedResponse]:
        """
        Pop the next complete response from the buffer.

        Args:
            eof: The peer closed the connection; no more bytes will arrive

        Returns:
            ParsedResponse, or None if more bytes are needed

        Raises:
            ProtocolError: If the response is malformed or truncated by EOF
        """
        header_end = self._buffer.find(b'\r\n\r\n')
        if header_end < 0:
            if len(self._buffer) > self.MAX_HEADER_BYTES:
                raise ProtocolError("Response header too large")
            if eof and self._buffer:
                raise ProtocolError("Truncated response header")
            return None

        status_line, _, header_block = bytes(self._buffer[:header_end]).partition(b'\r\n')
        status, reason = self._parse_status_line(status_line)
        headers = parse_headers(io.BytesIO(header_block + b'\r\n\r\n'))

        body, consumed = self._read_body(status, headers, header_end + 4, eof)
        if body is None:
            return None

        del self._buffer[:consumed]
        return ParsedResponse(status=status, reason=reason, headers=headers, body=body)

    @staticmethod
    def _parse_status_line(line: bytes) -> Tuple[int, str]:
        parts = line.decode('iso-8859-1').split(None, 2)
        if len(parts) < 2 or not parts[0].startswith('HTTP/'):
            raise ProtocolError(f"Malformed status line: {line[:100]!r}")
        try:
            status = int(parts[1])
        except ValueError:
            raise ProtocolError(f"Malformed status code: {parts[1]!r}")
        reason = parts[2] if len(parts) > 2 else ''
        return status, reason

    def _read_body(self, status: int, headers: Message, start: int,
                   eof: bool) -> Tuple[Optional[bytes], int]:
        if status < 200 or status in NO_BODY_STATUSES:
            return b'', start

        if 'chunked' in headers.get('Transfer-Encoding', '').lower():
            return self._read_chunked(start, eof)

        length_value = headers.get('Content-Length')
        if length_value is not None:
            try:
                length = int(length_value)
            except ValueError:
                raise ProtocolError(f"Malformed Content-Length: {length_value!r}")
            if len(self._buffer) < start + length:
                return self._incomplete(eof)
            return bytes(self._buffer[start:start + length]), start + length

        # No framing: the body runs until the peer closes
        if not eof:
            return None, 0
        return bytes(self._buffer[start:]), len(self._buffer)

    def _read_chunked(self, pos: int, eof: bool) -> Tuple[Optional[bytes], int]:
        body = bytearray()
        while True:
            line_end = self._buffer.find(b'\r\n', pos)
            if line_end < 0:
                return self._incomplete(eof)
            size_text = bytes(self._buffer[pos:line_end]).split(b';', 1)[0].strip()
            try:
                size = int(size_text, 16)
            except ValueError:
                raise ProtocolError(f"Malformed chunk size: {size_text[:20]!r}")
            pos = line_end + 2

            if size == 0:
                while True:
                    line_end = self._buffer.find(b'\r\n', pos)
                    if line_end < 0:
                        return self._incomplete(eof)
                    if line_end == pos:
                        return bytes(body), pos + 2
                    pos = line_end + 2

            if len(self._buffer) < pos + size + 2:
                return self._incomplete(eof)
            body += self._buffer[pos:pos + size]
            pos += size + 2

    @staticmethod
    def _incomplete(eof: bool) -> Tuple[None, int]:
        if eof:
            raise ProtocolError("Truncated response body")
        return None, 0


def _network_error(context: str, error: OSError) -> NetworkError:
    if isinstance(error, socket.timeout):
        return TransferTimeoutError(f"{context}, {error}")
    return NetworkError(f"{context}, {error}")


class _ConnectionSession:
    """
    One TCP connection plus the reader/writer threads that share it.

    Created per request. close() raises the stop flag, joins both
    threads, closes the sockets and only then closes the event channel.
    """

    def __init__(self, address: Tuple[str, int], header_block: bytes,
                 body: BinaryIO, body_size: int, body_name: str,
                 progress: ProgressTracker, settings: EngineSettings):
        self.address = address
        self.header_block = header_block
        self.body = body
        self.body_size = body_size
        self.body_name = body_name
        self.progress = progress
        self.settings = settings

        self._stop_event = threading.Event()
        self._events = EventChannel()
        self._write_sock: Optional[socket.socket] = None
        self._read_sock: Optional[socket.socket] = None
        self._reader = threading.Thread(target=self._read_loop, daemon=True, name="UploadReader")
        self._writer = threading.Thread(target=self._write_loop, daemon=True, name="UploadWriter")

    def __enter__(self) -> '_ConnectionSession':
        host = f"{self.address[0]}:{self.address[1]}"
        try:
            self._write_sock = socket.create_connection(self.address, timeout=self.settings.dial_timeout)
        except OSError as e:
            raise NetworkError(f"Dial {host} err, {e}") from e

        self._write_sock.settimeout(self.settings.write_deadline)
        try:
            self._read_sock = self._write_sock.dup()
        except OSError as e:
            self._write_sock.close()
            raise NetworkError(f"Dup connection to {host} err, {e}") from e
        self._read_sock.settimeout(self.settings.read_deadline)
        logger.debug(f"Connected to {host}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def run(self) -> ParsedResponse:
        """Start both threads and wait for a definitive response."""
        self._reader.start()
        self._writer.start()
        return self._coordinate()

    def close(self) -> None:
        self._stop_event.set()

        for thread in (self._writer, self._reader):
            if thread.is_alive():
                thread.join()

        for sock in (self._read_sock, self._write_sock):
            if sock is not None:
                sock.close()

        self._events.close()

    def _coordinate(self) -> ParsedResponse:
        deadline = time.monotonic() + UNBOUNDED_WAIT_SECONDS
        write_error: Optional[Exception] = None

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                if write_error is not None:
                    raise write_error
                raise TransferTimeoutError("Read response timeout")

            # Queue waits above the platform limit raise OverflowError
            event = self._events.receive(timeout=min(remaining, threading.TIMEOUT_MAX))
            if event is None:
                continue

            if event.kind is EventKind.ERROR:
                if event.source == 'writer' and write_error is None:
                    # The peer may have answered before breaking the connection
                    write_error = event.error
                    deadline = min(deadline, time.monotonic() + self.settings.read_deadline)
                    logger.debug(f"Writer failed, waiting for an early response: {write_error}")
                    continue
                raise event.error

            if event.kind is EventKind.WRITE_DONE:
                deadline = time.monotonic() + self.settings.final_wait
                continue

            response = event.response
            if response.provisional:
                logger.debug(f"Provisional response {response.status} {response.reason}")
                continue
            return response

    def _read_loop(self) -> None:
        parser = ResponseParser()
        answered = False

        try:
            while not self._stop_event.is_set():
                try:
                    data = self._read_sock.recv(65536)
                except socket.timeout:
                    continue
                except OSError as e:
                    self._send_error(NetworkError(f"Read response err, {e}"), 'reader')
                    return

                eof = not data
                parser.feed(data)
                while True:
                    response = parser.next_response(eof=eof)
                    if response is None:
                        break
                    answered = answered or not response.provisional
                    self._events.send(TransferEvent(EventKind.RESPONSE, 'reader', response=response))

                if eof:
                    if not answered:
                        self._send_error(NetworkError("Connection closed by peer before response"), 'reader')
                    return
        except ProtocolError as e:
            self._send_error(e, 'reader')
        except Exception as e:
            logger.error(f"Unexpected error in upload reader: {e}", exc_info=True)
            self._send_error(NetworkError(f"Read response err, {e}"), 'reader')

    def _write_loop(self) -> None:
        try:
            self._write_body()
        except StorageClientError as e:
            self._send_error(e, 'writer')
        except Exception as e:
            logger.error(f"Unexpected error in upload writer: {e}", exc_info=True)
            self._send_error(NetworkError(f"Send err, {e}"), 'writer')

    def _write_body(self) -> None:
        sock = self._write_sock
        try:
            sock.sendall(self.header_block)
        except OSError as e:
            raise _network_error("Write http header err", e) from e

        try:
            self.body.seek(0)
        except OSError as e:
            raise LocalFileError(f"Seek {self.body_name} err, {e}") from e

        written = 0
        last_update = time.monotonic()
        while True:
            if self._stop_event.is_set():
                return

            try:
                chunk = self.body.read(self.settings.chunk_size)
            except OSError as e:
                raise LocalFileError(f"Read {self.body_name} err, {e}") from e
            if not chunk:
                break

            try:
                sock.sendall(chunk)
            except OSError as e:
                raise _network_error("Send err", e) from e
            written += len(chunk)

            now = time.monotonic()
            if now - last_update >= self.settings.progress_interval:
                self.progress.update(written, self.body_size)
                last_update = now

        try:
            sock.sendall(b'\r\n')
        except OSError as e:
            raise _network_error("Send err", e) from e

        self.progress.complete()
        logger.debug(f"Finished writing {written} bytes of {self.body_name}")
        self._events.send(TransferEvent(EventKind.WRITE_DONE, 'writer'))

    def _send_error(self, error: Exception, source: str) -> None:
        self._events.send(TransferEvent(EventKind.ERROR, source, error=error))


class UploadEngine:
    """
    Uploads one local file per call over a dedicated connection.

    Returns exactly one PutObjectResult per transfer; errors never
    escape put().
    """

    def __init__(self, params: ConnectionParams,
                 settings: Optional[EngineSettings] = None,
                 url_generator: Optional[UrlGenerator] = None):
        self.params = params
        self.settings = settings or EngineSettings()
        self.url_generator = url_generator or self._default_url_generator

    def _default_url_generator(self, bucket: str, object_key: str,
                               signed: bool, expires_in: int) -> str:
        return generate_download_url(self.params, bucket, object_key, signed, expires_in)

    def put(self, request: PutObjectRequest) -> PutObjectResult:
        """
        Upload request.file_path to request.bucket/request.object_key.

        Args:
            request: Upload request; its progress tracker is updated in place

        Returns:
            PutObjectResult with the entity tag, the base64 MD5 sent as
            Content-MD5 and the optional download URL, or the error
        """
        start = time.monotonic()
        try:
            result = self._put(request)
        except StorageClientError as e:
            logger.warning(f"Upload of {request.file_path} to /{request.bucket}/{request.object_key} failed: {e}")
            return PutObjectResult.failed(e)

        logger.info(
            f"Uploaded {request.file_path} to /{request.bucket}/{request.object_key} "
            f"in {time.monotonic() - start:.2f}s [etag={result.etag}]"
        )
        return result

    def _put(self, request: PutObjectRequest) -> PutObjectResult:
        self.params.validate()

        try:
            body = open(request.file_path, 'rb')
        except OSError as e:
            raise LocalFileError(f"Open {request.file_path} err, {e}") from e

        with body:
            try:
                body_size = os.fstat(body.fileno()).st_size
                base64_md5 = base64_md5_of_stream(body)
            except OSError as e:
                raise LocalFileError(f"Cal {request.file_path} md5 err, {e}") from e

            header_block = self.build_header_block(request, body_size, base64_md5)
            request.progress.reset()

            with _ConnectionSession(
                address=self.params.address(),
                header_block=header_block,
                body=body,
                body_size=body_size,
                body_name=request.file_path,
                progress=request.progress,
                settings=self.settings,
            ) as session:
                response = session.run()

        if response.status != 200:
            message = response.body.decode('utf-8', errors='replace')
            raise ProtocolError(message or f"Response StatusCode[{response.status}] != 200", response.status)

        download_url = None
        if request.gen_url:
            download_url = self.url_generator(
                request.bucket, request.object_key, request.signed, request.expires_in
            )

        etag = response.headers.get('ETag', '').strip('"')
        return PutObjectResult.succeeded(etag, base64_md5, download_url)

    def build_header_block(self, request: PutObjectRequest, body_size: int,
                           base64_md5: str, date: Optional[str] = None) -> bytes:
        """
        Serialize the PUT request line and headers, ending with a blank line.

        Date, Content-Type and Content-MD5 are fixed before signing;
        Authorization is computed last.
        """
        resource = object_path(request.bucket, request.object_key)
        signed_headers = {
            'Date': date or formatdate(usegmt=True),
            'Content-Type': request.content_type,
            'Content-MD5': base64_md5,
        }
        sig = signature(self.params.secret_key, 'PUT', signed_headers, resource)

        lines = [
            f"PUT {resource} HTTP/1.1",
            f"Host: {self.params.host}",
            f"User-Agent: {USER_AGENT}",
            "Accept-Encoding: identity",
            f"Content-Type: {signed_headers['Content-Type']}",
            f"Content-Length: {body_size}",
            f"Content-MD5: {signed_headers['Content-MD5']}",
            f"Date: {signed_headers['Date']}",
            f"Authorization: {authorization_header(self.params.access_key, sig)}",
        ]
        return ('\r\n'.join(lines) + '\r\n\r\n').encode('utf-8')

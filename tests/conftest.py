"""Shared pytest fixtures for all tests."""

import socket
import threading

import pytest
from cli.config import Config
from storage_client.connection import ConnectionParams


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to temporary .s3duplex directory
    """
    config_dir = tmp_path / '.s3duplex'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Args:
        temp_config_dir: Temporary config directory fixture

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing uploads.

    Args:
        tmp_path: pytest tmp_path fixture

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def large_file(tmp_path):
    """Create a 2 MiB file, larger than the socket buffers of a single write."""
    file_path = tmp_path / 'large.bin'
    file_path.write_bytes(bytes(range(256)) * (8 * 1024))
    return file_path


@pytest.fixture
def empty_file(tmp_path):
    file_path = tmp_path / 'empty.bin'
    file_path.write_bytes(b'')
    return file_path


@pytest.fixture
def connection_params():
    """Parameters pointing at loopback, with no server behind them."""
    return ConnectionParams.from_parts('127.0.0.1', 9000, 'AKIDEXAMPLE', 'secretkeyexample')


class FakeEndpoint:
    """
    Single-connection TCP server driven by a handler function.

    The handler receives the endpoint and the accepted socket and talks
    raw HTTP, so tests can answer early, stay silent or send interim
    responses.
    """

    def __init__(self, handler):
        self.handler = handler
        self.requests = []
        self.release = threading.Event()
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._server.bind(('127.0.0.1', 0))
        self._server.listen(1)
        self._server.settimeout(5)
        self.port = self._server.getsockname()[1]
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> 'FakeEndpoint':
        self._thread.start()
        return self

    def stop(self) -> None:
        self.release.set()
        self._thread.join(timeout=5)
        self._server.close()

    def _serve(self) -> None:
        try:
            conn, _ = self._server.accept()
        except OSError:
            return
        with conn:
            conn.settimeout(5)
            try:
                self.handler(self, conn)
            except OSError:
                pass

    @staticmethod
    def parse_head(head: str) -> dict:
        """Map lower-cased header names of a raw request head to their values."""
        headers = {}
        for line in head.split('\r\n')[1:]:
            name, _, value = line.partition(':')
            headers[name.strip().lower()] = value.strip()
        return headers

    def request_line(self, index: int = -1) -> str:
        return self.requests[index][0].split('\r\n', 1)[0]

    def request_headers(self, index: int = -1) -> dict:
        return self.parse_head(self.requests[index][0])

    def read_head(self, conn):
        """Read up to the blank line; returns (head text, bytes read past it)."""
        data = b''
        while b'\r\n\r\n' not in data:
            chunk = conn.recv(65536)
            if not chunk:
                break
            data += chunk
        head, _, rest = data.partition(b'\r\n\r\n')
        return head.decode('iso-8859-1'), rest

    def read_request(self, conn, head=None, rest=b''):
        """Read a full PUT (head, body and trailing CRLF) and record it."""
        if head is None:
            head, rest = self.read_head(conn)
        length = int(self.parse_head(head).get('content-length', '0'))
        body = rest
        while len(body) < length + 2:
            chunk = conn.recv(65536)
            if not chunk:
                break
            body += chunk
        self.requests.append((head, body[:length]))
        return head, body[:length]


@pytest.fixture
def fake_endpoint():
    """
    Factory starting FakeEndpoint servers that are stopped after the test.

    Usage:
        endpoint = fake_endpoint(handler)
        params = ConnectionParams.from_parts('127.0.0.1', endpoint.port, ...)
    """
    endpoints = []

    def start(handler):
        endpoint = FakeEndpoint(handler).start()
        endpoints.append(endpoint)
        return endpoint

    yield start

    for endpoint in endpoints:
        endpoint.stop()

"""Endpoint connection parameters and their validation."""

import socket
import logging
from dataclasses import dataclass
from typing import Tuple

from common.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionParams:
    """
    Endpoint address and credentials used by every operation.

    Attributes:
        host: Endpoint address in "HOST:PORT" format
        access_key: Access key id
        secret_key: Secret access key
    """
    host: str
    access_key: str
    secret_key: str

    @classmethod
    def from_parts(cls, ip: str, port: int, access_key: str, secret_key: str) -> 'ConnectionParams':
        return cls(host=f"{ip}:{port}", access_key=access_key, secret_key=secret_key)

    def address(self) -> Tuple[str, int]:
        """
        Split host into (hostname, port).

        Raises:
            ValidationError: If host is not in HOST:PORT format
        """
        hostname, sep, port = self.host.rpartition(':')
        if not sep or not hostname:
            raise ValidationError(f"Invalid host {self.host!r}, expected HOST:PORT")
        try:
            port_number = int(port)
        except ValueError:
            raise ValidationError(f"Invalid port in host {self.host!r}")
        if port_number <= 0 or port_number > 65535:
            raise ValidationError(f"Invalid port number: {port_number}")
        return hostname.strip('[]'), port_number

    def validate(self) -> None:
        """
        Check the parameters before any operation proceeds.

        Raises:
            ValidationError: If the host does not resolve or a credential is empty
        """
        hostname, port = self.address()
        try:
            socket.getaddrinfo(hostname, port, 0, socket.SOCK_STREAM)
        except socket.gaierror as e:
            logger.error(f"Endpoint host '{hostname}' does not resolve: {e}")
            raise ValidationError("Invalid host") from e

        if not self.access_key:
            raise ValidationError("Empty AccessKey")
        if not self.secret_key:
            raise ValidationError("Empty SecretKey")

"""Provides base64(MD5) checksum calculation helpers."""

import base64
import hashlib
from typing import BinaryIO

from common.constants import BODY_CHUNK_SIZE_BYTES


def compute_base64_md5(data: bytes) -> str:
    """
    Compute base64-encoded MD5 digest for given data.

    Args:
        data: Bytes to compute checksum for

    Returns:
        Base64 string, the format of the Content-MD5 header
    """
    return base64.b64encode(hashlib.md5(data).digest()).decode('ascii')


def base64_md5_of_stream(stream: BinaryIO, piece_size: int = BODY_CHUNK_SIZE_BYTES) -> str:
    """
    Compute base64(MD5) of a whole file object.

    The stream is rewound to the start before hashing, so the digest
    always covers the entire file regardless of the current position.

    Args:
        stream: Binary file object opened for reading
        piece_size: Read size in bytes

    Returns:
        Base64-encoded MD5 digest
    """
    calculator = IncrementalChecksumCalculator()
    stream.seek(0)
    while True:
        piece = stream.read(piece_size)
        if not piece:
            break
        calculator.update(piece)
    return calculator.finalize()


class IncrementalChecksumCalculator:
    """
    Calculate base64(MD5) incrementally for streaming data.

    Usage:
        calculator = IncrementalChecksumCalculator()
        calculator.update(chunk1)
        calculator.update(chunk2)
        final_checksum = calculator.finalize()
    """

    def __init__(self):
        self._hasher = hashlib.md5()
        self._finalized = False

    def update(self, data: bytes) -> None:
        if self._finalized:
            raise ValueError("Cannot update after finalization")
        self._hasher.update(data)

    def finalize(self) -> str:
        self._finalized = True
        return base64.b64encode(self._hasher.digest()).decode('ascii')

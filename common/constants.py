"""Project-wide constants (chunk sizes, deadlines, wire defaults)."""

BODY_CHUNK_SIZE_BYTES: int = 8 * 1024  # 8 KiB per body write

DIAL_TIMEOUT_SECONDS: float = 5.0
READ_DEADLINE_SECONDS: float = 1.0
WRITE_DEADLINE_SECONDS: float = 5.0
FINAL_WAIT_SECONDS: float = 5.0
PROGRESS_INTERVAL_SECONDS: float = 1.0

# Coordinator timer before the body is fully written (effectively unbounded)
UNBOUNDED_WAIT_SECONDS: float = 100 * 365 * 24 * 3600.0

USER_AGENT: str = "s3duplex/0.1"
DEFAULT_CONTENT_TYPE: str = "binary/octet-stream"
DOWNLOAD_TEMP_SUFFIX: str = ".download"

HTTP_TIMEOUT_SECONDS: float = 30.0
DEFAULT_URL_EXPIRES_SECONDS: int = 3600

"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class PutCommand:
    """Upload a local file, optionally asking for a download URL."""

    bucket: str
    object_key: str
    file_path: str
    gen_url: bool = False
    signed: bool = False
    expires_in: int | None = None
    command: Literal["put"] = "put"


@dataclass(frozen=True)
class GetCommand:
    """Download an object by bucket and key."""

    bucket: str
    object_key: str
    save_path: str
    base64_md5: str = ""
    command: Literal["get"] = "get"


@dataclass(frozen=True)
class GetUrlCommand:
    """Download an object through a shareable URL."""

    url: str
    save_path: str
    command: Literal["geturl"] = "geturl"


@dataclass(frozen=True)
class InfoCommand:
    """Show size, Last-Modified and ETag of an object."""

    bucket: str
    object_key: str
    command: Literal["info"] = "info"


@dataclass(frozen=True)
class UrlCommand:
    """Print a download URL for an existing object."""

    bucket: str
    object_key: str
    signed: bool = False
    expires_in: int | None = None
    command: Literal["url"] = "url"


@dataclass(frozen=True)
class ConfigCommand:
    """Store endpoint address and credentials."""

    host: str
    port: int
    access_key: str
    secret_key: str
    command: Literal["config"] = "config"


CommandRequest = (
    PutCommand
    | GetCommand
    | GetUrlCommand
    | InfoCommand
    | UrlCommand
    | ConfigCommand
)

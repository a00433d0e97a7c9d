"""Command handler functions for CLI operations."""

import os
from typing import Optional

from common.exceptions import StorageClientError
from common.logging_config import get_logger
from cli.config import Config
from cli.models import (
    ConfigCommand,
    GetCommand,
    GetUrlCommand,
    InfoCommand,
    PutCommand,
    UrlCommand,
)
from cli.utils import format_file_size, run_with_progress
from storage_client import GetObjectRequest, PutObjectRequest, StorageClient

logger = get_logger(__name__)


_config: Optional[Config] = None
_client: Optional[StorageClient] = None


def get_config() -> Config:
    """
    Get or create global Config instance.

    Returns:
        Config loaded from ~/.s3duplex/config.json
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_client() -> StorageClient:
    """
    Get or create global StorageClient instance from the stored config.

    Returns:
        StorageClient instance
    """
    global _client
    if _client is None:
        logger.debug("Creating new StorageClient instance")
        config = get_config()
        host, port = config.get_endpoint()
        access_key, secret_key = config.get_credentials()
        _client = StorageClient(host, port, access_key, secret_key)
    return _client


def reset_client() -> None:
    """Drop the cached client so the next command picks up new settings."""
    global _client
    if _client is not None:
        _client.close()
        _client = None


def check_configured(config: Optional[Config] = None) -> Optional[str]:
    """Return a hint to run 'config' first when credentials are missing, else None."""
    if (config or get_config()).is_configured():
        return None
    return "Endpoint credentials not set, run 'config <host> <port> <access_key> <secret_key>' first"


def _expires(requested: Optional[int], config: Optional[Config]) -> int:
    if requested is not None:
        return requested
    return (config or get_config()).get_default_expires()


def handle_put(cmd: PutCommand, client: Optional[StorageClient] = None,
               config: Optional[Config] = None) -> str:
    """
    Handle 'put' command.

    Args:
        cmd: PutCommand with bucket, key, local file and URL options
        client: Optional StorageClient for dependency injection (testing)
        config: Optional Config supplying the default URL lifetime

    Returns:
        Success message with ETag (and URL), or error message
    """
    logger.info(f"Executing put command: {cmd.file_path} -> /{cmd.bucket}/{cmd.object_key}")
    if client is None:
        client = get_client()

    request = PutObjectRequest(cmd.bucket, cmd.object_key, cmd.file_path).set_enable_progress(True)
    if cmd.gen_url:
        request.enable_download_url(cmd.signed, _expires(cmd.expires_in, config))

    label = f"Uploading {os.path.basename(cmd.file_path)}"
    result = run_with_progress(label, request.progress, lambda: client.put_object(request))
    if not result.ok:
        return f"Upload failed: {result.error}"

    lines = [
        f"Uploaded {cmd.file_path} to /{cmd.bucket}/{cmd.object_key}",
        f"  ETag: {result.etag}",
        f"  Content-MD5: {result.base64_md5}",
    ]
    if result.download_url:
        lines.append(f"  URL: {result.download_url}")
    return "\n".join(lines)


def handle_get(cmd: GetCommand, client: Optional[StorageClient] = None) -> str:
    """
    Handle 'get' command.

    Args:
        cmd: GetCommand with bucket, key, save path and optional MD5
        client: Optional StorageClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing get command: /{cmd.bucket}/{cmd.object_key} -> {cmd.save_path}")
    if client is None:
        client = get_client()

    request = GetObjectRequest.by_name(cmd.bucket, cmd.object_key, cmd.save_path)
    request.set_base64_md5(cmd.base64_md5).set_enable_progress(True)
    return _download(client, request, f"Downloading {cmd.object_key}")


def handle_geturl(cmd: GetUrlCommand, client: Optional[StorageClient] = None) -> str:
    """
    Handle 'geturl' command.

    Args:
        cmd: GetUrlCommand with URL and save path
        client: Optional StorageClient for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing geturl command: {cmd.url} -> {cmd.save_path}")
    if client is None:
        client = get_client()

    request = GetObjectRequest.by_url(cmd.url, cmd.save_path).set_enable_progress(True)
    return _download(client, request, f"Downloading {os.path.basename(cmd.save_path)}")


def _download(client: StorageClient, request: GetObjectRequest, label: str) -> str:
    result = run_with_progress(label, request.progress, lambda: client.get_object(request))
    if not result.ok:
        return f"Download failed: {result.error}"
    return f"Saved {result.save_path} ({format_file_size(result.size)})"


def handle_info(cmd: InfoCommand, client: Optional[StorageClient] = None) -> str:
    """Handle 'info' command."""
    if client is None:
        client = get_client()
    try:
        info = client.get_object_info(cmd.bucket, cmd.object_key)
    except StorageClientError as e:
        return f"Error: {e}"

    return "\n".join([
        f"/{cmd.bucket}/{cmd.object_key}",
        f"  Size: {format_file_size(info.size)} ({info.size} bytes)",
        f"  Last-Modified: {info.last_modified}",
        f"  ETag: {info.etag}",
    ])


def handle_url(cmd: UrlCommand, client: Optional[StorageClient] = None,
               config: Optional[Config] = None) -> str:
    """Handle 'url' command."""
    if client is None:
        client = get_client()
    expires_in = _expires(cmd.expires_in, config) if cmd.signed else 0
    try:
        return client.generate_download_url(cmd.bucket, cmd.object_key, cmd.signed, expires_in)
    except StorageClientError as e:
        return f"Error: {e}"


def handle_config(cmd: ConfigCommand, config: Optional[Config] = None) -> str:
    """
    Handle 'config' command.

    Args:
        cmd: ConfigCommand with endpoint address and credentials
        config: Optional Config for dependency injection (testing)

    Returns:
        Confirmation message
    """
    if config is None:
        config = get_config()
    config.set_endpoint(cmd.host, cmd.port, cmd.access_key, cmd.secret_key)
    reset_client()
    logger.info(f"Endpoint set to {cmd.host}:{cmd.port}")
    return f"Endpoint set to {cmd.host}:{cmd.port} (access key {cmd.access_key})"

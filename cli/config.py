"""Configuration management for the s3duplex CLI."""

import json
import os
import shutil
from pathlib import Path

from common.constants import DEFAULT_URL_EXPIRES_SECONDS
from common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.s3duplex' / 'config.json'


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "endpoint_host": os.environ.get("S3DUPLEX_HOST", "127.0.0.1"),
        "endpoint_port": int(os.environ.get("S3DUPLEX_PORT", "80")),
        "access_key": os.environ.get("S3DUPLEX_ACCESS_KEY", ""),
        "secret_key": os.environ.get("S3DUPLEX_SECRET_KEY", ""),
        "default_expires": DEFAULT_URL_EXPIRES_SECONDS,
    }

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.s3duplex/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.s3duplex' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.config_path.exists():
            config = self.DEFAULT_CONFIG.copy()
            self._write(config)
            return config

        try:
            with open(self.config_path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("config root is not an object")
        except (json.JSONDecodeError, ValueError, OSError) as e:
            backup_path = self.config_path.with_suffix('.json.bak')
            logger.warning(f"Config file {self.config_path} unreadable ({e}), backing up to {backup_path}")
            try:
                shutil.copy(self.config_path, backup_path)
            except OSError as copy_error:
                logger.warning(f"Failed to back up config file: {copy_error}")
            return self.DEFAULT_CONFIG.copy()

        config = self.DEFAULT_CONFIG.copy()
        config.update(data)
        return config

    def _write(self, data: dict) -> None:
        try:
            with open(self.config_path, 'w') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to write config file {self.config_path}: {e}")

    def save(self) -> None:
        """Save current configuration to file."""
        self._write(self.data)

    def set_endpoint(self, host: str, port: int, access_key: str, secret_key: str) -> None:
        """
        Store endpoint address and credentials, then save to file.

        Args:
            host: Endpoint IP or hostname
            port: Endpoint TCP port
            access_key: Access key id
            secret_key: Secret key used for signing
        """
        self.data['endpoint_host'] = host
        self.data['endpoint_port'] = int(port)
        self.data['access_key'] = access_key
        self.data['secret_key'] = secret_key
        self.save()

    def get_endpoint(self) -> tuple:
        """
        Get endpoint address.

        Returns:
            (host, port) tuple
        """
        return self.data.get('endpoint_host', '127.0.0.1'), int(self.data.get('endpoint_port', 80))

    def get_credentials(self) -> tuple:
        """
        Get access and secret key.

        Returns:
            (access_key, secret_key) tuple, empty strings when unset
        """
        return self.data.get('access_key', ''), self.data.get('secret_key', '')

    def get_default_expires(self) -> int:
        return int(self.data.get('default_expires', DEFAULT_URL_EXPIRES_SECONDS))

    def is_configured(self) -> bool:
        access_key, secret_key = self.get_credentials()
        return bool(access_key and secret_key)

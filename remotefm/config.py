"""
Configuration Management

Handles loading configuration from environment variables and config files.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .file.splitter import CHUNK_SIZE
from .transfer.uploader import MAX_CONCURRENT_UPLOADS


@dataclass
class Config:
    """
    File Manager Configuration.

    Configuration priority (highest to lowest):
    1. Environment variables (RFM_*)
    2. Config file (config.json)
    3. Default values
    """
    # Storage
    download_dir: Path = field(default_factory=lambda: Path('./downloads'))
    sub_directory: str = ''

    # Performance
    chunk_size: int = CHUNK_SIZE
    max_concurrent_uploads: int = MAX_CONCURRENT_UPLOADS

    # Logging
    log_level: str = 'INFO'

    @property
    def base_download_path(self) -> Path:
        """Directory downloads are written to."""
        return Path(self.download_dir) / self.sub_directory

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        load_dotenv()

        config = cls()

        # Storage
        download_dir = os.getenv('RFM_DOWNLOAD_DIR')
        if download_dir:
            config.download_dir = Path(download_dir)
        config.sub_directory = os.getenv('RFM_SUB_DIRECTORY', config.sub_directory)

        # Performance
        config.chunk_size = int(os.getenv('RFM_CHUNK_SIZE', config.chunk_size))
        config.max_concurrent_uploads = int(
            os.getenv('RFM_MAX_CONCURRENT_UPLOADS', config.max_concurrent_uploads)
        )

        # Logging
        config.log_level = os.getenv('RFM_LOG_LEVEL', config.log_level)

        return config

    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load configuration from a JSON file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        config = cls()

        # Storage
        if 'download_dir' in data:
            config.download_dir = Path(data['download_dir'])
        config.sub_directory = data.get('sub_directory', config.sub_directory)

        # Performance
        config.chunk_size = data.get('chunk_size', config.chunk_size)
        config.max_concurrent_uploads = data.get(
            'max_concurrent_uploads', config.max_concurrent_uploads
        )

        # Logging
        config.log_level = data.get('log_level', config.log_level)

        return config

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'download_dir': str(self.download_dir),
            'sub_directory': self.sub_directory,
            'chunk_size': self.chunk_size,
            'max_concurrent_uploads': self.max_concurrent_uploads,
            'log_level': self.log_level,
        }

    def save(self, path: Path):
        """Save configuration to a JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from file and environment.

    Environment variables override file settings.
    """
    # Start with defaults
    config = Config()

    # Load from file if provided
    if config_path and config_path.exists():
        config = Config.from_file(config_path)

    # Override with environment variables
    env_config = Config.from_env()

    # Merge (env takes precedence for non-default values)
    defaults = Config()
    for key in ['download_dir', 'sub_directory', 'chunk_size',
                'max_concurrent_uploads', 'log_level']:
        env_val = getattr(env_config, key)
        if env_val != getattr(defaults, key):
            setattr(config, key, env_val)

    return config


def setup_logging(level: str = 'INFO', console: Optional[Console] = None):
    """Configure logging with rich output."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)]
    )


# Example config file template
EXAMPLE_CONFIG = """
{
  "download_dir": "./downloads",
  "sub_directory": "client-01",
  "chunk_size": 65536,
  "max_concurrent_uploads": 2,
  "log_level": "INFO"
}
"""

"""
Configuration for BGPsec Filter

Values come from, in increasing precedence: dataclass defaults, a JSON
config file (explicit path or the first of DEFAULT_CONFIG_PATHS that
exists) and BGPSEC_FILTER_* environment variables.
"""

import json
import logging
import os
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from .error_handling import ConfigurationError


@dataclass
class StoreConfig:
    """SLURM filter store configuration"""

    backend: str = "sqlite"  # sqlite, memory
    db_path: Optional[str] = None
    max_comment_length: int = 500

    def __post_init__(self):
        """Load from environment variables if not set"""
        if os.getenv("BGPSEC_FILTER_STORE"):
            self.backend = os.getenv("BGPSEC_FILTER_STORE").lower()
        if os.getenv("BGPSEC_FILTER_DB_PATH"):
            self.db_path = os.getenv("BGPSEC_FILTER_DB_PATH")
        if self.db_path is None:
            if os.getenv("BGPSEC_FILTER_MODE") == "system":
                self.db_path = "/var/lib/bgpsec-filter/slurm.db"
            else:
                # Development mode - use local path
                self.db_path = "./slurm.db"


@dataclass
class LoggingConfig:
    """Logging configuration"""

    level: str = "INFO"
    log_to_file: bool = False
    log_file: Optional[str] = None

    def __post_init__(self):
        """Load from environment variables if not set"""
        if os.getenv("BGPSEC_FILTER_LOG_LEVEL"):
            self.level = os.getenv("BGPSEC_FILTER_LOG_LEVEL").upper()
        if os.getenv("BGPSEC_FILTER_LOG_FILE"):
            self.log_file = os.getenv("BGPSEC_FILTER_LOG_FILE")
            self.log_to_file = True


@dataclass
class WebUIConfig:
    """Management API configuration"""

    host: str = "127.0.0.1"
    port: int = 8323
    audit_log_dir: Optional[str] = None

    def __post_init__(self):
        """Load from environment variables if not set"""
        if os.getenv("BGPSEC_FILTER_WEBUI_HOST"):
            self.host = os.getenv("BGPSEC_FILTER_WEBUI_HOST")
        if os.getenv("BGPSEC_FILTER_WEBUI_PORT"):
            try:
                self.port = int(os.getenv("BGPSEC_FILTER_WEBUI_PORT"))
            except ValueError:
                pass
        if os.getenv("BGPSEC_FILTER_AUDIT_DIR"):
            self.audit_log_dir = os.getenv("BGPSEC_FILTER_AUDIT_DIR")


@dataclass
class FilterConfig:
    """Main configuration container"""

    store: StoreConfig = None
    logging: LoggingConfig = None
    webui: WebUIConfig = None

    def __post_init__(self):
        """Initialize subconfigs if not provided"""
        if self.store is None:
            self.store = StoreConfig()
        if self.logging is None:
            self.logging = LoggingConfig()
        if self.webui is None:
            self.webui = WebUIConfig()


class ConfigManager:
    """Configuration management for BGPsec Filter"""

    DEFAULT_CONFIG_PATHS = [
        Path.home() / ".config/bgpsec-filter/config.json",
        Path("/etc/bgpsec-filter/config.json"),
        Path("./config.json"),
    ]

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager

        Args:
            config_path: Optional path to configuration file
        """
        self.logger = logging.getLogger(__name__)
        self.config_path = Path(config_path) if config_path else None
        self.config = FilterConfig()

        self._load_config()

    def _load_config(self):
        """Load configuration from file and environment"""
        if self.config_path and not self.config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self.config_path}",
                guidance="Check the --config path"
            )

        config_file = self._find_config_file()
        if config_file:
            try:
                self._load_from_file(config_file)
                self.logger.info(f"Loaded configuration from {config_file}")
            except (OSError, ValueError, TypeError) as e:
                raise ConfigurationError(
                    f"Failed to load config file {config_file}",
                    guidance="Fix the JSON syntax or remove unknown keys",
                    technical_details=str(e)
                )

        self._validate()

        self.logger.debug(f"Filter store: {self.config.store.backend} ({self.config.store.db_path})")

    def _find_config_file(self) -> Optional[Path]:
        """Find configuration file in default locations"""
        if self.config_path:
            return self.config_path

        for path in self.DEFAULT_CONFIG_PATHS:
            if path.exists():
                return path

        return None

    def _load_from_file(self, config_path: Path):
        """Load configuration from JSON file"""
        with open(config_path, "r") as f:
            data = json.load(f)
        self._load_from_dict(data)

    def _load_from_dict(self, data: dict):
        """Load configuration from dictionary (side-effect-free)"""
        if "store" in data:
            self.config.store = StoreConfig(**data["store"])

        if "logging" in data:
            self.config.logging = LoggingConfig(**data["logging"])

        if "webui" in data:
            self.config.webui = WebUIConfig(**data["webui"])

    def _validate(self):
        """Reject values the rest of the system cannot work with"""
        if self.config.store.backend not in ("sqlite", "memory"):
            raise ConfigurationError(
                f"Invalid store backend: {self.config.store.backend}",
                guidance="Use 'sqlite' or 'memory'"
            )
        if self.config.store.max_comment_length < 0:
            raise ConfigurationError("store.max_comment_length must not be negative")
        if not (1 <= self.config.webui.port <= 65535):
            raise ConfigurationError(
                f"Port must be between 1-65535, got {self.config.webui.port}"
            )

    def save_config(self, config_path: Optional[Path] = None) -> Path:
        """
        Save current configuration to file

        Args:
            config_path: Path to save configuration (default: first default path)

        Returns:
            Path where configuration was saved
        """
        if config_path is None:
            config_path = self.DEFAULT_CONFIG_PATHS[0]

        config_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = {
            "store": asdict(self.config.store),
            "logging": asdict(self.config.logging),
            "webui": asdict(self.config.webui),
        }

        with open(config_path, "w") as f:
            json.dump(config_dict, f, indent=2)

        self.logger.info(f"Configuration saved to {config_path}")
        return config_path

    def get_config(self) -> FilterConfig:
        """Get current configuration"""
        return self.config


# Process-wide configuration, created on first use
_config_manager = None
_config_manager_lock = threading.RLock()


def get_config_manager(config_path: Optional[Path] = None) -> ConfigManager:
    """
    Get global configuration manager instance using double-checked locking.

    The first caller decides the configuration file; later calls return the
    same instance.
    """
    global _config_manager

    if _config_manager is not None:
        return _config_manager

    with _config_manager_lock:
        if _config_manager is None:
            _config_manager = ConfigManager(config_path)

        return _config_manager


def reset_config_manager() -> None:
    """Drop the global configuration so the next call reloads it"""
    global _config_manager
    with _config_manager_lock:
        _config_manager = None


def get_config() -> FilterConfig:
    """Get current configuration"""
    return get_config_manager().get_config()

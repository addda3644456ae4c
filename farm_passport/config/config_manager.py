"""
Simple configuration manager that loads settings from environment variables.
"""

import os
from typing import Any, Dict, Optional
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path('.env')
if env_path.exists():
    load_dotenv(env_path)


class ConfigManager:
    """Simple configuration manager for environment variables."""

    def __init__(self) -> None:
        self._config: Dict[str, Any] = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        return {
            # Backend
            'base_api_url': os.getenv('BASE_API_URL', 'http://localhost:3002'),
            'api_timeout': int(os.getenv('API_TIMEOUT', '30')),

            # Session storage
            'database_url': os.getenv('DATABASE_URL', 'sqlite:///farm_passport.db'),

            # Camera
            'camera_source': os.getenv('CAMERA_SOURCE', '0'),
            'camera_scan_timeout': int(os.getenv('CAMERA_SCAN_TIMEOUT', '30')),

            # Display
            'explorer_tx_url': os.getenv('EXPLORER_TX_URL', 'https://sepolia.etherscan.io/tx/'),
            'allow_direct_unlock': os.getenv('ALLOW_DIRECT_UNLOCK', 'false').lower() == 'true',

            # Logging
            'log_level': os.getenv('LOG_LEVEL', 'INFO').upper(),
            'log_file': os.getenv('LOG_FILE', 'logs/farm_passport.log'),
            'debug': os.getenv('DEBUG', 'false').lower() == 'true',

            # Application
            'app_version': os.getenv('APP_VERSION', '1.0.0'),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return self._config.copy()

    @property
    def base_api_url(self) -> str:
        return self.get('base_api_url')

    @property
    def api_timeout(self) -> int:
        return self.get('api_timeout')

    @property
    def database_url(self) -> str:
        return self.get('database_url')

    @property
    def camera_source(self) -> str:
        return self.get('camera_source')

    @property
    def camera_scan_timeout(self) -> int:
        return self.get('camera_scan_timeout')

    @property
    def explorer_tx_url(self) -> str:
        return self.get('explorer_tx_url')

    @property
    def allow_direct_unlock(self) -> bool:
        return self.get('allow_direct_unlock')

    @property
    def log_level(self) -> str:
        return self.get('log_level')

    @property
    def log_file(self) -> str:
        return self.get('log_file')

    @property
    def debug(self) -> bool:
        return self.get('debug')

    @property
    def app_version(self) -> str:
        return self.get('app_version')


# Global config instance
_config: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get global configuration manager."""
    global _config
    if _config is None:
        _config = ConfigManager()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None

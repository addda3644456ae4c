"""
Simple configuration validator for environment variables.
"""

import os
from pathlib import Path
from typing import Dict, Any


class ConfigValidator:
    """Validates configuration values."""

    @staticmethod
    def validate() -> Dict[str, Any]:
        """
        Validate configuration and return errors/warnings.

        Returns:
            Dict with 'errors' and 'warnings' lists, and 'valid' boolean
        """
        errors = []
        warnings = []

        # Validate backend URL
        base_api_url = os.getenv('BASE_API_URL', 'http://localhost:3002')
        if not base_api_url.startswith(('http://', 'https://')):
            errors.append(f"Invalid BASE_API_URL '{base_api_url}'. Must start with http:// or https://")

        # Validate request timeout
        try:
            timeout = int(os.getenv('API_TIMEOUT', '30'))
            if timeout <= 0:
                errors.append("API_TIMEOUT must be a positive number of seconds")
        except ValueError:
            errors.append("API_TIMEOUT must be a valid integer")

        try:
            int(os.getenv('CAMERA_SCAN_TIMEOUT', '30'))
        except ValueError:
            errors.append("CAMERA_SCAN_TIMEOUT must be a valid integer")

        # Validate log level
        log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if log_level not in valid_levels:
            errors.append(f"Invalid LOG_LEVEL '{log_level}'. Must be one of: {', '.join(valid_levels)}")

        # Check if log directory can be created
        log_file = os.getenv('LOG_FILE', 'logs/farm_passport.log')
        log_path = Path(log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Cannot create log directory: {e}")

        # Check database directory
        database_url = os.getenv('DATABASE_URL', 'sqlite:///farm_passport.db')
        if database_url.startswith('sqlite:///'):
            db_path = Path(database_url[10:])  # Remove 'sqlite:///'
            try:
                db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Cannot create database directory: {e}")
        else:
            errors.append(f"Unsupported DATABASE_URL '{database_url}'. Only sqlite:/// is supported")

        # Camera source is a device index or a stream URL (warning only)
        camera_source = os.getenv('CAMERA_SOURCE', '0')
        if not camera_source.isdigit() and '://' not in camera_source:
            warnings.append(f"CAMERA_SOURCE '{camera_source}' is neither a device index nor a URL")

        return {
            'errors': errors,
            'warnings': warnings,
            'valid': len(errors) == 0
        }


def validate_config() -> bool:
    """Validate configuration and print results."""
    result = ConfigValidator.validate()

    if result['errors']:
        print("Configuration errors:")
        for error in result['errors']:
            print(f"  ERROR: {error}")

    if result['warnings']:
        print("Configuration warnings:")
        for warning in result['warnings']:
            print(f"  WARNING: {warning}")

    return bool(result['valid'])

"""
Simple logging configuration for the Farm Passport client.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Any


def setup_logging(config: Dict[str, Any]) -> None:
    """Setup simple logging configuration."""

    # Get configuration values
    log_level = config.get("log_level", "INFO").upper()
    log_file = config.get("log_file", "logs/farm_passport.log")
    debug = config.get("debug", False)

    # Ensure log directory exists
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Clear existing handlers
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    # Set log level
    level = logging.DEBUG if debug else getattr(logging, log_level, logging.INFO)
    root_logger.setLevel(level)

    # Create formatter
    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler; the shell prints its own output, so keep the console quiet
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level if debug else logging.WARNING)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler
    try:
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=10485760,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    except OSError as e:
        print(f"Warning: Could not setup file logging: {e}")

    # Configure third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)

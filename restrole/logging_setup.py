"""
RestRole - Logging Setup

Configures logging to write to both console and a rotating log file.
"""

import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from restrole.models.config import ManagerSettings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def ConfigureLogging(settings: ManagerSettings) -> Path:
    """
    Configure root logging from settings

    Args:
        settings: Manager settings (log level, directory and rotation)

    Returns:
        Path: Log file in use
    """
    # Create logs directory if it doesn't exist
    logs_dir = Path(settings.log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    # Create log filename with timestamp
    log_filename = logs_dir / f"restrole-{datetime.now().strftime('%Y-%m-%d')}.log"

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            # Console handler
            logging.StreamHandler(),
            # File handler with rotation
            RotatingFileHandler(
                log_filename,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
                encoding='utf-8'
            )
        ],
        force=True
    )
    return log_filename

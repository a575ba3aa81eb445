import logging
from concurrent_log_handler import ConcurrentRotatingFileHandler
from pathlib import Path

from studypace.config import settings

class LogConfig:
    """Manages logging configuration"""

    def __init__(self, log_dir: str = settings.log_dir, log_file: str = "studypace.log"):
        self.log_dir = Path(log_dir)
        self.log_file = log_file
        self.logger = None

    def setup_logging(self, log_level: str = "INFO"):
        """Initialize logging with size based rotation"""
        self.log_dir.mkdir(parents=True, exist_ok=True)

        # Every module logs through logging.getLogger(__name__),
        # so configuring the package logger covers all of them.
        self.logger = logging.getLogger("studypace")
        self.logger.setLevel(getattr(logging, log_level.upper()))

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()

        # - Rotates when file hits 10MB
        # - Keeps 10 backups
        # - Uses file locking so several uvicorn workers can share the file
        file_handler = ConcurrentRotatingFileHandler(
            filename=self.log_dir / self.log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=10,
            encoding="utf-8",
            use_gzip=True
        )

        # Console handler for development
        console_handler = logging.StreamHandler()

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(formatter)
        console_handler.setFormatter(formatter)

        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)

        return self.logger


# Global log config instance
log_config = LogConfig()

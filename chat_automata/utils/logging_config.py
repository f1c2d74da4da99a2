# chat_automata/utils/logging_config.py

import logging
import logging.config
import os
import time
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "chat_automata"
PERFORMANCE_LOGGER_NAME = "chat_automata.performance"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
    enable_performance: bool = False
) -> None:
    """
    Set up logging configuration for the automata engines.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        enable_console: Whether to enable console logging
        enable_performance: Whether to enable detailed performance logging
    """

    # Create logs directory if it doesn't exist
    if log_file:
        log_dir = Path(log_file).parent
        log_dir.mkdir(parents=True, exist_ok=True)

    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'detailed': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'simple': {
                'format': '%(levelname)s - %(name)s - %(message)s'
            },
            'performance': {
                'format': '%(asctime)s - PERF - %(name)s - %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            }
        },
        'handlers': {},
        'loggers': {
            ROOT_LOGGER_NAME: {
                'level': log_level,
                'handlers': [],
                'propagate': False
            },
            PERFORMANCE_LOGGER_NAME: {
                'level': 'DEBUG' if enable_performance else 'INFO',
                'handlers': [],
                'propagate': False
            }
        }
    }

    if enable_console:
        config['handlers']['console'] = {
            'class': 'logging.StreamHandler',
            'level': log_level,
            'formatter': 'simple',
            'stream': 'ext://sys.stderr'
        }
        config['loggers'][ROOT_LOGGER_NAME]['handlers'].append('console')

    if log_file:
        config['handlers']['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'level': 'DEBUG',
            'formatter': 'detailed',
            'filename': log_file,
            'maxBytes': 10485760,  # 10MB
            'backupCount': 5,
            'encoding': 'utf8'
        }
        config['loggers'][ROOT_LOGGER_NAME]['handlers'].append('file')

    if enable_performance:
        perf_file = log_file.replace('.log', '_performance.log') if log_file else 'performance.log'
        config['handlers']['performance'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'level': 'DEBUG',
            'formatter': 'performance',
            'filename': perf_file,
            'maxBytes': 10485760,  # 10MB
            'backupCount': 3,
            'encoding': 'utf8'
        }
        config['loggers'][PERFORMANCE_LOGGER_NAME]['handlers'].append('performance')

    logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance under the ``chat_automata`` namespace
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def get_performance_logger() -> logging.Logger:
    """
    Get a logger instance for performance metrics.

    Returns:
        Performance logger instance
    """
    return logging.getLogger(PERFORMANCE_LOGGER_NAME)


class PerformanceTimer:
    """Context manager for timing operations and logging performance metrics."""

    def __init__(self, operation_name: str, logger: Optional[logging.Logger] = None):
        self.operation_name = operation_name
        self.logger = logger or get_performance_logger()
        self.start_time = None
        self.duration = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.perf_counter() - self.start_time

        if exc_type is None:
            self.logger.info(f"{self.operation_name} completed in {self.duration:.4f}s")
        else:
            self.logger.warning(f"{self.operation_name} failed after {self.duration:.4f}s: {exc_val}")


def init_default_logging():
    """Initialize default logging configuration if not already set up."""
    if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        log_level = os.getenv('CHAT_AUTOMATA_LOG_LEVEL', 'INFO').upper()
        enable_perf = os.getenv('CHAT_AUTOMATA_ENABLE_PERFORMANCE_LOGGING', 'false').lower() == 'true'

        setup_logging(
            log_level=log_level,
            enable_console=True,
            enable_performance=enable_perf
        )


# Auto-initialize on import
init_default_logging()

# =============================================================================
# File: profilesync/config/logging_config.py
# Description: Logging configuration using the Rich framework, with a JSON
#              formatter for production and optional rotating file output
# =============================================================================

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from rich.box import MINIMAL, ROUNDED
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(key, '').lower()
    return value in ('true', '1', 'yes', 'on') if value else default


def get_env_int(key: str, default: int) -> int:
    """Get integer value from environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


PROFILESYNC_THEME = Theme({
    "debug": "magenta dim",
    "info": "green",
    "warning": "dark_goldenrod",
    "error": "red",
    "critical": "bold red",
    "success": "green3",
    "timestamp": "grey70",
    "logger_name": "grey35",
    "message": "grey85",
    "dim": "bright_black",
    "header": "bold cyan",
})

PLAIN_FORMAT = "[%(asctime)s] [%(levelname)-8s] [%(name)-40s] %(message)s"
PLAIN_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Record attributes copied into JSON output when present (logger.info(..., extra={...}))
JSON_EXTRA_FIELDS = ("operation_id", "subject_id", "section", "system", "request_id")


class SmartRichHandler(RichHandler):
    """RichHandler with compact defaults: level, time and logger name in one line"""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('show_time', True)
        kwargs.setdefault('show_level', True)
        kwargs.setdefault('show_path', False)
        kwargs.setdefault('enable_link_path', False)
        kwargs.setdefault('markup', False)
        kwargs.setdefault('rich_tracebacks', True)
        kwargs.setdefault('tracebacks_show_locals', False)
        super().__init__(*args, **kwargs)
        self.setFormatter(logging.Formatter("%(name)s  %(message)s"))


class ProductionFormatter(logging.Formatter):
    """JSON formatter for production environments"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if get_env_bool('LOG_JSON_INCLUDE_EXTRAS', True):
            for field_name in JSON_EXTRA_FIELDS:
                if hasattr(record, field_name):
                    log_obj[field_name] = getattr(record, field_name)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def get_logger_level_from_env(logger_name: str, default_level: int) -> int:
    """Get logger level from environment variable."""
    # e.g., "profilesync.sync_worker" -> "LOGLEVEL_PROFILESYNC_SYNC_WORKER"
    env_name = f"LOGLEVEL_{logger_name.replace('.', '_').upper()}"

    level_str = os.getenv(env_name, '').upper()
    if level_str:
        level_map = {
            'DEBUG': logging.DEBUG,
            'INFO': logging.INFO,
            'WARNING': logging.WARNING,
            'WARN': logging.WARNING,
            'ERROR': logging.ERROR,
            'CRITICAL': logging.CRITICAL,
        }
        return level_map.get(level_str, default_level)

    return default_level


def setup_logging(
        service_name: str = "profilesync",
        log_level: Optional[str] = None,
        log_file: Optional[str] = None,
        enable_json: Optional[bool] = None,
) -> None:
    """
    Configure logging for the process.

    Args:
        service_name: Name of the service (e.g., "api")
        log_level: Override log level (LOG_LEVEL otherwise)
        log_file: Optional log file path (LOG_FILE otherwise)
        enable_json: Enable JSON formatting for production (LOG_JSON_FORMAT otherwise)
    """
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_file = log_file or os.getenv("LOG_FILE")

    if enable_json is None:
        enable_json = get_env_bool('LOG_JSON_FORMAT', False)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    use_rich = not enable_json and (sys.stdout.isatty() or get_env_bool("FORCE_COLOR", False))

    if use_rich:
        console_width = get_env_int('LOG_CONSOLE_WIDTH', 0) or None
        console = Console(
            theme=PROFILESYNC_THEME,
            force_terminal=get_env_bool("FORCE_COLOR", False),
            width=console_width,
        )
        root_logger.addHandler(SmartRichHandler(console=console))

    elif enable_json:
        json_handler = logging.StreamHandler(sys.stdout)
        json_handler.setFormatter(ProductionFormatter())
        root_logger.addHandler(json_handler)

    else:
        plain_handler = logging.StreamHandler(sys.stdout)
        plain_handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=PLAIN_DATEFMT))
        root_logger.addHandler(plain_handler)

    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=get_env_int('LOG_MAX_SIZE_MB', 100) * 1024 * 1024,
            backupCount=get_env_int('LOG_BACKUP_COUNT', 5),
            encoding=os.getenv('LOG_FILE_ENCODING', 'utf-8'),
        )
        # Always plain for files
        file_handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=PLAIN_DATEFMT))
        root_logger.addHandler(file_handler)

    default_noise_config = {
        "asyncio": logging.WARNING,
        "httpx": logging.WARNING,
        "httpcore": logging.WARNING,
        "asyncpg": logging.WARNING,
        "redis": logging.WARNING,
        "prometheus_client": logging.WARNING,
        "granian": logging.WARNING,
        "uvicorn.access": logging.WARNING,

        "profilesync.retry": logging.WARNING,
        "profilesync.sync_worker": logging.INFO,
        "profilesync.notification_fanout": logging.INFO,
    }

    for logger_name, default_level in default_noise_config.items():
        logging.getLogger(logger_name).setLevel(get_logger_level_from_env(logger_name, default_level))

    # Any other LOGLEVEL_ override, applied after the defaults
    for key, value in os.environ.items():
        if key.startswith('LOGLEVEL_'):
            logger_name_from_env = key[9:].lower().replace('_', '.')
            level_value = logging.getLevelName(value.upper())
            if isinstance(level_value, int):
                logging.getLogger(logger_name_from_env).setLevel(level_value)

    logging.getLogger(f"{service_name}.startup").info(f"Logging configured for {service_name} service")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name, e.g. "profilesync.sync_worker"
    """
    return logging.getLogger(name)


def log_metrics_table(logger: logging.Logger, title: str, metrics: Dict[str, Any]) -> None:
    """Log metrics in a table; plain key/value lines when stdout is not a terminal"""
    if not sys.stdout.isatty() and not get_env_bool("FORCE_COLOR", False):
        logger.info(f"{title}:")
        for key, value in metrics.items():
            logger.info(f"  {key}: {value}")
        return

    console = Console(theme=PROFILESYNC_THEME)

    table = Table(
        title=title,
        show_header=True,
        header_style="white on grey30",
        box=MINIMAL,
        padding=(0, 1)
    )
    table.add_column("Metric", style="cyan", width=30)
    table.add_column("Value", style="white", justify="right", width=15)

    for key, value in metrics.items():
        formatted_key = key.replace('_', ' ').title()
        if isinstance(value, bool):
            formatted_value = str(value)
        elif isinstance(value, float):
            formatted_value = f"{value:,.2f}"
        elif isinstance(value, int):
            formatted_value = f"{value:,}"
        else:
            formatted_value = str(value)
        table.add_row(formatted_key, formatted_value)

    console.print()
    console.print(Panel(table, border_style="bright_green", box=ROUNDED, padding=(1, 1),
                        width=min(console.width - 2, 60)))
    console.print()

"""
Logging setup for applications embedding the router.

Library modules only ever call ``logging.getLogger(__name__)``; nothing is
configured on import. An application calls ``setup_logging`` once to get a
console handler and, optionally, a rotating file of JSON records whose
search statistics can be aggregated by log tooling.
"""

import json
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from turnwise.core.config import Settings, settings as default_settings
from turnwise.core.errors import ConfigurationError

# Fields the router and timers attach via ``extra=``
SEARCH_FIELDS = (
    "duration_ms",
    "nodes_expanded",
    "cost_mode",
    "operation",
    "function",
    "parent_node",
    "child_node",
)


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Search statistics become top-level keys, so slow searches can be
    filtered by ``duration_ms`` or grouped by ``cost_mode``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in SEARCH_FIELDS:
            if key in record.__dict__:
                log_data[key] = record.__dict__[key]

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def resolve_log_level(level_name: str) -> int:
    """
    Convert a level name such as ``"debug"`` to its logging constant.

    Raises:
        ConfigurationError: If the name is not a standard level
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ConfigurationError(
            f"Unknown log level {level_name!r}",
            config_key="log_level",
            suggestions=["Use DEBUG, INFO, WARNING, ERROR or CRITICAL"],
        )
    return level


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    json_logs: bool = False,
    enable_console: bool = True,
    settings: Optional[Settings] = None,
) -> None:
    """
    Configure the root logger.

    Args:
        log_level: Level name; defaults to ``settings.log_level``, else DEBUG
            in development and INFO elsewhere
        log_file: Rotating log file to write, if any
        json_logs: Write the file as JSON records
        enable_console: Log to stdout
        settings: Settings to read defaults from (defaults to the global settings)

    Raises:
        ConfigurationError: If the level name is unknown
    """
    settings = settings or default_settings
    if log_level is None:
        log_level = settings.log_level or ("DEBUG" if settings.debug else "INFO")
    level = resolve_log_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if enable_console:
        # Source locations only matter while developing
        if settings.debug:
            fmt = "%(levelname)s | %(name)s:%(lineno)d | %(message)s"
        else:
            fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        if json_logs:
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
        root_logger.addHandler(file_handler)

    root_logger.debug(
        f"Logging initialized: level={logging.getLevelName(level)}, "
        f"environment={settings.environment}, file={log_file}"
    )

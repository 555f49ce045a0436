import json
import logging
import sys
from datetime import datetime
from enum import Enum
from typing import Any, Optional

SUCCESS_LEVEL = 25
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")


class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"


class Colors:
    """ANSI color codes for console output"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_CYAN = '\033[96m'
    WHITE = '\033[37m'


_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.SUCCESS: SUCCESS_LEVEL,
}


class AppLogger:
    """Colorized, context-aware logger passed explicitly to services.

    One instance is built when the application starts and handed to the
    transaction coordinator and every service. ``child`` returns a logger
    that tags its lines with a sub-context without creating new handlers.
    """

    def __init__(
        self,
        service_name: str = "TRAIN",
        enable_colors: bool = True,
        level: str = "INFO",
        context: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.service_name = service_name.upper()
        self.enable_colors = enable_colors
        self.context = context
        self._logger = logger or self._build_stdlib_logger(service_name, level)

        self.level_colors = {
            LogLevel.DEBUG: Colors.BRIGHT_CYAN,
            LogLevel.INFO: Colors.BRIGHT_BLUE,
            LogLevel.WARNING: Colors.BRIGHT_YELLOW,
            LogLevel.ERROR: Colors.BRIGHT_RED,
            LogLevel.SUCCESS: Colors.BRIGHT_GREEN,
        }
        self.level_emojis = {
            LogLevel.DEBUG: "🔍",
            LogLevel.INFO: "ℹ️",
            LogLevel.WARNING: "⚠️",
            LogLevel.ERROR: "❌",
            LogLevel.SUCCESS: "✅",
        }

    @staticmethod
    def _build_stdlib_logger(service_name: str, level: str) -> logging.Logger:
        logger = logging.getLogger(f"train.{service_name.lower()}")
        logger.setLevel(level.upper())
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter("%(message)s"))
            logger.addHandler(handler)
        logger.propagate = False
        return logger

    def child(self, context: str) -> "AppLogger":
        """Return a logger bound to ``context`` that shares this logger's output."""
        return AppLogger(
            self.service_name,
            enable_colors=self.enable_colors,
            context=context,
            logger=self._logger,
        )

    def _get_timestamp(self) -> str:
        return datetime.now().strftime("%H:%M:%S.%f")[:-3]

    def _colorize(self, text: str, color: str) -> str:
        if not self.enable_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def _format_message(self, level: LogLevel, message: str, context: Optional[str] = None) -> str:
        timestamp = self._get_timestamp()
        emoji = self.level_emojis.get(level, "")
        level_color = self.level_colors.get(level, Colors.WHITE)

        # Format: [TIMESTAMP] ℹ️ [SERVICE/CONTEXT] [INFO] Message
        level_text = self._colorize(f"[{level.value}]", level_color + Colors.BOLD)
        service_context = self.service_name
        context = context or self.context
        if context:
            service_context += f"/{context.upper()}"

        service_text = self._colorize(f"[{service_context}]", Colors.BRIGHT_BLACK)
        timestamp_text = self._colorize(f"[{timestamp}]", Colors.DIM)

        return f"{timestamp_text} {emoji} {service_text} {level_text} {message}"

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, (dict, list)):
            value_str = json.dumps(value, indent=None, separators=(',', ':'), default=str)
            if len(value_str) > 100:
                return value_str[:100] + "..."
            return value_str
        return str(value)

    def _log(self, level: LogLevel, message: str, context: Optional[str] = None, **kwargs):
        stdlib_level = _STDLIB_LEVELS[level]
        if not self._logger.isEnabledFor(stdlib_level):
            return

        formatted_message = self._format_message(level, message, context)
        if kwargs:
            extras = [f"{key}={self._format_value(value)}" for key, value in kwargs.items()]
            formatted_message += self._colorize(f" | {', '.join(extras)}", Colors.DIM)

        self._logger.log(stdlib_level, formatted_message)

    def debug(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.ERROR, message, context, **kwargs)

    def success(self, message: str, context: Optional[str] = None, **kwargs):
        self._log(LogLevel.SUCCESS, message, context, **kwargs)


def create_logger(service_name: str = "TRAIN", level: str = "INFO", enable_colors: bool = True) -> AppLogger:
    """Build the process-wide root logger. Called once from ``create_app``."""
    return AppLogger(service_name, enable_colors=enable_colors, level=level)

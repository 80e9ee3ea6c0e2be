import json
import sys
from datetime import datetime
from enum import Enum
from typing import Optional, TextIO

from chatterm.core.config import settings

class LogLevel(Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"

# SUCCESS ranks with INFO
LEVEL_ORDER = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.SUCCESS: 20,
    LogLevel.WARNING: 30,
    LogLevel.ERROR: 40,
}

class Colors:
    """ANSI color codes for console output"""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    # Regular colors
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'

    # Bright colors
    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_CYAN = '\033[96m'


def parse_level(value: str) -> LogLevel:
    """Map a level name (case-insensitive) to a LogLevel, defaulting to WARNING."""
    try:
        return LogLevel(value.strip().upper())
    except ValueError:
        return LogLevel.WARNING


class ChatTermLogger:
    """Colorized service logger used across ChatTerm.

    Output goes to stderr so it never interleaves with the chat transcript
    on stdout; records below ``min_level`` are dropped.
    """

    def __init__(
        self,
        service_name: str = "CHATTERM",
        enable_colors: bool = settings.LOG_COLORS,
        min_level: Optional[LogLevel] = None,
        stream: Optional[TextIO] = None,
    ):
        self.service_name = service_name.upper()
        self.enable_colors = enable_colors
        self.min_level = min_level or parse_level(settings.LOG_LEVEL)
        self._stream = stream

        # Color mapping for different log levels
        self.level_colors = {
            LogLevel.DEBUG: Colors.BRIGHT_CYAN,
            LogLevel.INFO: Colors.BRIGHT_BLUE,
            LogLevel.WARNING: Colors.BRIGHT_YELLOW,
            LogLevel.ERROR: Colors.BRIGHT_RED,
            LogLevel.SUCCESS: Colors.BRIGHT_GREEN,
        }

        # Emoji mapping for different log levels
        self.level_emojis = {
            LogLevel.DEBUG: "🔍",
            LogLevel.INFO: "ℹ️",
            LogLevel.WARNING: "⚠️",
            LogLevel.ERROR: "❌",
            LogLevel.SUCCESS: "✅",
        }

    @property
    def stream(self) -> TextIO:
        # resolved lazily so pytest's capture of sys.stderr is honoured
        return self._stream or sys.stderr

    def is_enabled_for(self, level: LogLevel) -> bool:
        return LEVEL_ORDER[level] >= LEVEL_ORDER[self.min_level]

    def _get_timestamp(self) -> str:
        """Get formatted timestamp"""
        return datetime.now().strftime("%H:%M:%S.%f")[:-3]

    def _colorize(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled"""
        if not self.enable_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def _format_message(self, level: LogLevel, message: str, context: Optional[str] = None) -> str:
        """Format the log message with consistent structure"""
        timestamp = self._get_timestamp()
        emoji = self.level_emojis.get(level, "")
        level_color = self.level_colors.get(level, Colors.RESET)

        # Format: [TIMESTAMP] 🔍 [SERVICE/CONTEXT] [DEBUG] Message
        level_text = self._colorize(f"[{level.value}]", level_color + Colors.BOLD)
        service_context = f"{self.service_name}"

        if context:
            service_context += f"/{context.upper()}"

        service_text = self._colorize(f"[{service_context}]", Colors.BRIGHT_BLACK)
        timestamp_text = self._colorize(f"[{timestamp}]", Colors.DIM)

        return f"{timestamp_text} {emoji} {service_text} {level_text} {message}"

    def _log(self, level: LogLevel, message: str, context: Optional[str] = None, **kwargs):
        """Internal logging method"""
        if not self.is_enabled_for(level):
            return
        formatted_message = self._format_message(level, message, context)

        # Add any additional key-value pairs
        if kwargs:
            extras = []
            for key, value in kwargs.items():
                if isinstance(value, (dict, list)):
                    value_str = json.dumps(value, indent=None, separators=(',', ':'), default=str)[:100]
                    if len(str(value)) > 100:
                        value_str += "..."
                else:
                    value_str = str(value)
                extras.append(f"{key}={value_str}")

            if extras:
                extra_text = self._colorize(f" | {', '.join(extras)}", Colors.DIM)
                formatted_message += extra_text

        print(formatted_message, file=self.stream)
        self.stream.flush()

    # Public logging methods
    def debug(self, message: str, context: Optional[str] = None, **kwargs):
        """Log debug message"""
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[str] = None, **kwargs):
        """Log info message"""
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[str] = None, **kwargs):
        """Log warning message"""
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[str] = None, **kwargs):
        """Log error message"""
        self._log(LogLevel.ERROR, message, context, **kwargs)

    def success(self, message: str, context: Optional[str] = None, **kwargs):
        """Log success message"""
        self._log(LogLevel.SUCCESS, message, context, **kwargs)


# Global logger instances for different services
db_logger = ChatTermLogger("DATABASE")
agent_logger = ChatTermLogger("AGENT")
session_logger = ChatTermLogger("SESSION")
tui_logger = ChatTermLogger("TUI")

# Convenience function for quick logging
def get_logger(service_name: str) -> ChatTermLogger:
    """Get a logger instance for a specific service"""
    return ChatTermLogger(service_name)

"""Colorful console logging for netmigo."""

import logging
import re
import sys
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from netmigo.config import Settings

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "white": "\033[37m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

# Log level colors
LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Component colors for logger names
COMPONENT_COLORS = {
    "netmigo.services.connector": COLORS["bright_cyan"],
    "netmigo.services.pool": COLORS["bright_magenta"],
    "netmigo.services.interactive": COLORS["bright_blue"],
    "netmigo.services.multi": COLORS["bright_blue"],
    "netmigo.services.scp": COLORS["cyan"],
    "netmigo.device": COLORS["yellow"],
    "netmigo.config": COLORS["green"],
    "default": COLORS["white"],
}

SSH_ADDRESS = re.compile(r"(\w[\w\-]*@[\w\.\-]+:\d+)")
DURATION = re.compile(r"(\d+\.?\d*s)\b")


class ColorfulFormatter(logging.Formatter):
    """Colorful log formatter with component highlighting."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _get_component_color(self, name: str) -> str:
        """Get color for a logger name/component."""
        for prefix, color in COMPONENT_COLORS.items():
            if prefix != "default" and name.startswith(prefix):
                return color
        return COMPONENT_COLORS["default"]

    def _format_timestamp(self, record: logging.LogRecord) -> str:
        dt = datetime.fromtimestamp(record.created).astimezone()
        return f"{dt.strftime('%H:%M:%S')}.{int(record.msecs):03d} {dt.strftime('%m/%d')}"

    def _format_level(self, record: logging.LogRecord) -> str:
        """Format log level with color and fixed width."""
        level = record.levelname
        color = LEVEL_COLORS.get(level, COLORS["white"])
        return self._colorize(f"{level:<8}", color)

    def _format_component(self, record: logging.LogRecord) -> str:
        """Format component/logger name with color."""
        name = record.name
        if name.startswith("netmigo."):
            name = name[len("netmigo.") :]
        color = self._get_component_color(record.name)
        return self._colorize(f"{name:<22}", color)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with colors."""
        timestamp = self._colorize(self._format_timestamp(record), COLORS["dim"])
        level = self._format_level(record)
        component = self._format_component(record)
        sep = self._colorize("|", COLORS["dim"])
        message = self._highlight_message(record.getMessage())

        line = f"{timestamp} {sep} {level} {sep} {component} {sep} {message}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _highlight_message(self, message: str) -> str:
        """Highlight SSH addresses and durations in log messages."""
        if not self.use_colors:
            return message

        if "@" in message:
            message = SSH_ADDRESS.sub(
                f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message
            )

        message = DURATION.sub(f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message)
        return message


def configure_logging(settings: "Settings") -> logging.Logger:
    """Configure colorful logging for the netmigo package.

    Installs a stderr handler on the ``netmigo`` logger once. Colors are
    disabled when stderr is not a TTY.

    Args:
        settings: Settings providing log level and color preference

    Returns:
        The configured ``netmigo`` logger
    """
    use_colors = settings.log_colors and sys.stderr.isatty()

    netmigo_logger = logging.getLogger("netmigo")
    netmigo_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

    # Only add handler if not already configured
    if not netmigo_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        netmigo_logger.addHandler(handler)
        netmigo_logger.propagate = False

    # Suppress noisy third-party loggers
    logging.getLogger("asyncssh").setLevel(logging.WARNING)

    return netmigo_logger

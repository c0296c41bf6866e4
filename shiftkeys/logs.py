"""Console logging setup."""

import logging
import sys
from datetime import datetime

logger = logging.getLogger("shiftkeys")


class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'
    GRAY = '\033[90m'


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: "",
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED + Colors.BOLD,
}


class ColorFormatter(logging.Formatter):
    """Custom formatter for console output"""

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if not self.use_color:
            return f"[{timestamp}] {message}"

        color = LEVEL_COLORS.get(record.levelno, "")
        if color:
            message = f"{color}{message}{Colors.END}"
        return f"{Colors.GRAY}[{timestamp}]{Colors.END} {message}"


def setup_logging(verbose: bool = False, stream=None) -> logging.Logger:
    """Configure the package logger"""
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ColorFormatter(use_color=hasattr(stream, "isatty") and stream.isatty()))
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def log_section(message: str, show_time: bool = False):
    width = 50
    if show_time:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        title = f"{message} - {timestamp}"
    else:
        title = message

    logger.info(f"{Colors.CYAN}{'─' * width}{Colors.END}")
    logger.info(f"{Colors.CYAN}{Colors.BOLD}{title}{Colors.END}")
    logger.info(f"{Colors.CYAN}{'─' * width}{Colors.END}")


def log_code(code: str, status: str, details: str = "", color: str = Colors.CYAN):
    """Log code-related information with consistent formatting"""
    logger.info(f"{color}{status}: {Colors.BOLD}{code}{Colors.END}{color} {details}{Colors.END}")

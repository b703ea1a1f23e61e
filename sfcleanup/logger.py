import json
import logging
import os
import sys

ROOT_LOGGER = "sfcleanup"

# Valid values: "HUMAN" (default), "JSON"
LOG_FORMAT = os.getenv("LOG_FORMAT", "HUMAN").upper()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# ANSI Colors for local runs
class Colors:
    RESET = "\033[0m"
    GREY = "\033[90m"
    BLUE = "\033[94m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD = "\033[1m"


class HumanFormatter(logging.Formatter):
    """Formatter to dump logs as colored text."""

    FORMATS = {
        logging.DEBUG:    Colors.GREY + "%(asctime)s [DEBUG] %(name)s: %(message)s" + Colors.RESET,
        logging.INFO:     Colors.BLUE + "%(asctime)s [INFO]  %(name)s: %(message)s" + Colors.RESET,
        logging.WARNING:  Colors.YELLOW + "%(asctime)s [WARN]  %(name)s: %(message)s" + Colors.RESET,
        logging.ERROR:    Colors.RED + "%(asctime)s [ERROR] %(name)s: %(message)s" + Colors.RESET,
        logging.CRITICAL: Colors.RED + Colors.BOLD + "%(asctime)s [CRIT]  %(name)s: %(message)s" + Colors.RESET,
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno, self.FORMATS[logging.INFO])
        formatter = logging.Formatter(log_fmt, datefmt="%H:%M:%S")
        return formatter.format(record)


class JsonFormatter(logging.Formatter):
    """Formatter to dump logs as one JSON object per line."""

    def format(self, record):
        log_obj = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": self.formatTime(record, self.datefmt),
        }
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_obj)


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the sfcleanup hierarchy."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(level: str | None = None, fmt: str | None = None, stream=None) -> logging.Logger:
    """
    Attach a single handler to the sfcleanup root logger.

    Called once by entry points; library code only calls get_logger().
    Re-running replaces the previous handler instead of stacking another.
    """
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    if (fmt or LOG_FORMAT).upper() == "JSON":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(HumanFormatter())

    root.addHandler(handler)
    root.setLevel((level or LOG_LEVEL).upper())
    root.propagate = False
    return root

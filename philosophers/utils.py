import logging
import re

RESET = "\033[0m"

LEVEL_COLORS = {
    "DEBUG": "\033[94m",  # Blue
    "INFO": "\033[92m",  # Green
    "WARNING": "\033[93m",  # Yellow
    "ERROR": "\033[91m",  # Red
    "CRITICAL": "\033[91m",  # Red
}

# One color per seat; philosopher i and i + 6 share a color.
SEAT_COLORS = [
    "\033[96m",  # Cyan
    "\033[95m",  # Magenta
    "\033[94m",  # Blue
    "\033[93m",  # Yellow
    "\033[92m",  # Green
    "\033[91m",  # Red
]
SERVICE_COLOR = "\033[97m"  # White, for WindowTimer, Snapshotter, MainThread

_SEAT = re.compile(r"-(\d+)$")


def thread_color(thread_name):
    """Color of a thread: by seat number for ``Philosopher-<i>``, white otherwise."""
    match = _SEAT.search(thread_name)
    if match is None:
        return SERVICE_COLOR
    return SEAT_COLORS[int(match.group(1)) % len(SEAT_COLORS)]


class ColoredFormatter(logging.Formatter):
    """Colors the level of each line and the name of the thread that logged it."""

    def format(self, record):
        thread_name = record.threadName
        record.threadName = f"{thread_color(thread_name)}{thread_name}{RESET}"
        # The record is shared with every other handler, so restore the name.
        try:
            log_message = super().format(record)
        finally:
            record.threadName = thread_name
        return f"{LEVEL_COLORS.get(record.levelname, RESET)}{log_message}{RESET}"


def setup_logging(level=logging.INFO):
    """Configures root logging with the colored formatter."""
    handler = logging.StreamHandler()
    handler.setFormatter(
        ColoredFormatter("%(asctime)s.%(msecs)03d - %(threadName)s - %(message)s", datefmt="%H:%M:%S")
    )
    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers = [handler]
    return logger

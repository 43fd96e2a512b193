"""Logging for the terminal client.

Everything goes to a daily-rotated file under ``~/.chronostudy/logs``. The
console only gets what the user should see while the live view is on screen:
background loops (reminder poller, settings store, session, ticker) log
and swallow their failures every few seconds, so those records stay in the
file unless ``--verbose`` is given.
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_DIR = Path.home() / ".chronostudy" / "logs"
LOG_FILE_NAME = "chronostudy.log"

# Loggers whose records never reach the console outside verbose mode
BACKGROUND_LOGGERS = (
    "chronostudy.notifications",
    "chronostudy.session",
    "chronostudy.tasks.ticker",
)

_FILE_FORMAT = "%(asctime)s [%(levelname)-8s] [%(name)-32s] %(message)s"
_FILE_DATE_FMT = "%Y-%m-%d %H:%M:%S"


class BackgroundFilter(logging.Filter):
    """Drops records from the background loops."""

    def __init__(self, prefixes: tuple[str, ...] = BACKGROUND_LOGGERS) -> None:
        super().__init__()
        self._prefixes = prefixes

    def filter(self, record: logging.LogRecord) -> bool:
        return not any(
            record.name == prefix or record.name.startswith(prefix + ".")
            for prefix in self._prefixes
        )


def _console_handler(console: Console, verbose: bool) -> RichHandler:
    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_path=verbose,
        show_time=verbose,
    )
    if verbose:
        handler.setLevel(logging.DEBUG)
    else:
        handler.setLevel(logging.WARNING)
        handler.addFilter(BackgroundFilter())
    return handler


def _file_handler(directory: Path) -> TimedRotatingFileHandler:
    directory.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(directory / LOG_FILE_NAME),
        when="midnight",
        backupCount=7,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATE_FMT))
    return handler


def setup_logging(
    verbose: bool = False,
    log_level: str = "INFO",
    log_dir: Path | None = None,
    console: Console | None = None,
) -> Path:
    """Install the console and file handlers on the root logger.

    Args:
        verbose: Log DEBUG everywhere and let background records reach the console.
        log_level: Root level outside verbose mode (e.g. "INFO", "WARNING").
        log_dir: Override for the log directory.
        console: Console the live view draws on; log lines share it.

    Returns:
        Path of the active log file.
    """
    level = logging.DEBUG if verbose else getattr(logging, log_level.upper(), logging.INFO)
    directory = log_dir or LOG_DIR

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    file_handler = _file_handler(directory)
    root.addHandler(file_handler)
    root.addHandler(_console_handler(console or Console(stderr=True), verbose))

    # A poll every few seconds would flood the log with request lines
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s, file=%s, verbose=%s",
        logging.getLevelName(level), file_handler.baseFilename, verbose,
    )
    return Path(file_handler.baseFilename)

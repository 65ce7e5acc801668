"""lux logging — Rich on stderr, full DEBUG history in a daily-rotated file."""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

# Log output goes to stderr so `lux get` stays pipeable
console = Console(stderr=True)

DEFAULT_LOG_DIR = Path.home() / ".lux" / "logs"
LOG_FILE_NAME = "lux.log"

_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_FILE_DATE_FMT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers kept at WARNING; screen_brightness_control logs every
# display method it tries
_QUIET_LOGGERS = ("screen_brightness_control",)


def _console_handler(level: int, verbose: bool) -> RichHandler:
    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_path=verbose,
        show_time=verbose,
    )
    handler.setLevel(level)
    return handler


def _file_handler(log_dir: Path) -> TimedRotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(log_dir / LOG_FILE_NAME),
        when="midnight",
        backupCount=7,
        encoding="utf-8",
    )
    handler.suffix = "%Y-%m-%d"
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATE_FMT))
    return handler


def setup_logging(
    verbose: bool = False,
    log_level: str = "INFO",
    log_dir: Path | str | None = None,
) -> Path:
    """Install the console and file handlers on the root logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        verbose: Show DEBUG records, file paths and timestamps on the console.
        log_level: Console level name used when not verbose.
        log_dir: Directory for ``lux.log``; ``~/.lux/logs`` when empty.

    Returns:
        Path of the active log file.
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.getLevelName(log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    log_dir = Path(log_dir) if log_dir else DEFAULT_LOG_DIR

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()

    # Root stays at DEBUG; each handler filters for itself
    root.setLevel(logging.DEBUG)
    root.addHandler(_console_handler(level, verbose))
    root.addHandler(_file_handler(log_dir))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    log_file = log_dir / LOG_FILE_NAME
    logging.getLogger(__name__).debug(
        "Logging to console at %s and to %s", logging.getLevelName(level), log_file,
    )
    return log_file

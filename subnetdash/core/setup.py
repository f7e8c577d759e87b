import os
import sys
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from datetime import datetime, timezone
from dotenv import load_dotenv

load_dotenv(override=True)

TRACE = 5

# Add custom TRACE level
logging.addLevelName(TRACE, "TRACE")


def _trace(self, msg, *args, **kwargs):
    if self.isEnabledFor(TRACE):
        self._log(TRACE, msg, args, **kwargs)


logging.Logger.trace = _trace
logger = logging.getLogger("subnetdash")

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _get_component_name() -> str:
    """
    Identify component name from command line arguments.
    Supported components: matrix, ledger, points, envs, watch
    """
    for arg in sys.argv[1:]:
        component = arg.lower()
        if component in ("matrix", "ledger", "points", "envs", "watch"):
            return component

    return "subnetdash"


class AbsoluteDayRotatingFileHandler(TimedRotatingFileHandler):
    """
    Rotates logs every N days based on absolute dates, so rotation happens
    at the same time regardless of restarts.
    """
    def __init__(self, filename, interval_days=3, backupCount=10, encoding='utf-8', utc=True):
        super().__init__(
            filename,
            when='D',
            interval=interval_days,
            backupCount=backupCount,
            encoding=encoding,
            utc=utc
        )
        self.interval_days = interval_days
        self.suffix = "%Y-%m-%d"
        self.namer = lambda default_name: default_name.replace('.log.', '.')

    def shouldRollover(self, record):
        """Rotate once the current N-day period (counted from epoch) differs from the file's."""
        if self.utc:
            current_time = datetime.now(timezone.utc)
            epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
        else:
            current_time = datetime.now()
            epoch = datetime(1970, 1, 1)

        current_period = (current_time - epoch).days // self.interval_days

        if os.path.exists(self.baseFilename):
            file_mtime = os.path.getmtime(self.baseFilename)
            if self.utc:
                file_time = datetime.fromtimestamp(file_mtime, tz=timezone.utc)
            else:
                file_time = datetime.fromtimestamp(file_mtime)

            file_period = (file_time - epoch).days // self.interval_days
            return current_period > file_period

        return False


def _setup_file_handler(log_root: str, component: str, level: int) -> logging.Handler:
    """
    Setup log file handler with rotation for the specified component.

    Log file: {log_root}/{component}/{component}.log, rotated every 3 days.
    """
    log_dir = Path(log_root) / component
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = AbsoluteDayRotatingFileHandler(
        log_dir / f"{component}.log",
        interval_days=3,
        backupCount=10,
        encoding="utf-8",
        utc=True
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    return handler


def _silence_noisy_loggers():
    """Silence noisy third-party library loggers"""
    for name in ("aiohttp", "aiohttp.access", "asyncio", "urllib3", "charset_normalizer"):
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(verbosity: int, component: str = None):
    """
    Setup logging system.

    Args:
        verbosity: Log level (0=SILENT, 1=INFO, 2=DEBUG, 3=TRACE)
        component: Component name (optional, defaults to auto-detection from sys.argv)
    """
    level_map = {
        0: logging.CRITICAL + 1,  # Silent
        1: logging.INFO,
        2: logging.DEBUG,
        3: TRACE,
    }
    level = level_map.get(verbosity, logging.INFO)

    if component is None:
        component = _get_component_name()

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        force=True
    )

    # File logging is opt-in: a dashboard usually runs from a terminal
    log_root = os.getenv("SUBNETDASH_LOG_DIR")
    if log_root:
        try:
            logging.getLogger().addHandler(_setup_file_handler(log_root, component, level))
            logger.info(f"Log file: {log_root}/{component}/{component}.log")
        except Exception as e:
            logger.warning(f"Failed to create log file: {e}")

    _silence_noisy_loggers()

    logging.getLogger("subnetdash").setLevel(level)

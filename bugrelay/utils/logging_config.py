import logging
import sys
import os
from datetime import datetime
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours each record by level."""

    cyan = "\x1b[36m"
    green = "\x1b[32m"
    yellow = "\x1b[33m"
    red = "\x1b[31m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"

    LEVEL_COLOURS = {
        logging.DEBUG: cyan,
        logging.INFO: green,
        logging.WARNING: yellow,
        logging.ERROR: red,
        logging.CRITICAL: bold_red,
    }

    def format(self, record):
        colour = self.LEVEL_COLOURS.get(record.levelno)
        log_fmt = f"{colour}{LOG_FORMAT}{self.reset}" if colour else LOG_FORMAT
        return logging.Formatter(log_fmt, datefmt=DATE_FORMAT).format(record)


def setup_logging(level=logging.INFO, log_dir: Optional[str] = "logs"):
    """
    Configure the root logger once for the service and the CLI.

    Console output goes to stderr (uvicorn-compatible). When log_dir is set,
    records are also appended to a daily file ``bugrelay_YYYYMMDD.log``.
    """
    root_logger = logging.getLogger()

    # Clear existing handlers to prevent duplicate logs
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ColoredFormatter())
    root_logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(
            os.path.join(log_dir, f"bugrelay_{datetime.now().strftime('%Y%m%d')}.log")
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    # uvicorn installs its own handlers; route everything through the root
    for logger_name in ["bugrelay", "uvicorn", "uvicorn.error", "uvicorn.access", "main"]:
        named = logging.getLogger(logger_name)
        named.setLevel(level)
        named.handlers.clear()
        named.propagate = True

    # httpx logs every request at INFO, including webhook URLs with secrets
    logging.getLogger("httpx").setLevel(logging.WARNING)

    root_logger.info("Logging initialized (console%s).", " + file" if log_dir else "")

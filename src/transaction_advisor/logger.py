import logging
import logging.config
import os
import re

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILENAME = "transaction_advisor.log"

# Leading "[RULES]", "[DUPLICATES]", ... of our messages
_TAG_PATTERN = re.compile(r"^\[[A-Z_]+\]")


class ColourizedFormatter(logging.Formatter):
    """
    Console formatter: colours the level name and the leading ``[TAG]`` of
    the message so the engine that logged a line stands out.
    """
    GREY = "\x1b[90m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    RED = "\x1b[31m"
    BOLD_RED = "\x1b[31;1m"
    CYAN = "\x1b[36m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None, use_colour: bool = True):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colour = use_colour

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colour:
            return super().format(record)

        orig_levelname = record.levelname
        orig_msg = record.msg

        colour = self.LEVEL_COLORS.get(record.levelno)
        if colour:
            record.levelname = f"{colour}{record.levelname}{self.RESET}"
        if isinstance(record.msg, str):
            record.msg = _TAG_PATTERN.sub(
                lambda m: f"{self.CYAN}{m.group(0)}{self.RESET}", record.msg, count=1
            )

        result = super().format(record)

        # Other handlers share the record
        record.levelname = orig_levelname
        record.msg = orig_msg
        return result


def _colour_enabled() -> bool:
    return not os.getenv("NO_COLOR")


def get_logging_config(log_level: str | None = None, log_dir: str | None = None) -> dict:
    """dictConfig for the service; uvicorn's loggers share our handlers."""
    level = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_dir = log_dir if log_dir is not None else os.getenv("LOG_DIR")

    handlers: dict[str, dict] = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "console",
        },
    }
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": os.path.join(log_dir, LOG_FILENAME),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "encoding": "utf-8",
            "formatter": "plain",
        }
    handler_names = list(handlers)

    loggers: dict[str, dict] = {
        "": {"handlers": handler_names, "level": level},
    }
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        loggers[name] = {"handlers": handler_names, "level": "INFO", "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "()": "transaction_advisor.logger.ColourizedFormatter",
                "fmt": LOG_FORMAT,
                "use_colour": _colour_enabled(),
            },
            "plain": {"format": LOG_FORMAT},
        },
        "handlers": handlers,
        "loggers": loggers,
    }


def setup_logging() -> None:
    logging.config.dictConfig(get_logging_config())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

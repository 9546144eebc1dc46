import os
import re
from collections.abc import Callable
from decimal import Decimal
from typing import TypeVar

from dotenv import find_dotenv, load_dotenv

from transaction_advisor.logger import get_logger
from transaction_advisor.models import DuplicateDetectionSettings

logger = get_logger(__name__)

N = TypeVar("N", int, float)


CONFIG_FILENAME = "config.yaml"

_CONFIG_FILE_PATH: str | None = None
_EXTERNAL_ENV_KEYS: set[str] = set()

_CONFIG_KEYS = (
    "LOG_LEVEL",
    "HOST",
    "PORT",
    "DATA_DIR",
    "LOG_DIR",
    "DUPLICATE_AMOUNT_TOLERANCE",
    "DUPLICATE_DAYS_TOLERANCE",
    "DUPLICATE_SMALL_AMOUNT_THRESHOLD",
    "DUPLICATE_IGNORE_SMALL_AMOUNTS",
    "DUPLICATE_CONSIDER_ACCOUNT",
    "DUPLICATE_BATCH_WARN_SIZE",
    "SUGGESTION_BATCH_LIMIT",
    "SUGGESTION_MIN_CONFIDENCE",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

_KEY_LINE = re.compile(r"^(?P<key>[A-Za-z_][A-Za-z0-9_]*)\s*:(?P<value>.*)$")
_QUOTED = re.compile(r"""^(?P<quote>["'])(?P<body>(?:\\.|(?!(?P=quote)).)*)(?P=quote)""")


def _config_candidates() -> list[str]:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir:
        return [os.path.join(config_dir, CONFIG_FILENAME)]
    cwd = os.getcwd()
    return [
        os.path.join(cwd, "config", CONFIG_FILENAME),
        os.path.join(cwd, CONFIG_FILENAME),
    ]


def _dotenv_path() -> str | None:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir and os.path.exists(os.path.join(config_dir, ".env")):
        return os.path.join(config_dir, ".env")
    return find_dotenv(usecwd=True) or None


def _parse_value(raw: str) -> str:
    raw = raw.strip()
    quoted = _QUOTED.match(raw)
    if quoted:
        return re.sub(r"\\(.)", r"\1", quoted.group("body"))
    # Unquoted values end at the first " #"
    if raw.startswith("#"):
        return ""
    return raw.split(" #", 1)[0].rstrip()


def read_config_file(path: str | None) -> dict[str, str]:
    """Read flat ``KEY: value`` lines; anything else is ignored."""
    if not path or not os.path.exists(path):
        return {}

    values: dict[str, str] = {}
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            match = _KEY_LINE.match(line.strip())
            if not match:
                continue
            value = _parse_value(match.group("value"))
            if value:
                values[match.group("key")] = value
    return values


def load_environment() -> None:
    """
    Populate ``os.environ`` from ``.env`` and then ``config.yaml``.

    Variables already set by the process win over both files.
    """
    global _CONFIG_FILE_PATH
    global _EXTERNAL_ENV_KEYS

    dotenv_path = _dotenv_path()
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)
    _EXTERNAL_ENV_KEYS = set(os.environ)

    candidates = _config_candidates()
    _CONFIG_FILE_PATH = next((p for p in candidates if os.path.exists(p)), candidates[-1])
    file_values = read_config_file(_CONFIG_FILE_PATH)
    for key in _CONFIG_KEYS:
        if key in file_values:
            os.environ.setdefault(key, file_values[key])


def is_env_override(name: str) -> bool:
    return name in _EXTERNAL_ENV_KEYS


def ensure_dirs(*paths: str | None) -> None:
    for path in paths:
        if path and path not in {".", "./"}:
            os.makedirs(path, exist_ok=True)


def _get_env_number(name: str, default: N, cast: Callable[[str], N], min_value: N | None) -> N:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning(
            "[ENV] %s='%s' below minimum %s, using default %s.", name, raw, min_value, default
        )
        return default
    return value


def get_env_int(name: str, default: int, min_value: int | None = None) -> int:
    return _get_env_number(name, default, int, min_value)


def get_env_float(name: str, default: float = 0.0, min_value: float | None = None) -> float:
    return _get_env_number(name, default, float, min_value)


def get_env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if not raw:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
    return default


_SENSITIVE_MARKERS = ("KEY", "TOKEN", "SECRET", "PASSWORD", "AUTH")


def _mask_env_value(name: str, value: str) -> str:
    sanitized = value.replace("\r", "\\r").replace("\n", "\\n")
    if not any(marker in name.upper() for marker in _SENSITIVE_MARKERS):
        return sanitized
    if len(sanitized) <= 4:
        return "****"
    return f"{sanitized[:2]}...{sanitized[-2:]}"


def log_environment() -> None:
    logger.info("[ENV] Config file: %s", _CONFIG_FILE_PATH or "<none>")
    for key in _CONFIG_KEYS:
        raw_value = os.getenv(key)
        if raw_value is None:
            value = "<unset>"
        else:
            value = _mask_env_value(key, raw_value)
            if not is_env_override(key):
                value += " (config file)"
        logger.info("[ENV] %s=%s", key, value)

DEFAULT_DUPLICATE_BATCH_WARN_SIZE = 500
DEFAULT_SUGGESTION_BATCH_LIMIT = 20
DEFAULT_SUGGESTION_MIN_CONFIDENCE = 0.6


def default_duplicate_settings() -> DuplicateDetectionSettings:
    defaults = DuplicateDetectionSettings()
    return DuplicateDetectionSettings(
        amount_tolerance=get_env_float(
            "DUPLICATE_AMOUNT_TOLERANCE", defaults.amount_tolerance, min_value=0.0
        ),
        days_tolerance=get_env_int(
            "DUPLICATE_DAYS_TOLERANCE", defaults.days_tolerance, min_value=0
        ),
        small_amount_threshold=Decimal(str(get_env_float(
            "DUPLICATE_SMALL_AMOUNT_THRESHOLD",
            float(defaults.small_amount_threshold),
            min_value=0.0,
        ))),
        ignore_small_amounts=get_env_bool(
            "DUPLICATE_IGNORE_SMALL_AMOUNTS", defaults.ignore_small_amounts
        ),
        consider_account=get_env_bool(
            "DUPLICATE_CONSIDER_ACCOUNT", defaults.consider_account
        ),
    )


load_environment()

DATA_DIR = os.getenv("DATA_DIR", ".")
LOG_DIR = os.getenv("LOG_DIR")
CONFIG_DIR = os.getenv("CONFIG_DIR")

ensure_dirs(DATA_DIR, LOG_DIR, CONFIG_DIR)

DUPLICATE_BATCH_WARN_SIZE = get_env_int(
    "DUPLICATE_BATCH_WARN_SIZE",
    DEFAULT_DUPLICATE_BATCH_WARN_SIZE,
    min_value=2,
)

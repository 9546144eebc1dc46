import json
import os
import tempfile
from typing import Any

from pydantic import TypeAdapter, ValidationError

from transaction_advisor.logger import get_logger
from transaction_advisor.models import Category, ClassificationRule, DuplicateDetectionSettings

logger = get_logger(__name__)

_CATEGORIES = TypeAdapter(list[Category])
_RULES = TypeAdapter(list[ClassificationRule])


class StateStore:
    """
    JSON files under ``data_dir`` holding what the HTTP layer wants to keep
    between restarts: categories, the rule snapshot and duplicate settings.
    """

    def __init__(self, data_dir: str = "."):
        self.data_dir = data_dir
        self.categories_path = os.path.join(data_dir, "categories.json")
        self.rules_path = os.path.join(data_dir, "rules.json")
        self.settings_path = os.path.join(data_dir, "duplicate_settings.json")

    def _read(self, path: str) -> Any | None:
        if not os.path.exists(path):
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError:
            logger.warning("[STORE] Ignoring corrupt state file %s.", path)
            return None

    def _write(self, path: str, payload: bytes) -> None:
        # Readers only ever see the old file or the complete new one
        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp_path, path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def load_categories(self) -> list[Category]:
        raw = self._read(self.categories_path)
        if raw is None:
            return []
        try:
            return _CATEGORIES.validate_python(raw)
        except ValidationError:
            logger.warning("[STORE] Invalid categories in %s; ignoring.", self.categories_path)
            return []

    def save_categories(self, categories: list[Category]) -> None:
        self._write(self.categories_path, _CATEGORIES.dump_json(categories, indent=2))

    def load_rules(self) -> list[ClassificationRule] | None:
        raw = self._read(self.rules_path)
        if raw is None:
            return None
        try:
            return _RULES.validate_python(raw)
        except ValidationError:
            logger.warning("[STORE] Invalid rules in %s; ignoring.", self.rules_path)
            return None

    def save_rules(self, rules: list[ClassificationRule]) -> None:
        self._write(self.rules_path, _RULES.dump_json(rules, indent=2))

    def load_duplicate_settings(self) -> DuplicateDetectionSettings | None:
        raw = self._read(self.settings_path)
        if raw is None:
            return None
        try:
            return DuplicateDetectionSettings.model_validate(raw)
        except ValidationError:
            logger.warning("[STORE] Invalid settings in %s; ignoring.", self.settings_path)
            return None

    def save_duplicate_settings(self, settings: DuplicateDetectionSettings) -> None:
        self._write(self.settings_path, settings.model_dump_json(indent=2).encode("utf-8"))

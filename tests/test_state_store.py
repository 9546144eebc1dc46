from decimal import Decimal
from unittest.mock import patch

import pytest

from transaction_advisor.models import Category, ClassificationRule, DuplicateDetectionSettings
from transaction_advisor.services.state_store import StateStore


def test_store_starts_empty(tmp_path):
    store = StateStore(str(tmp_path))

    assert store.load_categories() == []
    assert store.load_rules() is None
    assert store.load_duplicate_settings() is None


def test_store_persists_state(tmp_path, categories):
    store = StateStore(str(tmp_path))
    rule = ClassificationRule(id="custom_abc", keywords=["padaria"], category_id="food", confidence=0.7)
    settings = DuplicateDetectionSettings(days_tolerance=3, small_amount_threshold=Decimal("5"))

    store.save_categories(categories)
    store.save_rules([rule])
    store.save_duplicate_settings(settings)

    reopened = StateStore(str(tmp_path))
    assert reopened.load_categories() == categories
    assert reopened.load_rules() == [rule]
    assert reopened.load_duplicate_settings() == settings


def test_failed_write_keeps_previous_file(tmp_path):
    store = StateStore(str(tmp_path))
    rule = ClassificationRule(id="custom_abc", keywords=["padaria"], category_id="food", confidence=0.7)
    store.save_rules([rule])

    with patch("transaction_advisor.services.state_store.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            store.save_rules([])

    assert store.load_rules() == [rule]
    # No temporary file is left behind
    assert [p.name for p in tmp_path.iterdir()] == ["rules.json"]


def test_store_ignores_corrupt_files(tmp_path):
    (tmp_path / "categories.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "rules.json").write_text('[{"id": "x", "keywords": []}]', encoding="utf-8")
    (tmp_path / "duplicate_settings.json").write_text('{"days_tolerance": "soon"}', encoding="utf-8")

    store = StateStore(str(tmp_path))

    assert store.load_categories() == []
    assert store.load_rules() is None
    assert store.load_duplicate_settings() is None

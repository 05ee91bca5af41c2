import json
import shutil

import pytest
from pydantic import ValidationError

from labelscan.config import DATA_DIR, DATA_DIR_ENV, default_rules, load_rules
from labelscan.suitability import SuitabilityEvaluator


def test_default_rules_are_cached_and_frozen():
    rules = default_rules()
    assert default_rules() is rules
    with pytest.raises(ValidationError):
        rules.synonyms = {}


def test_packaged_tables_loaded(rules):
    assert rules.risk_keywords["palm oil"] == "high"
    assert rules.ingredient_ratings["olive oil"] == "good"
    assert rules.synonyms["msg"] == "monosodium glutamate"
    assert "almond" in rules.allergen_keywords["nuts"]
    assert rules.suitability["verdict_bands"] == {"good": 70, "moderate": 40}
    assert rules.sodium_ambiguous_band == (50, 100)
    assert ("carbo hydrates", "carbohydrates") in rules.ocr_corrections


def test_data_dir_from_environment(tmp_path, monkeypatch):
    data_dir = tmp_path / "rules"
    shutil.copytree(DATA_DIR, data_dir)
    path = data_dir / "suitability_rules.json"
    table = json.loads(path.read_text(encoding="utf-8"))
    table["verdict_bands"] = {"good": 90, "moderate": 50}
    path.write_text(json.dumps(table), encoding="utf-8")

    monkeypatch.setenv(DATA_DIR_ENV, str(data_dir))
    evaluator = SuitabilityEvaluator(load_rules())
    assert evaluator.determine_verdict(80) == "moderate"
    assert evaluator.determine_verdict(45) == "avoid"

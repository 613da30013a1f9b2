"""
Tests for settings loading.

Run with: pytest tests/test_config.py -v
"""

import json

import pytest
from pydantic import ValidationError

from reconciler.config import Settings, load_settings
from reconciler.matching import ProductMatcher


class TestSettings:

    def test_defaults(self):
        settings = load_settings()
        assert settings.similarity_threshold == 0.4
        assert settings.min_token_overlap == 2
        assert settings.synonyms["fuschia"] == "fuchsia"
        assert settings.ledger_path is None

    def test_load_json(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({
            "similarity_threshold": 0.5,
            "ledger_path": "data/ledger.json",
            "synonyms": {"gray": "grey"},
        }))
        settings = load_settings(path)
        assert settings.similarity_threshold == 0.5
        assert settings.ledger_path.name == "ledger.json"
        assert settings.synonyms == {"gray": "grey"}
        assert settings.low_confidence_warning == 0.6

    def test_invalid_threshold(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"similarity_threshold": 1.5}))
        with pytest.raises(ValidationError):
            load_settings(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.json")

    def test_synonyms_reach_tokenizer(self):
        matcher = ProductMatcher(Settings(synonyms={"gray": "grey"}))
        assert matcher.names.tokenize("gray mug") == ["grey", "mug"]
        assert matcher.names.tokenize("fuschia") == ["fuschia"]

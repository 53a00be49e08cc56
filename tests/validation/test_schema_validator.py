"""Tests for the schema validator."""

import pytest

from dcap.domain.errors import ConfigError
from dcap.validation.schema_validator import SchemaValidator


NOTE_SCHEMA = {
    "title": "note",
    "type": "object",
    "properties": {"text": {"type": "string"}, "tags": {"type": "array", "items": {"type": "string"}}},
    "required": ["text"],
}


@pytest.fixture
def validator():
    return SchemaValidator()


class TestCheckSchema:
    def test_accepts_well_formed_schema(self, validator):
        validator.check_schema(NOTE_SCHEMA)

    def test_accepts_extra_keywords(self, validator):
        validator.check_schema({**NOTE_SCHEMA, "encrypted": True, "hash": "abc"})

    def test_rejects_malformed_schema(self, validator):
        with pytest.raises(ConfigError, match='"broken" is an invalid JSON Schema'):
            validator.check_schema({"title": "broken", "type": "not-a-type"})

    def test_rejects_bad_required(self, validator):
        with pytest.raises(ConfigError):
            validator.check_schema({"title": "broken", "required": "text"})


class TestValidate:
    def test_valid_instance(self, validator):
        outcome = validator.validate(NOTE_SCHEMA, {"text": "hi"})

        assert outcome.valid is True
        assert outcome.errors == ""

    def test_missing_required_property(self, validator):
        outcome = validator.validate(NOTE_SCHEMA, {})

        assert outcome.valid is False
        assert outcome.errors.startswith("$: ")
        assert "'text' is a required property" in outcome.errors

    def test_reports_every_failure_with_path(self, validator):
        outcome = validator.validate(NOTE_SCHEMA, {"text": 5, "tags": ["ok", 7]})

        assert outcome.valid is False
        assert len(outcome.messages) == 2
        assert any(m.startswith("text: ") for m in outcome.messages)
        assert any(m.startswith("tags/1: ") for m in outcome.messages)
        assert "; " in outcome.errors

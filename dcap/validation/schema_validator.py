"""Schema validation backed by jsonschema."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

import jsonschema
from jsonschema.validators import validator_for

from dcap.domain.errors import ConfigError


@dataclass
class ValidationOutcome:
    """Result of validating one instance against a schema."""
    valid: bool
    messages: List[str] = field(default_factory=list)

    @property
    def errors(self) -> str:
        """Human-readable error text, one ``path: message`` per failure."""
        return "; ".join(self.messages)


class SchemaValidator:
    """Structural JSON Schema validation.

    The validator class follows the schema's ``$schema``; schemas without one
    are treated as Draft 7.
    """

    def __init__(self, default_validator=jsonschema.Draft7Validator):
        self._default = default_validator

    def _validator_class(self, schema: Dict[str, Any]):
        return validator_for(schema, default=self._default)

    def check_schema(self, schema: Dict[str, Any]) -> None:
        """Raise ConfigError if ``schema`` is not itself a valid schema."""
        try:
            self._validator_class(schema).check_schema(schema)
        except jsonschema.SchemaError as e:
            title = schema.get("title") if isinstance(schema, dict) else None
            raise ConfigError(
                f'Type schema "{title}" is an invalid JSON Schema: {e.message}'
            ) from e

    def validate(self, schema: Dict[str, Any], instance: Any) -> ValidationOutcome:
        validator = self._validator_class(schema)(schema)
        messages = []
        for error in sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.absolute_path]):
            path = "/".join(str(p) for p in error.absolute_path) or "$"
            messages.append(f"{path}: {error.message}")
        return ValidationOutcome(valid=not messages, messages=messages)

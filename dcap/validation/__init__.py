"""JSON Schema validation of type schemas and documents."""

from dcap.validation.schema_validator import SchemaValidator, ValidationOutcome

__all__ = ["SchemaValidator", "ValidationOutcome"]

"""Phasegate JSON Schema definitions and validation utilities.

Schemas:
    - project.schema.json: The persisted project document (statechart,
      project identity, phases with artifacts and tasks)

Usage:
    from phasegate.schemas import validate_document

    validate_document(data)  # Raises DocumentValidationError if invalid
    validate_document(data, project_types=["standard", "exploration"])
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterable
from functools import cache
from importlib.resources import files
from typing import Any

import jsonschema

from phasegate.domain.exceptions import DocumentValidationError


@cache
def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'project.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("phasegate.schemas").joinpath(name).read_text()
    result: dict[str, Any] = json.loads(schema_text)
    return result


def get_project_schema(project_types: Iterable[str] | None = None) -> dict[str, Any]:
    """Get the project document schema.

    Args:
        project_types: If given, ``project.type`` is restricted to these names

    Returns:
        JSON Schema for the project document (a fresh copy)
    """
    schema = copy.deepcopy(_load_schema("project.schema.json"))
    if project_types is not None:
        schema["properties"]["project"]["properties"]["type"]["enum"] = sorted(
            project_types
        )
    return schema


def validate_document(
    data: dict[str, Any], project_types: Iterable[str] | None = None
) -> None:
    """Validate a project document against the schema.

    Every violation is collected, so the error lists all problems at once.

    Args:
        data: Project document dictionary
        project_types: Registered type names to accept (any string if None)

    Raises:
        DocumentValidationError: If validation fails
    """
    schema = get_project_schema(project_types)
    validator = jsonschema.Draft202012Validator(schema)
    errors = sorted(
        validator.iter_errors(data),
        key=lambda e: [str(p) for p in e.absolute_path],
    )
    if errors:
        raise DocumentValidationError(
            "project document failed schema validation",
            [_format_error(e) for e in errors],
        )


def _format_error(error: jsonschema.ValidationError) -> str:
    location = ".".join(str(p) for p in error.absolute_path) or "<root>"
    return f"{location}: {error.message}"


__all__ = [
    "get_project_schema",
    "validate_document",
]

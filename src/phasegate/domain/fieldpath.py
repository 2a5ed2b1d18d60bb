"""
Field-path resolution over project, phase, task and artifact records.

A path is split on ``.``. When the first segment is ``metadata`` the
remaining segments walk the record's open metadata map; otherwise the path
must name one of the record's known direct fields. There is no fallback
from an unknown direct field into metadata.

Values written from strings are coerced with :func:`convert_value`:
``"true"``/``"false"`` become booleans, integer strings become ints and
everything else stays a string. Reads return stored values unmodified.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from phasegate.domain.exceptions import FieldPathError, InvalidValueError
from phasegate.domain.models import (
    ArtifactState,
    Metadata,
    MetadataValue,
    PhaseState,
    PhaseStatus,
    ProjectState,
    TaskState,
    TaskStatus,
)

METADATA_SEGMENT = "metadata"

# Signed ASCII decimal within 64-bit range; anything looser stays text.
_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

Target = ProjectState | PhaseState | TaskState | ArtifactState


@dataclass(frozen=True)
class FieldSpec:
    """Declared type and write policy of a direct field."""

    kind: type
    nullable: bool = False
    writable: bool = True
    choices: tuple[str, ...] = ()


_STR = FieldSpec(str)
_READ_ONLY_STR = FieldSpec(str, writable=False)
_READ_ONLY_TIMESTAMP = FieldSpec(str, nullable=True, writable=False)

# Direct-field whitelists per target type.
_FIELDS: dict[type, dict[str, FieldSpec]] = {
    ProjectState: {
        "name": _STR,
        "type": _READ_ONLY_STR,
        "branch": _STR,
        "description": _STR,
        "created_at": _READ_ONLY_STR,
        "updated_at": _READ_ONLY_STR,
    },
    PhaseState: {
        # status and timestamps belong to the state machine's entry/exit hooks
        "status": FieldSpec(PhaseStatus, writable=False),
        "enabled": FieldSpec(bool),
        "created_at": _READ_ONLY_STR,
        "started_at": _READ_ONLY_TIMESTAMP,
        "completed_at": _READ_ONLY_TIMESTAMP,
        "failed_at": _READ_ONLY_TIMESTAMP,
        "iteration": FieldSpec(int, writable=False),
    },
    TaskState: {
        "id": _READ_ONLY_STR,
        "name": _STR,
        "status": FieldSpec(TaskStatus),
        "parallel": FieldSpec(bool),
        "dependencies": FieldSpec(list, writable=False),
        "artifacts": FieldSpec(list, writable=False),
        "created_at": _READ_ONLY_STR,
        "updated_at": _READ_ONLY_TIMESTAMP,
    },
    ArtifactState: {
        "path": _READ_ONLY_STR,
        "type": FieldSpec(str, nullable=True),
        "approved": FieldSpec(bool, nullable=True),
        "assessment": FieldSpec(str, nullable=True, choices=("pass", "fail")),
        "created_at": _READ_ONLY_STR,
    },
}


def parse_field_path(path: str) -> list[str]:
    """Split a dotted path into segments ("metadata.a.b" -> ["metadata", "a", "b"])."""
    if not path:
        raise FieldPathError("field path cannot be empty")
    segments = path.split(".")
    if any(not segment for segment in segments):
        raise FieldPathError(f"invalid field path '{path}': empty segment")
    return segments


def is_metadata_path(segments: list[str]) -> bool:
    return len(segments) >= 2 and segments[0] == METADATA_SEGMENT


def convert_value(value: str) -> bool | int | str:
    """Coerce CLI string input to bool, int or str."""
    if value == "true":
        return True
    if value == "false":
        return False
    if _INTEGER.fullmatch(value):
        number = int(value)
        if _INT64_MIN <= number <= _INT64_MAX:
            return number
    return value


def known_fields(target_type: type) -> tuple[str, ...]:
    """Direct field names addressable on a target type."""
    return tuple(_specs_for(target_type))


def is_known_field(target_type: type, name: str) -> bool:
    return name in _FIELDS.get(target_type, {})


def set_field(target: Target, path: str, value: str) -> None:
    """
    Write a value addressed by ``path`` on ``target``.

    Args:
        target: A project, phase, task or artifact record
        path: Direct field name or ``metadata.<key>[.<key>...]``
        value: Raw string input, coerced before storing

    Raises:
        FieldPathError: Unknown field, read-only field, bad path or type mismatch
        InvalidValueError: Value outside a field's enumeration
    """
    specs = _specs_for(type(target))
    segments = parse_field_path(path)

    if segments == [METADATA_SEGMENT]:
        raise FieldPathError(
            "invalid metadata path: must specify a key after 'metadata'"
        )
    if is_metadata_path(segments):
        _set_metadata(target.metadata, segments[1:], convert_value(value))
        return
    if len(segments) > 1:
        raise FieldPathError(
            f"unknown field: {path} (only metadata paths may be nested)"
        )

    name = segments[0]
    spec = specs.get(name)
    if spec is None:
        raise FieldPathError(
            f"unknown field: {name}. Known fields for {type(target).__name__}: "
            f"{', '.join(specs)}"
        )
    if not spec.writable:
        raise FieldPathError(f"field '{name}' is read-only")
    setattr(target, name, _coerce_direct(name, spec, value))


def get_field(target: Target, path: str) -> Any:
    """
    Read a value addressed by ``path`` on ``target``.

    Raises:
        FieldPathError: Unknown field or missing metadata key
    """
    specs = _specs_for(type(target))
    segments = parse_field_path(path)

    if segments == [METADATA_SEGMENT]:
        return target.metadata
    if is_metadata_path(segments):
        return _get_metadata(target.metadata, segments[1:])
    if len(segments) > 1 or segments[0] not in specs:
        raise FieldPathError(
            f"unknown field: {path}. Known fields for {type(target).__name__}: "
            f"{', '.join(specs)}"
        )
    return getattr(target, segments[0])


def _specs_for(target_type: type) -> dict[str, FieldSpec]:
    specs = _FIELDS.get(target_type)
    if specs is None:
        raise FieldPathError(f"unsupported field-path target: {target_type.__name__}")
    return specs


def _coerce_direct(name: str, spec: FieldSpec, raw: str) -> Any:
    if spec.kind is str:
        # Strings are stored verbatim so names like "2024" stay strings.
        if spec.choices and raw not in spec.choices:
            raise InvalidValueError(
                f"invalid value for '{name}': {raw!r} (expected one of "
                f"{', '.join(spec.choices)})"
            )
        return raw

    if issubclass(spec.kind, Enum):
        try:
            return spec.kind(raw)
        except ValueError:
            allowed = ", ".join(member.value for member in spec.kind)
            raise InvalidValueError(
                f"invalid value for '{name}': {raw!r} (expected one of {allowed})"
            ) from None

    converted = convert_value(raw)
    if spec.kind is bool and isinstance(converted, bool):
        return converted
    if spec.kind is int and isinstance(converted, int) and not isinstance(
        converted, bool
    ):
        return converted
    if spec.kind is list:
        raise FieldPathError(f"unsupported field type for '{name}': list")
    raise FieldPathError(
        f"cannot convert {raw!r} to {spec.kind.__name__} for field '{name}'"
    )


def _set_metadata(
    metadata: Metadata, keys: list[str], value: MetadataValue
) -> None:
    current = metadata
    for key in keys[:-1]:
        nxt = current.get(key)
        if nxt is None and key not in current:
            nxt = {}
            current[key] = nxt
        if not isinstance(nxt, dict):
            raise FieldPathError(f"metadata path conflict: '{key}' is not a map")
        current = nxt
    current[keys[-1]] = value


def _get_metadata(metadata: Metadata, keys: list[str]) -> MetadataValue:
    current: MetadataValue = metadata
    for key in keys:
        if not isinstance(current, dict):
            raise FieldPathError(
                f"metadata path not found: expected a map at '{key}'"
            )
        if key not in current:
            raise FieldPathError(f"metadata key not found: {key}")
        current = current[key]
    return current

"""Tests for field-path resolution and value coercion."""

import pytest

from phasegate.domain.exceptions import FieldPathError, InvalidValueError
from phasegate.domain.fieldpath import (
    convert_value,
    get_field,
    known_fields,
    parse_field_path,
    set_field,
)
from phasegate.domain.models import (
    ArtifactState,
    PhaseState,
    PhaseStatus,
    ProjectState,
    TaskState,
    TaskStatus,
)


@pytest.fixture
def phase() -> PhaseState:
    return PhaseState(created_at="2025-01-01T00:00:00+00:00")


@pytest.fixture
def task() -> TaskState:
    return TaskState(id="010", name="Write docs", created_at="2025-01-01T00:00:00+00:00")


@pytest.fixture
def artifact() -> ArtifactState:
    return ArtifactState(path="review.md", created_at="2025-01-01T00:00:00+00:00")


class TestConvertValue:
    """Tests for string coercion."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("true", True),
            ("false", False),
            ("42", 42),
            ("-3", -3),
            ("abc", "abc"),
            ("True", "True"),
            ("", ""),
            ("+7", 7),
            ("007", 7),
            ("1_000", "1_000"),
            (" 7 ", " 7 "),
            ("7\n", "7\n"),
            ("\u0663", "\u0663"),
            ("\u00b2", "\u00b2"),
            ("9223372036854775807", 9223372036854775807),
            ("9223372036854775808", "9223372036854775808"),
        ],
    )
    def test_coercion(self, raw, expected) -> None:
        """true/false become bools, integers become ints, the rest stays text."""
        result = convert_value(raw)
        assert result == expected
        assert type(result) is type(expected)


class TestParseFieldPath:
    """Tests for path splitting."""

    def test_splits_on_dots(self) -> None:
        assert parse_field_path("metadata.a.b") == ["metadata", "a", "b"]

    def test_rejects_empty_path(self) -> None:
        with pytest.raises(FieldPathError, match="empty"):
            parse_field_path("")

    def test_rejects_empty_segment(self) -> None:
        with pytest.raises(FieldPathError, match="empty segment"):
            parse_field_path("metadata..b")


class TestSetMetadata:
    """Tests for writes under metadata.*"""

    def test_nested_path_creates_intermediate_maps(self, phase) -> None:
        set_field(phase, "metadata.review.outcome", "true")

        assert phase.metadata == {"review": {"outcome": True}}

    def test_values_are_coerced(self, phase) -> None:
        set_field(phase, "metadata.count", "3")
        set_field(phase, "metadata.label", "draft")

        assert phase.metadata == {"count": 3, "label": "draft"}

    def test_conflict_with_scalar_raises(self, phase) -> None:
        phase.metadata["review"] = "x"

        with pytest.raises(FieldPathError, match="not a map"):
            set_field(phase, "metadata.review.outcome", "true")

    def test_bare_metadata_rejected(self, phase) -> None:
        with pytest.raises(FieldPathError, match="must specify a key"):
            set_field(phase, "metadata", "x")


class TestSetDirectField:
    """Tests for writes to known direct fields."""

    def test_unknown_field_is_not_routed_to_metadata(self, phase) -> None:
        """An unknown direct field raises instead of landing in metadata."""
        with pytest.raises(FieldPathError, match="unknown field: owner"):
            set_field(phase, "owner", "sam")

        assert phase.metadata == {}

    def test_nested_direct_path_rejected(self, phase) -> None:
        with pytest.raises(FieldPathError, match="only metadata paths"):
            set_field(phase, "enabled.value", "true")

    def test_phase_status_is_read_only(self, phase) -> None:
        with pytest.raises(FieldPathError, match="read-only"):
            set_field(phase, "status", "completed")

        assert phase.status is PhaseStatus.PENDING

    def test_bool_field(self, phase) -> None:
        set_field(phase, "enabled", "false")

        assert phase.enabled is False

    def test_bool_field_rejects_text(self, phase) -> None:
        with pytest.raises(FieldPathError, match="cannot convert"):
            set_field(phase, "enabled", "maybe")

    def test_task_status_enum(self, task) -> None:
        set_field(task, "status", "completed")

        assert task.status is TaskStatus.COMPLETED

    def test_task_status_rejects_unknown_value(self, task) -> None:
        with pytest.raises(InvalidValueError, match="expected one of"):
            set_field(task, "status", "done")

    def test_task_list_fields_are_read_only(self, task) -> None:
        with pytest.raises(FieldPathError, match="read-only"):
            set_field(task, "dependencies", "010")

    def test_artifact_assessment_choices(self, artifact) -> None:
        set_field(artifact, "assessment", "fail")
        assert artifact.assessment == "fail"

        with pytest.raises(InvalidValueError):
            set_field(artifact, "assessment", "maybe")

    def test_artifact_approved(self, artifact) -> None:
        set_field(artifact, "approved", "true")

        assert artifact.approved is True

    def test_string_fields_are_stored_verbatim(self) -> None:
        """Numeric-looking names stay strings."""
        project = ProjectState(
            name="x",
            type="standard",
            branch="main",
            description="d",
            created_at="t",
            updated_at="t",
            current_state="Planning",
        )

        set_field(project, "name", "2024")

        assert project.name == "2024"

    def test_project_type_is_read_only(self) -> None:
        project = ProjectState(
            name="x",
            type="standard",
            branch="main",
            description="d",
            created_at="t",
            updated_at="t",
            current_state="Planning",
        )

        with pytest.raises(FieldPathError, match="read-only"):
            set_field(project, "type", "exploration")


class TestGetField:
    """Tests for reads."""

    def test_reads_nested_metadata(self, phase) -> None:
        set_field(phase, "metadata.a.b", "7")

        assert get_field(phase, "metadata.a.b") == 7
        assert get_field(phase, "metadata.a") == {"b": 7}

    def test_bare_metadata_returns_map(self, phase) -> None:
        phase.metadata["flag"] = True

        assert get_field(phase, "metadata") == {"flag": True}

    def test_missing_metadata_key(self, phase) -> None:
        with pytest.raises(FieldPathError, match="not found"):
            get_field(phase, "metadata.absent")

    def test_reads_direct_field_unmodified(self, phase) -> None:
        assert get_field(phase, "status") is PhaseStatus.PENDING
        assert get_field(phase, "iteration") == 1

    def test_unknown_field(self, task) -> None:
        with pytest.raises(FieldPathError, match="Known fields for TaskState"):
            get_field(task, "owner")


class TestKnownFields:
    def test_lists_direct_fields(self) -> None:
        assert "path" in known_fields(ArtifactState)
        assert "metadata" not in known_fields(ArtifactState)

    def test_unsupported_target(self) -> None:
        with pytest.raises(FieldPathError, match="unsupported"):
            known_fields(dict)

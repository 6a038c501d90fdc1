"""
Tests for dashboard record models.

Tests enum parsing with fallbacks, camelCase serialization, push payload
validation and filter whitelisting.
"""

import pytest

from plandash.core.dashboard.exceptions import InvalidPayloadError
from plandash.core.dashboard.models import (
    TASK_FILTER_FIELDS,
    Priority,
    ProjectStatus,
    SyncData,
    SyncResult,
    TaskStatus,
    validate_filters,
)


class TestPriorityParse:
    """Test Priority.parse."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("P0", Priority.P0),
            ("p1", Priority.P1),
            ("3", Priority.P3),
            ("critical", Priority.P0),
            ("High", Priority.P1),
            ("medium", Priority.P2),
            ("low", Priority.P3),
            ("backlog", Priority.P4),
        ],
    )
    def test_recognized_values(self, raw, expected):
        """Test numeric, prefixed and word forms."""
        assert Priority.parse(raw) == expected

    def test_absent_uses_default(self):
        """Test that None yields P2 or the given default."""
        assert Priority.parse(None) == Priority.P2
        assert Priority.parse(None, default=Priority.P4) == Priority.P4

    def test_unknown_falls_back_with_warning(self, caplog):
        """Test that an unknown value falls back to P2 and logs."""
        assert Priority.parse("urgent!!") == Priority.P2
        assert "Unknown priority" in caplog.text


class TestStatusParse:
    """Test TaskStatus.parse and ProjectStatus.parse."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("todo", TaskStatus.TODO),
            ("In Progress", TaskStatus.IN_PROGRESS),
            ("in-progress", TaskStatus.IN_PROGRESS),
            ("in review", TaskStatus.REVIEW),
            ("Completed", TaskStatus.DONE),
            ("blocked", TaskStatus.BLOCKED),
            ("pending", TaskStatus.TODO),
        ],
    )
    def test_task_status_forms(self, raw, expected):
        """Test separators, case and aliases are normalized."""
        assert TaskStatus.parse(raw) == expected

    def test_task_status_unknown(self):
        """Test that an unknown task status falls back to todo."""
        assert TaskStatus.parse("someday") == TaskStatus.TODO
        assert TaskStatus.parse(None) == TaskStatus.TODO

    def test_project_status(self):
        """Test project status parsing and fallback."""
        assert ProjectStatus.parse("Paused") == ProjectStatus.PAUSED
        assert ProjectStatus.parse("complete") == ProjectStatus.DONE
        assert ProjectStatus.parse("whatever") == ProjectStatus.ACTIVE
        assert ProjectStatus.parse(None) == ProjectStatus.ACTIVE


class TestSerialization:
    """Test the document shape of records."""

    def test_project_document_is_camel_case(self, make_project):
        """Test that documents use camelCase keys and enum values."""
        project = make_project(success_metrics=["50 users"], target_date="2025-03-01")
        doc = project.to_document()

        assert doc["successMetrics"] == ["50 users"]
        assert doc["lastUpdated"] == "2025-01-01T00:00:00Z"
        assert doc["targetDate"] == "2025-03-01"
        assert doc["status"] == "active"
        assert doc["priority"] == "P2"
        assert "success_metrics" not in doc

    def test_absent_optional_fields_are_omitted(self, make_task):
        """Test that None fields are left out of documents."""
        doc = make_task().to_document()
        assert "dependsOn" not in doc
        assert "outputs" not in doc
        assert doc["acceptanceCriteria"] == []

    def test_round_trip_through_document(self, make_task):
        """Test that a document validates back into an equal record."""
        task = make_task(depends_on="T-000", acceptance_criteria=["works"])
        assert type(task).model_validate(task.to_document()) == task


class TestSyncDataPayload:
    """Test SyncData.from_payload validation."""

    def test_valid_payload(self, make_project, make_task, make_output):
        """Test that a complete camelCase payload validates."""
        payload = {
            "projects": [make_project().to_document()],
            "tasks": [make_task().to_document()],
            "outputs": [make_output().to_document()],
            "lastSync": "2025-01-15T12:00:00Z",
        }
        data = SyncData.from_payload(payload)

        assert data.counts == {"projects": 1, "tasks": 1, "outputs": 1}
        assert data.last_sync == "2025-01-15T12:00:00Z"

    def test_empty_arrays_are_accepted(self):
        """Test that empty arrays are valid and lastSync is defaulted."""
        data = SyncData.from_payload({"projects": [], "tasks": [], "outputs": []})
        assert data.counts == {"projects": 0, "tasks": 0, "outputs": 0}
        assert data.last_sync

    @pytest.mark.parametrize("missing", ["projects", "tasks", "outputs"])
    def test_missing_array_is_rejected(self, missing):
        """Test that each of the three arrays is required."""
        payload = {"projects": [], "tasks": [], "outputs": []}
        del payload[missing]

        with pytest.raises(InvalidPayloadError) as exc_info:
            SyncData.from_payload(payload)
        assert "Missing required fields" in str(exc_info.value)
        assert missing in str(exc_info.value)

    def test_non_object_is_rejected(self):
        """Test that a JSON array body is rejected."""
        with pytest.raises(InvalidPayloadError):
            SyncData.from_payload([1, 2, 3])

    def test_invalid_record_is_rejected(self):
        """Test that a record missing required fields is rejected."""
        with pytest.raises(InvalidPayloadError):
            SyncData.from_payload({"projects": [{"slug": "x"}], "tasks": [], "outputs": []})


class TestValidateFilters:
    """Test filter whitelisting."""

    def test_drops_empty_values(self):
        """Test that None and empty strings are ignored."""
        filters = {"status": None, "owner": "", "project": "a"}
        assert validate_filters(filters, TASK_FILTER_FIELDS) == {"project": "a"}

    def test_rejects_unknown_field(self):
        """Test that a field outside the whitelist raises."""
        with pytest.raises(ValueError, match="Invalid filter field"):
            validate_filters({"title": "x"}, TASK_FILTER_FIELDS)

    def test_enum_values_are_unwrapped(self):
        """Test that enum filter values become their string value."""
        assert validate_filters({"status": TaskStatus.DONE}, TASK_FILTER_FIELDS) == {
            "status": "done"
        }


class TestSyncResult:
    """Test SyncResult helpers."""

    def test_total_and_stats(self):
        """Test derived counts."""
        result = SyncResult(success=True, action="synced", projects=2, tasks=5, outputs=1)
        assert result.total == 8
        assert result.stats == {"projects": 2, "tasks": 5, "outputs": 1}

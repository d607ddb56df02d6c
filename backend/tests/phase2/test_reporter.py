"""Tests for ImportResult construction and its wire format."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from flowguide.importer.assembler import assign_positions
from flowguide.importer.errors import InvalidTitleError, MalformedInputError, StructuralError
from flowguide.importer.reporter import build_failure, build_result
from flowguide.importer.schemas import FlowSummary, ImportCounts
from tests.fixtures import make_flow


class TestBuildResult:
    def test_counts_match_flows(self):
        flows = assign_positions([make_flow("A", 2), make_flow("B", 3)])
        result = build_result(flows)
        assert result.success is True
        counts = result.results
        assert counts.flow_boxes_created == 2
        assert counts.steps_created == 5
        assert [(f.name, f.step_count) for f in counts.flows] == [("A", 2), ("B", 3)]
        assert counts.flow_boxes_created == len(counts.flows)
        assert counts.steps_created == sum(f.step_count for f in counts.flows)
        assert result.message == "Successfully imported 2 flows with 5 steps"

    def test_empty_import_succeeds_with_zero_counts(self):
        result = build_result([])
        assert result.success is True
        assert result.results.flow_boxes_created == 0
        assert result.results.steps_created == 0
        assert result.results.flows == []

    def test_empty_flow_reported(self):
        result = build_result([make_flow("Later", 0), make_flow("Now", 1)])
        assert result.results.flow_boxes_created == 2
        assert [f.step_count for f in result.results.flows] == [0, 1]
        assert "Flow 'Later' has no steps" in result.warnings

    def test_parser_warnings_carried(self):
        result = build_result([make_flow()], warnings=["Line 3: row skipped, empty Step Title"])
        assert result.warnings == ["Line 3: row skipped, empty Step Title"]

    def test_imported_at_is_utc(self):
        before = datetime.now(UTC)
        result = build_result([])
        assert result.imported_at.tzinfo is not None
        assert result.imported_at >= before


class TestFailures:
    def test_first_failure_named(self):
        failures = [
            StructuralError("step heading '### A' appears before any flow heading", line=1),
            InvalidTitleError("flow heading has no title", line=9),
        ]
        result = build_result([make_flow()], failures=failures)
        assert result.success is False
        assert result.message.startswith("StructuralError: line 1:")
        assert result.results.flow_boxes_created == 0
        assert result.results.flows == []

    def test_failure_drops_parsed_drafts(self):
        result = build_result(
            [make_flow("A", 3)], failures=[InvalidTitleError("Step title is empty")]
        )
        assert result.results.steps_created == 0
        assert result.message == "ValidationError: Step title is empty"

    def test_build_failure(self):
        result = build_failure(MalformedInputError("CSV input is empty"))
        assert result.success is False
        assert result.message == "MalformedInput: CSV input is empty"
        assert result.warnings == []


class TestWireFormat:
    def test_serializes_camel_case(self):
        result = build_result([make_flow("Setup", 1)])
        body = result.model_dump(mode="json", by_alias=True)
        assert set(body) == {"success", "message", "results", "importedAt", "warnings"}
        assert body["results"] == {
            "flowBoxesCreated": 1,
            "stepsCreated": 1,
            "flows": [{"name": "Setup", "stepCount": 1}],
        }
        # ISO-8601 timestamp
        assert datetime.fromisoformat(body["importedAt"]).tzinfo is not None

    def test_counts_must_agree_with_flows(self):
        with pytest.raises(ValidationError):
            ImportCounts(
                flow_boxes_created=2,
                steps_created=1,
                flows=[FlowSummary(name="A", step_count=1)],
            )
        with pytest.raises(ValidationError):
            ImportCounts(
                flow_boxes_created=1,
                steps_created=5,
                flows=[FlowSummary(name="A", step_count=1)],
            )

    def test_result_is_immutable(self):
        result = build_result([])
        with pytest.raises(ValidationError):
            result.success = False

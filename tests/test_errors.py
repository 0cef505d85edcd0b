"""Tests for structured error categorization and retryability flags."""

from __future__ import annotations

import json

import pytest

from video_timeline_mcp.errors import (
    ProjectNotFoundError,
    SpecValidationError,
    SynthesisError,
    make_tool_error,
)
from video_timeline_mcp.models.timeline import IssueKind, ValidationIssue


def _issue(n: int) -> ValidationIssue:
    return ValidationIssue(kind=IssueKind.SCENE_OVERLAP, path=f"scenes[{n}].start", message="overlap")


class TestMakeToolError:
    def test_spec_validation_error(self):
        result = make_tool_error(SpecValidationError([_issue(1)]))
        assert result["category"] == "SPEC_INVALID"
        assert result["retryable"] is False
        assert "scenes[1].start" in result["error"]

    def test_spec_validation_error_summarises_many(self):
        exc = SpecValidationError([_issue(n) for n in range(8)])
        assert "(+3 more)" in str(exc)

    def test_project_not_found(self):
        result = make_tool_error(ProjectNotFoundError("forces"))
        assert result["category"] == "PROJECT_NOT_FOUND"
        assert "'forces'" in result["error"]

    def test_synthesis_error_is_retryable(self):
        result = make_tool_error(SynthesisError("TTS returned no audio"))
        assert result["category"] == "SYNTHESIS_FAILED"
        assert result["retryable"] is True

    def test_missing_api_key(self):
        result = make_tool_error(ValueError("No Gemini API key — set GEMINI_API_KEY"))
        assert result["category"] == "API_KEY_MISSING"

    def test_quota_sets_retry_after(self):
        result = make_tool_error(RuntimeError("429 RESOURCE_EXHAUSTED"))
        assert result["category"] == "API_QUOTA_EXCEEDED"
        assert result["retry_after_seconds"] == 60

    def test_json_decode_error(self):
        with pytest.raises(json.JSONDecodeError) as exc_info:
            json.loads("{oops")
        result = make_tool_error(exc_info.value)
        assert result["category"] == "SPEC_PARSE_FAILED"
        assert result["retryable"] is True

    def test_builtin_timeout_maps_to_network_error(self):
        result = make_tool_error(TimeoutError())
        assert result["category"] == "NETWORK_ERROR"
        assert result["retryable"] is True

    def test_file_not_found(self):
        result = make_tool_error(FileNotFoundError("missing.synapvid.json"))
        assert result["category"] == "FILE_NOT_FOUND"

    def test_unknown(self):
        result = make_tool_error(RuntimeError("something odd"))
        assert result["category"] == "UNKNOWN"
        assert result["retry_after_seconds"] is None

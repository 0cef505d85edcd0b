"""Structured error handling — error categories, classification, and tool error model."""

from __future__ import annotations

import json
from enum import Enum

from pydantic import BaseModel


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    SPEC_INVALID = "SPEC_INVALID"
    SPEC_PARSE_FAILED = "SPEC_PARSE_FAILED"
    EDIT_REJECTED = "EDIT_REJECTED"
    SYNTHESIS_FAILED = "SYNTHESIS_FAILED"
    API_PERMISSION_DENIED = "API_PERMISSION_DENIED"
    API_QUOTA_EXCEEDED = "API_QUOTA_EXCEEDED"
    API_INVALID_ARGUMENT = "API_INVALID_ARGUMENT"
    API_KEY_MISSING = "API_KEY_MISSING"
    NETWORK_ERROR = "NETWORK_ERROR"
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    UNKNOWN = "UNKNOWN"


class SpecValidationError(ValueError):
    """Raised when an externally generated payload fails spec validation."""

    def __init__(self, issues: list) -> None:
        self.issues = issues
        summary = "; ".join(f"{i.path}: {i.message}" for i in issues[:5])
        more = f" (+{len(issues) - 5} more)" if len(issues) > 5 else ""
        super().__init__(f"Video spec failed validation: {summary}{more}")


class SynthesisError(RuntimeError):
    """Raised by a speech synthesizer when a chunk cannot be rendered."""


class ProjectNotFoundError(LookupError):
    """Raised when a named project is not in the project store."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Project not found: {name!r}")


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False
    retry_after_seconds: int | None = None


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    s = str(error).lower()

    if isinstance(error, SpecValidationError):
        return (
            ErrorCategory.SPEC_INVALID,
            "Spec violates timeline invariants — fix the listed scenes/fields and retry",
        )
    if isinstance(error, ProjectNotFoundError):
        return (
            ErrorCategory.PROJECT_NOT_FOUND,
            "Project not found — check the name with project_list",
        )
    if isinstance(error, SynthesisError):
        return (
            ErrorCategory.SYNTHESIS_FAILED,
            "Speech synthesis failed — check the TTS model, voice name and API key",
        )
    if isinstance(error, json.JSONDecodeError):
        return (
            ErrorCategory.SPEC_PARSE_FAILED,
            "Model output was not valid JSON — retry or simplify the prompt",
        )
    if isinstance(error, FileNotFoundError):
        return (
            ErrorCategory.FILE_NOT_FOUND,
            "File not found — check the path",
        )
    if "no gemini api key" in s or "api key not" in s:
        return (
            ErrorCategory.API_KEY_MISSING,
            "Set GEMINI_API_KEY in the environment or ~/.config/video-timeline-mcp/.env",
        )
    if "403" in s or "permission" in s:
        return (
            ErrorCategory.API_PERMISSION_DENIED,
            "API key lacks permission for the requested model",
        )
    if "429" in s or "quota" in s or "resource_exhausted" in s:
        return (
            ErrorCategory.API_QUOTA_EXCEEDED,
            "Rate limit hit — wait and retry, or lower TIMELINE_SYNTH_CONCURRENCY",
        )
    if "json" in s and ("decode" in s or "expecting" in s or "invalid" in s):
        return (
            ErrorCategory.SPEC_PARSE_FAILED,
            "Model output was not valid JSON — retry or simplify the prompt",
        )
    if "400" in s:
        return (
            ErrorCategory.API_INVALID_ARGUMENT,
            "Bad request — check voice name, model and input text",
        )
    if isinstance(error, TimeoutError) or "timeout" in s or "timed out" in s:
        return (
            ErrorCategory.NETWORK_ERROR,
            "Request timed out — try again or check connectivity",
        )
    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    retryable = cat in {
        ErrorCategory.API_QUOTA_EXCEEDED,
        ErrorCategory.NETWORK_ERROR,
        ErrorCategory.SYNTHESIS_FAILED,
        ErrorCategory.SPEC_PARSE_FAILED,
    }
    return ToolError(
        error=str(error),
        category=cat.value,
        hint=hint,
        retryable=retryable,
        retry_after_seconds=60 if cat == ErrorCategory.API_QUOTA_EXCEEDED else None,
    ).model_dump(mode="json")

"""Tests for result values."""

from __future__ import annotations

import dataclasses

import pytest

from core.result import Failure, Result, Success, failure, success
from services.commerce.errors import ApiError


def describe(result: Result[str, ApiError]) -> str:
    if isinstance(result, Failure):
        return f"failed: {result.error.status_code}"
    return f"got: {result.value}"


class TestResult:
    """Tests for Success and Failure."""

    def test_helpers(self) -> None:
        """success() and failure() should wrap their argument."""
        assert success("ci_123") == Success("ci_123")
        assert failure("boom") == Failure("boom")

    def test_narrowing(self) -> None:
        """Callers should branch with isinstance."""
        assert describe(success("ci_123")) == "got: ci_123"
        assert describe(failure(ApiError(404, "Not found"))) == "failed: 404"

    def test_frozen(self) -> None:
        """Results should be immutable."""
        result = success("ci_123")

        with pytest.raises(dataclasses.FrozenInstanceError):
            result.value = "ci_456"  # type: ignore[misc]

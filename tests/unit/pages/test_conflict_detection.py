"""Tests for confkit.pages.conflict.is_version_conflict."""

from __future__ import annotations

import pytest

from confkit.errors import (
    ConfkitError,
    ConfkitNotFoundError,
    ConfkitRepositoryError,
    ConfkitValidationError,
    ConfkitVersionConflictError,
    ErrorCode,
)
from confkit.pages.conflict import is_version_conflict


class TestIsVersionConflict:
    def test_conflict_error(self):
        assert is_version_conflict(ConfkitVersionConflictError("stale version")) is True

    def test_base_error_with_conflict_code(self):
        assert is_version_conflict(ConfkitError(ErrorCode.VERSION_CONFLICT, "x")) is True

    def test_conflict_code_as_plain_string(self):
        assert is_version_conflict(ConfkitError("VERSION_CONFLICT", "x")) is True

    @pytest.mark.parametrize(
        "error",
        [
            ConfkitValidationError("Version conflict detected in title"),
            ConfkitNotFoundError("conflict"),
            ConfkitRepositoryError("version conflict while saving"),
        ],
    )
    def test_other_codes_never_match_on_message(self, error):
        assert is_version_conflict(error) is False

    @pytest.mark.parametrize(
        "value",
        [None, "VERSION_CONFLICT", 409, RuntimeError("version conflict"), {"code": "VERSION_CONFLICT"}],
    )
    def test_non_confkit_values(self, value):
        assert is_version_conflict(value) is False

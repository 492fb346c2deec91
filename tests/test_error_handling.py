"""
Unit tests for routerank.utils.error_handling
"""

import logging

import pytest

from routerank.utils.error_handling import IncompatibleMergeError, RankingError, handle_specific_exceptions


class TestHandleSpecificExceptions:
    """Log-and-reraise decorator."""

    def test_logs_and_reraises(self, caplog):
        @handle_specific_exceptions((ZeroDivisionError,), "Scoring failed")
        def divide(a, b):
            return a / b

        with caplog.at_level(logging.ERROR):
            with pytest.raises(ZeroDivisionError):
                divide(1, 0)
        assert "Scoring failed: ZeroDivisionError" in caplog.text

    def test_other_exceptions_pass_untouched(self, caplog):
        @handle_specific_exceptions((ZeroDivisionError,), "Scoring failed")
        def fail():
            raise KeyError("k")

        with caplog.at_level(logging.ERROR):
            with pytest.raises(KeyError):
                fail()
        assert "Scoring failed" not in caplog.text

    def test_return_value(self):
        @handle_specific_exceptions((ValueError,))
        def ok():
            return 42

        assert ok() == 42


class TestExceptionTypes:
    """Hierarchy."""

    def test_incompatible_merge_is_ranking_and_value_error(self):
        err = IncompatibleMergeError("mismatch", left=(10, 5), right=(20, 5))
        assert isinstance(err, RankingError)
        assert isinstance(err, ValueError)
        assert err.right == (20, 5)
        assert str(err) == "mismatch"

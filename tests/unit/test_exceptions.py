"""
Unit tests for the navfolio exception hierarchy.
"""

import pytest

from navfolio.exceptions import (
    ConfigurationError,
    DataAvailabilityError,
    MonthKeyError,
    NavFolioError,
    ValidationError,
    XirrConvergenceWarning,
)
from navfolio.month_key import MonthKey
from navfolio.valuation import calculate_lumpsum_value


class TestHierarchy:
    """All errors share a common base."""

    @pytest.mark.parametrize("exc", [
        ValidationError, MonthKeyError, DataAvailabilityError, ConfigurationError,
    ])
    def test_subclasses_base(self, exc):
        assert issubclass(exc, NavFolioError)

    def test_month_key_error_is_validation_error(self):
        assert issubclass(MonthKeyError, ValidationError)

    def test_convergence_is_a_warning(self):
        assert issubclass(XirrConvergenceWarning, UserWarning)
        assert not issubclass(XirrConvergenceWarning, NavFolioError)

    def test_catch_all(self, nav_two_points):
        """Library failures can be handled with one except clause."""
        for call in (
            lambda: MonthKey("2024-13"),
            lambda: calculate_lumpsum_value(-1, "2024-01", nav_two_points),
            lambda: calculate_lumpsum_value(1_000, "2025-06", nav_two_points),
        ):
            with pytest.raises(NavFolioError):
                call()

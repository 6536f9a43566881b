"""Tests for simple moving average trend lines."""

from __future__ import annotations

import pytest

from weightlog.tracking.errors import ValidationError
from weightlog.tracking.smoothing import latest_average, sma


class TestSMA:
    """Tests for sma function."""

    def test_constant_series(self) -> None:
        """Window of 4 over four equal values fills only the last slot."""
        assert sma([10, 10, 10, 10], 4) == [None, None, None, 10.0]

    def test_same_length_as_input(self) -> None:
        series = [90.0, 89.8, 89.9, 89.5, 89.1, 88.7]
        assert len(sma(series, 3)) == len(series)

    def test_none_until_window_fills(self) -> None:
        result = sma([1, 2, 3, 4, 5], 3)
        assert result[:2] == [None, None]
        assert all(v is not None for v in result[2:])

    def test_trailing_mean(self) -> None:
        """Each value is the mean of the trailing window."""
        assert sma([1, 2, 3, 4], 2) == [None, 1.5, 2.5, 3.5]
        assert sma([3, 6, 9, 12, 15], 3) == [None, None, 6.0, 9.0, 12.0]

    def test_rounded_to_two_places(self) -> None:
        result = sma([1, 2, 2], 3)
        assert result[2] == 1.67

    def test_window_of_one_is_identity(self) -> None:
        assert sma([88.5, 88.2, 87.9], 1) == [88.5, 88.2, 87.9]

    def test_window_longer_than_series(self) -> None:
        assert sma([80.0, 79.0], 7) == [None, None]

    def test_empty_series(self) -> None:
        assert sma([], 3) == []

    def test_running_sum_matches_direct_mean(self) -> None:
        """Incremental sum agrees with recomputing every window."""
        series = [90.0, 89.8, 90.2, 89.4, 89.2, 88.8, 89.0, 88.4, 88.0, 87.6]
        window = 4
        result = sma(series, window)
        for i in range(window - 1, len(series)):
            expected = sum(series[i - window + 1 : i + 1]) / window
            assert result[i] == pytest.approx(round(expected, 2))

    def test_deterministic(self) -> None:
        series = [85.1, 84.9, 84.7, 84.8]
        assert sma(series, 2) == sma(series, 2)

    @pytest.mark.parametrize("window", [0, -3, 2.5, True])
    def test_invalid_window(self, window) -> None:
        with pytest.raises(ValidationError):
            sma([1, 2, 3], window)


class TestLatestAverage:
    """Tests for latest_average function."""

    def test_returns_last_value(self) -> None:
        assert latest_average([1, 2, 3, 4], 2) == 3.5

    def test_not_enough_data(self) -> None:
        assert latest_average([1, 2], 3) is None

    def test_empty(self) -> None:
        assert latest_average([], 7) is None

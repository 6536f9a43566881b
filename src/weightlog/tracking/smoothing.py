"""Simple moving average for weight trend lines.

The SMA at index i is the unweighted mean of the trailing ``window`` samples:

    SMA_i = (W_{i-window+1} + ... + W_i) / window

It is undefined (None) until the window has filled. The running sum is kept
incrementally (add the new sample, subtract the one leaving the window), so a
whole series costs O(n) regardless of window size.

Because carried entries fill every skipped day, the series fed in here is
already one sample per calendar day and needs no gap handling.
"""

from __future__ import annotations

from typing import Optional, Sequence

from weightlog.tracking.errors import ValidationError

# Decimal places kept on each average
SMA_PRECISION = 2

# Windows drawn on the chart when none are configured
DEFAULT_WINDOWS = (7, 30)


def sma(series: Sequence[float], window: int) -> list[Optional[float]]:
    """
    Calculate the simple moving average of a series.

    Args:
        series: Values in chronological order
        window: Number of trailing samples to average (positive integer)

    Returns:
        List the same length as ``series``; None while fewer than ``window``
        samples have been seen, otherwise the trailing mean rounded to 2 places

    Example:
        >>> sma([10, 10, 10, 10], 4)
        [None, None, None, 10.0]
        >>> sma([1, 2, 3, 4], 2)
        [None, 1.5, 2.5, 3.5]
    """
    if isinstance(window, bool) or not isinstance(window, int) or window < 1:
        raise ValidationError(f"SMA window must be a positive integer, got {window!r}")

    result: list[Optional[float]] = []
    running = 0.0
    for i, value in enumerate(series):
        running += value
        if i >= window:
            running -= series[i - window]
        if i < window - 1:
            result.append(None)
        else:
            result.append(round(running / window, SMA_PRECISION))
    return result


def latest_average(series: Sequence[float], window: int) -> Optional[float]:
    """Return the most recent SMA value, or None if the window never filled."""
    if not series:
        return None
    return sma(series, window)[-1]

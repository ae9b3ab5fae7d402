"""Trend direction of a numeric series via least-squares slope."""

from typing import Sequence

from testpulse.models import Trend

# Fixed noise band on the slope, in series units per sample. This is a rough
# cut-off, not a significance test.
SLOPE_TOLERANCE = 0.1


def regression_slope(series: Sequence[float]) -> float:
    """Slope of the OLS fit of value against index 0..n-1."""
    n = len(series)
    if n < 2:
        return 0.0
    sum_x = n * (n - 1) / 2
    sum_x2 = (n - 1) * n * (2 * n - 1) / 6
    sum_y = sum(series)
    sum_xy = sum(i * y for i, y in enumerate(series))
    return (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)


def classify_trend(series: Sequence[float], higher_is_better: bool = False) -> Trend:
    """Classify a chronological series as improving, stable or degrading.

    By default lower values are better (durations, error rates).
    Fewer than two points is always stable.
    """
    if len(series) < 2:
        return Trend.STABLE

    slope = regression_slope(series)
    if higher_is_better:
        slope = -slope

    if slope < -SLOPE_TOLERANCE:
        return Trend.IMPROVING
    if slope > SLOPE_TOLERANCE:
        return Trend.DEGRADING
    return Trend.STABLE

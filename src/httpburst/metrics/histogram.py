"""HDR histogram wrapper for load test latency percentiles.

Works in milliseconds at the API surface and stores integer microseconds
in the underlying ``hdrh`` histogram.
"""

from __future__ import annotations

from hdrh.histogram import HdrHistogram  # type: ignore[import-untyped]

# Range: 1 microsecond to 10 minutes (in microseconds)
_LOWEST_TRACKABLE_US = 1
_HIGHEST_TRACKABLE_US = 600_000_000
_SIGNIFICANT_DIGITS = 3


class LatencyHistogram:
    """Latency recorder backed by an HDR histogram.

    Values outside the trackable range are clamped on record.
    """

    def __init__(
        self,
        lowest_us: int = _LOWEST_TRACKABLE_US,
        highest_us: int = _HIGHEST_TRACKABLE_US,
        significant_digits: int = _SIGNIFICANT_DIGITS,
    ) -> None:
        self.lowest_us = lowest_us
        self.highest_us = highest_us
        self._histogram: HdrHistogram = HdrHistogram(  # type: ignore[no-any-unimported]
            lowest_us, highest_us, significant_digits
        )

    def record_latency_ms(self, latency_ms: float) -> bool:
        """Record a latency value in milliseconds.

        Returns:
            True if the value was recorded.
        """
        value_us = int(latency_ms * 1000)
        value_us = max(self.lowest_us, min(value_us, self.highest_us))
        return bool(self._histogram.record_value(value_us))

    def get_percentile(self, percentile: float) -> float:
        """Return the latency in ms at ``percentile`` (0.0 if empty)."""
        if self._histogram.total_count == 0:
            return 0.0
        return float(self._histogram.get_value_at_percentile(percentile)) / 1000.0

    def get_min(self) -> float:
        if self._histogram.total_count == 0:
            return 0.0
        return float(self._histogram.get_min_value()) / 1000.0

    def get_max(self) -> float:
        if self._histogram.total_count == 0:
            return 0.0
        return float(self._histogram.get_max_value()) / 1000.0

    def get_mean(self) -> float:
        if self._histogram.total_count == 0:
            return 0.0
        return float(self._histogram.get_mean_value()) / 1000.0

    def get_total_count(self) -> int:
        return int(self._histogram.total_count)

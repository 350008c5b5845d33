"""Quality-of-Experience summary for an ABR simulation run.

Aggregates per-segment decision records into the figures a reporting layer
usually wants: how often quality switched, how much bitrate was delivered,
how much time was spent in buffer panic and how long playback stalled.
"""

from typing import List

from abrsim.buffer import BufferClassification


class SessionMetrics:
    """Accumulates decision records and computes run-level metrics.

    Parameters
    ----------
    segment_duration_seconds : float
        Playback duration of one segment, used for rates per minute
        (default 4.0).
    """

    def __init__(self, segment_duration_seconds: float = 4.0) -> None:
        self.segment_duration_seconds = segment_duration_seconds
        self._records: List = []

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def record(self, record) -> None:
        """Record one :class:`~abrsim.streamer.DecisionRecord`."""
        self._records.append(record)

    def compute(self) -> dict:
        """Compute aggregate metrics over all recorded segments.

        Returns
        -------
        dict with keys:
            ``total_segments``              – number of segments downloaded
            ``quality_switch_count``        – changes of downloaded quality
            ``switch_rate_per_min``         – switches per minute of content
            ``mean_bitrate_kbps``           – mean downloaded bitrate
            ``mean_buffer_level_s``         – mean buffer level after a step
            ``panic_ratio``                 – fraction of steps ending in panic
            ``stall_count``                 – downloads that drained the buffer
            ``total_stall_time_s``          – total rebuffering time
            ``mean_estimated_bandwidth_kbps`` – mean bandwidth estimate
        """
        n = len(self._records)
        if n == 0:
            return {}

        qualities = [r.segment.quality_level for r in self._records]
        switches = sum(
            1 for prev, cur in zip(qualities, qualities[1:]) if prev.id != cur.id
        )
        content_minutes = n * self.segment_duration_seconds / 60.0

        stalls = [r.stall_seconds for r in self._records]
        panic_steps = sum(
            1 for r in self._records if r.buffer_classification is BufferClassification.PANIC
        )

        return {
            "total_segments": n,
            "quality_switch_count": switches,
            "switch_rate_per_min": switches / content_minutes,
            "mean_bitrate_kbps": sum(q.bitrate_kbps for q in qualities) / n,
            "mean_buffer_level_s": sum(r.buffer_level_after for r in self._records) / n,
            "panic_ratio": panic_steps / n,
            "stall_count": sum(1 for s in stalls if s > 0.0),
            "total_stall_time_s": sum(stalls),
            "mean_estimated_bandwidth_kbps": (
                sum(r.estimated_bandwidth_kbps for r in self._records) / n
            ),
        }

    def reset(self) -> None:
        """Clear all recorded data."""
        self._records.clear()

"""Buffer-aware quality selection.

The selector picks the highest level whose bitrate fits within
``safety_margin * estimate`` and then lets the buffer classification veto
that choice:

* ``PANIC``   – always step down one tier from the current quality.
* ``LOW``     – never step up past the current quality.
* ``HEALTHY`` – the bandwidth-derived candidate stands.
"""

import logging
from typing import Optional

from abrsim.buffer import BufferClassification, BufferState
from abrsim.catalog import QualityCatalog, QualityLevel
from abrsim.errors import ConfigurationError

logger = logging.getLogger(__name__)


class QualitySelector:
    """Maps a bandwidth estimate and buffer state onto a catalog level.

    Parameters
    ----------
    catalog : QualityCatalog
        Available quality ladder.
    safety_margin : float
        Fraction of the estimate the client is willing to commit, in (0, 1]
        (default 0.9).
    """

    def __init__(self, catalog: QualityCatalog, safety_margin: float = 0.9) -> None:
        if not 0.0 < safety_margin <= 1.0:
            raise ConfigurationError(
                f"safety_margin must be in (0, 1], got {safety_margin}"
            )
        self.catalog = catalog
        self.safety_margin = safety_margin

    def select(
        self,
        estimate_kbps: float,
        buffer_state: BufferState,
        current_quality: Optional[QualityLevel] = None,
    ) -> QualityLevel:
        """Return the candidate level for the next segment."""
        if current_quality is None:
            current_quality = self.catalog.lowest

        safe_bitrate = estimate_kbps * self.safety_margin
        candidate = self.catalog.highest_within(safe_bitrate)

        classification = buffer_state.classify()
        if classification is BufferClassification.PANIC:
            candidate = min(
                candidate,
                self.catalog.step_down(current_quality),
                key=lambda level: level.bitrate_kbps,
            )
        elif classification is BufferClassification.LOW:
            candidate = min(
                candidate, current_quality, key=lambda level: level.bitrate_kbps
            )

        logger.debug(
            "select: estimate=%.1f safe=%.1f buffer=%s current=%d -> %d",
            estimate_kbps, safe_bitrate, classification,
            current_quality.id, candidate.id,
        )
        return candidate

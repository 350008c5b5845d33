"""Oscillation damping for quality decisions.

Noisy throughput near a tier boundary makes the raw selector output flap
between adjacent levels.  The smoother only commits a change after
``threshold`` consecutive candidates agree on the direction, and even then
moves at most one tier per decision.
"""

import logging
from typing import Optional

from abrsim.catalog import QualityCatalog, QualityLevel
from abrsim.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SmootherState:
    """Last confirmed level plus the pending run of agreeing candidates."""

    def __init__(self, last_confirmed: QualityLevel) -> None:
        self.last_confirmed = last_confirmed
        self.direction: int = 0
        self.count: int = 0

    def clear_pending(self) -> None:
        self.direction = 0
        self.count = 0

    def __repr__(self) -> str:
        return (
            f"SmootherState(confirmed={self.last_confirmed.id}, "
            f"direction={self.direction:+d}, count={self.count})"
        )


class Smoother:
    """Hysteresis filter over selector candidates.

    Parameters
    ----------
    catalog : QualityCatalog
        Ladder used to take single-tier steps.
    threshold : int
        Consecutive same-direction candidates required before a switch
        (default 2).
    initial : QualityLevel or None
        Starting confirmed level; defaults to the lowest tier.
    """

    def __init__(
        self,
        catalog: QualityCatalog,
        threshold: int = 2,
        initial: Optional[QualityLevel] = None,
    ) -> None:
        if threshold < 1:
            raise ConfigurationError(f"smoothing threshold must be >= 1, got {threshold}")
        self.catalog = catalog
        self.threshold = threshold
        self.state = SmootherState(initial if initial is not None else catalog.lowest)

    @property
    def confirmed(self) -> QualityLevel:
        return self.state.last_confirmed

    def smooth(self, candidate: QualityLevel, urgent: bool = False) -> QualityLevel:
        """Feed one candidate and return the confirmed level.

        ``urgent`` marks a buffer-panic decision: a downward candidate is
        committed (one tier) without waiting for agreement.
        """
        state = self.state
        current = state.last_confirmed

        if candidate.id == current.id:
            state.clear_pending()
            return current

        direction = 1 if candidate.id > current.id else -1
        if direction != state.direction:
            state.direction = direction
            state.count = 1
        else:
            state.count += 1

        if urgent and direction < 0:
            return self._commit(self.catalog.step_down(current), "panic")

        if state.count >= self.threshold:
            if direction > 0:
                target = self.catalog.step_up(current)
            else:
                target = self.catalog.step_down(current)
            return self._commit(target, f"{state.count} agreeing candidates")

        return current

    def reset(self, initial: Optional[QualityLevel] = None) -> None:
        self.state = SmootherState(
            initial if initial is not None else self.catalog.lowest
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _commit(self, target: QualityLevel, reason: str) -> QualityLevel:
        previous = self.state.last_confirmed
        self.state.last_confirmed = target
        if target.id == previous.id:
            self.state.clear_pending()
        else:
            logger.info(
                "quality switch %d -> %d (%d kbps) after %s",
                previous.id, target.id, target.bitrate_kbps, reason,
            )
        return target

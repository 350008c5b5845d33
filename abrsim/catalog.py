"""Quality ladder for the ABR simulation.

A :class:`QualityCatalog` is the immutable, bitrate-ordered set of
representations a client may request.  Level ids are ordinals assigned in
ascending bitrate order, so ``catalog[i + 1]`` is always one tier above
``catalog[i]``.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from abrsim.errors import ConfigurationError


# ---------------------------------------------------------------------------
# Default ladder (bitrate kbps, resolution, codec)
# ---------------------------------------------------------------------------

DEFAULT_LADDER = [
    (500,   (640, 360),   "h264"),
    (1500,  (1280, 720),  "h264"),
    (3000,  (1920, 1080), "h264"),
    (6000,  (3840, 2160), "h264"),
]


@dataclass(frozen=True)
class QualityLevel:
    """Describes a single representation on the ladder."""

    id: int
    bitrate_kbps: int
    resolution: Tuple[int, int]
    codec: str

    @property
    def width(self) -> int:
        return self.resolution[0]

    @property
    def height(self) -> int:
        return self.resolution[1]

    @property
    def label(self) -> str:
        return f"{self.width}x{self.height}"

    def __repr__(self) -> str:
        return f"QualityLevel({self.id}, {self.label}, {self.bitrate_kbps} kbps)"


class QualityCatalog:
    """Immutable ladder of quality levels sorted ascending by bitrate.

    Parameters
    ----------
    entries : iterable of (bitrate_kbps, resolution, codec)
        Ladder definition in any order.  ``resolution`` is a
        ``(width, height)`` pair.

    Raises
    ------
    ConfigurationError
        If the ladder is empty, a bitrate is not a positive integer, or two
        entries share a bitrate.
    """

    def __init__(self, entries: Iterable[Sequence]) -> None:
        rows = [tuple(entry) for entry in entries]
        if not rows:
            raise ConfigurationError("quality catalog must not be empty")

        for row in rows:
            if len(row) != 3:
                raise ConfigurationError(
                    f"catalog entry must be (bitrate, resolution, codec), got {row!r}"
                )
            bitrate = row[0]
            if isinstance(bitrate, bool) or not isinstance(bitrate, int) or bitrate <= 0:
                raise ConfigurationError(
                    f"bitrate must be a positive integer, got {bitrate!r}"
                )

        rows.sort(key=lambda row: row[0])
        bitrates = [row[0] for row in rows]
        if len(set(bitrates)) != len(bitrates):
            raise ConfigurationError(f"duplicate bitrates in catalog: {bitrates}")

        self._levels: Tuple[QualityLevel, ...] = tuple(
            QualityLevel(i, bitrate, _parse_resolution(resolution), str(codec))
            for i, (bitrate, resolution, codec) in enumerate(rows)
        )

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._levels)

    def __iter__(self) -> Iterator[QualityLevel]:
        return iter(self._levels)

    def __getitem__(self, level_id: int) -> QualityLevel:
        return self._levels[level_id]

    def __contains__(self, level: object) -> bool:
        return level in self._levels

    def __repr__(self) -> str:
        return f"QualityCatalog({[lvl.bitrate_kbps for lvl in self._levels]})"

    # ------------------------------------------------------------------
    # Ladder navigation
    # ------------------------------------------------------------------

    @property
    def lowest(self) -> QualityLevel:
        return self._levels[0]

    @property
    def highest(self) -> QualityLevel:
        return self._levels[-1]

    @property
    def bitrates(self) -> List[int]:
        return [level.bitrate_kbps for level in self._levels]

    def step_down(self, level: QualityLevel) -> QualityLevel:
        """Return the level one tier below ``level`` (clamped at the bottom)."""
        return self._levels[max(0, level.id - 1)]

    def step_up(self, level: QualityLevel) -> QualityLevel:
        """Return the level one tier above ``level`` (clamped at the top)."""
        return self._levels[min(len(self._levels) - 1, level.id + 1)]

    def highest_within(self, bitrate_kbps: float) -> QualityLevel:
        """Return the highest level whose bitrate fits in ``bitrate_kbps``.

        Falls back to the lowest level when nothing fits, so a client always
        has something playable.
        """
        best: Optional[QualityLevel] = None
        for level in self._levels:
            if level.bitrate_kbps <= bitrate_kbps:
                best = level
        return best if best is not None else self._levels[0]


def _parse_resolution(resolution) -> Tuple[int, int]:
    """Accept ``(w, h)`` pairs or ``"WxH"`` strings."""
    if isinstance(resolution, str):
        parts = resolution.lower().split("x")
    else:
        parts = list(resolution)
    try:
        width, height = (int(p) for p in parts)
    except (TypeError, ValueError):
        raise ConfigurationError(f"invalid resolution: {resolution!r}") from None
    if width <= 0 or height <= 0:
        raise ConfigurationError(f"invalid resolution: {resolution!r}")
    return width, height

"""Exceptions raised by the ABR simulation."""


class ConfigurationError(ValueError):
    """Invalid simulation configuration; raised at construction time."""


class InputExhausted(Exception):
    """The simulated bandwidth trace has no samples left."""

    def __init__(self, consumed: int) -> None:
        super().__init__(f"bandwidth trace exhausted after {consumed} samples")
        self.consumed = consumed

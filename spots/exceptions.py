"""
Pipeline Errors

Input-contract violations raised once at pipeline entry.
"""


class SpotPipelineError(ValueError):
    """Base class for invalid pipeline input."""


class InvalidDimensions(SpotPipelineError):
    """Grid is zero-sized, ragged, or has an unsupported channel layout."""


class CalibrationRangeExceeded(SpotPipelineError):
    """Requested radius span r2 - r1 is outside the calibrated scales."""

    def __init__(self, r1: int, r2: int, max_span: int):
        self.r1 = r1
        self.r2 = r2
        self.max_span = max_span
        super().__init__(
            f"radius span r2 - r1 = {r2 - r1} (r1={r1}, r2={r2}) "
            f"is outside the calibrated range [0, {max_span}]"
        )


class ParameterOutOfRange(SpotPipelineError):
    """A numeric parameter lies outside its allowed range."""

    def __init__(self, name: str, value, low=None, high=None):
        self.name = name
        self.value = value
        self.low = low
        self.high = high
        if low is not None and high is not None:
            message = f"{name}={value} is outside [{low}, {high}]"
        elif low is not None:
            message = f"{name}={value} must be >= {low}"
        else:
            message = f"invalid {name}: {value}"
        super().__init__(message)

"""Exception hierarchy for copysim."""


class CopySimError(Exception):
    """Base class for all copysim errors."""


class TradeValidationError(CopySimError):
    """A raw feed record could not be mapped to a Trade."""

    def __init__(self, message: str, record: dict | None = None):
        super().__init__(message)
        self.record = record


class ConfigurationError(CopySimError):
    """Invalid arguments supplied to a window helper or runner."""

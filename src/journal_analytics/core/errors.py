"""Custom exception hierarchy for the analytics engine."""


class AnalyticsError(Exception):
    """Base exception for all analytics errors."""


# --- Configuration ---
class ConfigError(AnalyticsError):
    """Invalid or missing configuration."""


# --- Data ---
class RecordValidationError(AnalyticsError):
    """A single input record could not be normalized.

    Raised and caught inside the normalizer; a bad record is skipped,
    never propagated to callers.
    """

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Record #{index} rejected: {reason}")

# strangify/core/exceptions.py

"""Custom exception hierarchy for the strangify watcher.

This module defines the specific error types used throughout the application
to differentiate between fatal startup errors, recoverable watch errors and
per-unit processing errors.
"""


class StrangifyError(Exception):
    """Base exception for all application-specific errors."""

    pass


class ConfigurationError(StrangifyError):
    """Raised when settings or the rule set fail to load or validate."""

    pass


class SourceUnavailable(StrangifyError):
    """Raised at startup when the input target is missing or unreadable."""

    pass


class WatchDegraded(StrangifyError):
    """Raised when a watch handle is lost (e.g. the watched path was deleted).

    Recoverable: the watch loop logs it and re-establishes the watch on a
    backoff schedule.
    """

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Watch on {source} degraded: {reason}")
        self.source = source
        self.reason = reason


class DecodeError(StrangifyError):
    """Raised when a unit's bytes cannot be decoded. Affects that unit only."""

    def __init__(self, identity: str, reason: str) -> None:
        super().__init__(f"Cannot decode unit {identity}: {reason}")
        self.identity = identity
        self.reason = reason


class PipelineError(StrangifyError):
    """Raised when a transformation step fails unexpectedly."""

    pass


class OrderingWarning(StrangifyError):
    """Reported when a unit is emitted outside its sequence order.

    Never raised out of the sink; logged as a diagnostic.
    """

    pass

"""Exception hierarchy for the scheduler daemon.

All scheduler-specific exceptions inherit from SchedulerError, so callers
can catch broadly (SchedulerError) or narrowly (e.g. MissingCallFieldsError).
"""

from __future__ import annotations


class SchedulerError(Exception):
    """Base exception for all scheduler-related errors."""


class ConfigurationError(SchedulerError):
    """Raised when a configuration file cannot be parsed or validated.

    Missing credentials or endpoints are NOT configuration errors; they
    are logged as warnings and the dependent capability degrades.
    """


class CapacityQueryError(SchedulerError):
    """Raised when the active-calls endpoint cannot be queried.

    Examples: non-2xx response, connection failure, non-JSON body.
    The scheduler treats this as non-fatal and keeps its last reading.
    """


class DispatchError(SchedulerError):
    """Raised when a call cannot be started on the remote system.

    Examples: start URL not configured, non-2xx response, or a response
    from which no tracking identifier can be extracted.
    """


class MissingCallFieldsError(DispatchError):
    """Raised before any network call when a payload lacks required fields."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            "Missing required outbound-call fields: " + ", ".join(missing)
        )

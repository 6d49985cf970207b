"""Exceptions raised while dispatching a command and waiting on its targets."""

from __future__ import annotations


class SsmWaitError(Exception):
    """Base class for all ssmwait failures."""


class ConfigurationError(SsmWaitError, ValueError):
    """Required input is missing or invalid. Raised before any remote call."""


class TransportError(SsmWaitError):
    """The remote execution service could not be reached or refused a call."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class SubmissionError(SsmWaitError):
    """Command submission failed or returned no command id."""


class TrackingError(SsmWaitError):
    """A target resolved to something other than success."""

    def __init__(self, target: str, message: str) -> None:
        super().__init__(message)
        self.target = target


class QueryError(TrackingError):
    """A status query for a target failed."""


class RetriesExhausted(TrackingError):
    """A target was still in progress when its retry budget ran out."""


class OtherTerminal(TrackingError):
    """A target reached a terminal status other than Success."""

    def __init__(self, target: str, message: str, status: str) -> None:
        super().__init__(target, message)
        self.status = status

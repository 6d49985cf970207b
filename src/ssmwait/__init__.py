"""ssmwait: Send a command to a fleet of hosts and wait for every host to finish."""

from .config import Config, Defaults, load_config, parse_targets
from .dispatcher import dispatch
from .errors import (
    ConfigurationError,
    OtherTerminal,
    QueryError,
    RetriesExhausted,
    SsmWaitError,
    SubmissionError,
    TrackingError,
    TransportError,
)
from .models import Invocation
from .runner import RunResult, run
from .tracker import CompletionTracker, PollState, TargetStatus

__all__ = [
    "Config",
    "Defaults",
    "load_config",
    "parse_targets",
    "dispatch",
    "ConfigurationError",
    "OtherTerminal",
    "QueryError",
    "RetriesExhausted",
    "SsmWaitError",
    "SubmissionError",
    "TrackingError",
    "TransportError",
    "Invocation",
    "RunResult",
    "run",
    "CompletionTracker",
    "PollState",
    "TargetStatus",
]

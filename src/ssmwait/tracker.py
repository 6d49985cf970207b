"""Per-target completion tracking for a submitted command."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from .config import DEFAULT_POLL_INTERVAL
from .errors import (
    OtherTerminal,
    QueryError,
    RetriesExhausted,
    TrackingError,
    TransportError,
)
from .models import Invocation
from .transport import Transport

logger = logging.getLogger(__name__)


class TargetStatus(Enum):
    """Tracking outcome of a target."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    OTHER_TERMINAL = "other_terminal"
    RETRIES_EXHAUSTED = "retries_exhausted"
    QUERY_ERROR = "query_error"

    @property
    def is_terminal(self) -> bool:
        return self not in (TargetStatus.PENDING, TargetStatus.IN_PROGRESS)

    @property
    def is_failure(self) -> bool:
        return self.is_terminal and self is not TargetStatus.SUCCESS


@dataclass
class PollState:
    """Runtime state for one target. Only its own polling task touches it."""

    target: str
    remaining_retries: int
    status: TargetStatus = TargetStatus.PENDING
    invocation: Invocation | None = None
    attempts: int = 0
    error_message: str = ""
    log_file: Path | None = None


# Type alias for output callback
OutputCallback = Callable[[str, str], None]  # (target, line) -> None
StatusCallback = Callable[[str, TargetStatus], None]  # (target, status) -> None


class CompletionTracker:
    """Polls every target of a command until each reaches a terminal state."""

    def __init__(
        self,
        transport: Transport,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_output: OutputCallback | None = None,
        on_status: StatusCallback | None = None,
        log_dir: Path | None = None,
    ):
        self.transport = transport
        self.poll_interval = poll_interval
        self.on_output = on_output
        self.on_status = on_status
        self.log_dir = log_dir
        # Poll states of the most recently started track() call
        self.states: dict[str, PollState] = {}

    def _emit_output(self, state: PollState, line: str) -> None:
        """Emit output line for a target."""
        if state.log_file:
            with open(state.log_file, "a") as f:
                f.write(line + "\n")

        if self.on_output:
            self.on_output(state.target, line)

    def _emit_status(self, state: PollState, status: TargetStatus) -> None:
        """Emit status change for a target."""
        state.status = status
        if self.on_status:
            self.on_status(state.target, status)

    async def track(
        self, targets: Iterable[str], command_id: str, max_retries: int
    ) -> dict[str, Invocation]:
        """Wait for every target of ``command_id`` to finish.

        Returns the final invocation of each target once all of them
        succeeded. The first target to fail raises its ``TrackingError``
        straight away and polling of the other targets is cancelled; the
        remote command itself keeps running.

        Each call owns its poll states and failures, so one tracker can
        follow several commands at once.
        """
        states: dict[str, PollState] = {}
        failures: list[TrackingError] = []

        for target in dict.fromkeys(targets):
            log_file = None
            if self.log_dir:
                log_file = self.log_dir / f"{target}.log"
            states[target] = PollState(
                target=target, remaining_retries=max_retries, log_file=log_file
            )
        self.states = states

        if not states:
            return {}

        tasks = [
            asyncio.create_task(
                self._track_target(command_id, state, failures), name=target
            )
            for target, state in states.items()
        ]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            # Let cancelled tasks unwind before reporting
            await asyncio.gather(*tasks, return_exceptions=True)

        if failures:
            raise failures[0]
        for task in done:
            exc = task.exception()
            if exc is not None:
                raise exc

        return {target: task.result() for target, task in zip(states, tasks)}

    async def _track_target(
        self, command_id: str, state: PollState, failures: list[TrackingError]
    ) -> Invocation:
        """Poll one target until it resolves."""
        target = state.target
        self._emit_status(state, TargetStatus.IN_PROGRESS)

        while True:
            state.attempts += 1
            try:
                invocation = await self.transport.get_invocation(command_id, target)
            except TransportError as e:
                raise self._fail(
                    state,
                    failures,
                    TargetStatus.QUERY_ERROR,
                    QueryError(target, f"Status query for {target} failed: {e}"),
                ) from e

            state.invocation = invocation
            self._emit_output(
                state,
                f"Status: {invocation.status} (attempt {state.attempts}, "
                f"{state.remaining_retries} retries left)",
            )

            if invocation.is_success:
                self._emit_output(state, invocation.summary_line())
                self._emit_status(state, TargetStatus.SUCCESS)
                return invocation

            if invocation.in_progress and state.remaining_retries > 0:
                await asyncio.sleep(self.poll_interval)
                state.remaining_retries -= 1
                continue

            # An empty budget wins over any non-success status
            if state.remaining_retries <= 0:
                raise self._fail(
                    state,
                    failures,
                    TargetStatus.RETRIES_EXHAUSTED,
                    RetriesExhausted(
                        target,
                        f"max retries exhausted for {target} "
                        f"(last status: {invocation.status})",
                    ),
                )

            details = f" ({invocation.status_details})" if invocation.status_details else ""
            raise self._fail(
                state,
                failures,
                TargetStatus.OTHER_TERMINAL,
                OtherTerminal(
                    target,
                    f"Command status for {target} was {invocation.status}{details}",
                    invocation.status,
                ),
            )

    def _fail(
        self,
        state: PollState,
        failures: list[TrackingError],
        status: TargetStatus,
        error: TrackingError,
    ) -> TrackingError:
        """Record a target failure and return the error to raise."""
        state.error_message = str(error)
        failures.append(error)
        self._emit_output(state, f"ERROR: {error}")
        self._emit_status(state, status)
        logger.warning("%s", error)
        return error

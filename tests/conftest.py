"""Shared fixtures: an in-memory transport with scripted invocation statuses."""

from __future__ import annotations

import pytest

from ssmwait.config import Config
from ssmwait.models import Invocation


def invocation(status: str, response_code: int = -1, output: str = "", details: str = "") -> Invocation:
    """Build a response template; command id and target are filled in per query."""
    return Invocation(
        command_id="",
        target="",
        status=status,
        response_code=response_code,
        standard_output=output,
        status_details=details,
    )


SUCCESS = invocation("Success", 0, "Cmd Successful")
IN_PROGRESS = invocation("InProgress")


class FakeTransport:
    """Transport double.

    ``scripts`` maps a target (or a ``(command_id, target)`` pair) to the
    responses returned by successive queries; the last one repeats. A
    response may be an exception to raise instead.
    """

    def __init__(
        self,
        command_ids: list[str] | str | Exception = "commandid1",
        scripts: dict | None = None,
        default: Invocation | Exception = SUCCESS,
    ) -> None:
        if isinstance(command_ids, (str, Exception)):
            command_ids = [command_ids]
        self.command_ids = list(command_ids)
        self.scripts = scripts or {}
        self.default = default
        self.submit_calls: list[tuple[str, list[str], int]] = []
        self.query_calls: list[tuple[str, str]] = []
        self.closed = False
        self.close_waited: bool | None = None

    async def submit(self, document_name, targets, timeout_seconds):
        self.submit_calls.append((document_name, list(targets), timeout_seconds))
        index = min(len(self.submit_calls), len(self.command_ids)) - 1
        command_id = self.command_ids[index]
        if isinstance(command_id, Exception):
            raise command_id
        return command_id

    async def get_invocation(self, command_id, target):
        self.query_calls.append((command_id, target))
        script = self.scripts.get((command_id, target)) or self.scripts.get(target) or [self.default]
        seen = sum(1 for call in self.query_calls if call == (command_id, target))
        response = script[min(seen, len(script)) - 1]
        if isinstance(response, Exception):
            raise response
        return Invocation(
            command_id=command_id,
            target=target,
            status=response.status,
            response_code=response.response_code,
            standard_output=response.standard_output,
            status_details=response.status_details,
        )

    async def close(self, wait=True):
        self.closed = True
        self.close_waited = wait

    def queries_for(self, target: str) -> int:
        return sum(1 for _, t in self.query_calls if t == target)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def config() -> Config:
    """Config for two targets with no delay between polls."""
    return Config(
        document_name="say-hello-to-everyone",
        target_ids=["i-111", "i-222"],
        poll_interval=0,
    )

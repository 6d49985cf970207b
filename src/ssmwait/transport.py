"""Remote execution transport interface."""

from __future__ import annotations

from typing import Protocol

from .config import Config
from .models import Invocation
from .ssh import SSHTransport
from .ssm import SSMTransport


class Transport(Protocol):
    """What the dispatcher and tracker need from a remote execution service."""

    async def submit(
        self, document_name: str, targets: list[str], timeout_seconds: int
    ) -> str:
        """Submit one command for all targets. May return an empty id."""
        ...

    async def get_invocation(self, command_id: str, target: str) -> Invocation:
        """Return the current invocation record for one target."""
        ...

    async def close(self, wait: bool = True) -> None:
        """Release resources. With ``wait=False``, do not block on remote work."""
        ...


def create_transport(config: Config) -> Transport:
    """Build the transport named by the config."""
    if config.transport == "ssh":
        return SSHTransport(config.documents, config.defaults)
    return SSMTransport(region=config.region)

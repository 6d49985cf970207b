"""SSH transport: runs a named document's commands on each host directly."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import replace

import asyncssh

from .config import Defaults
from .errors import TransportError
from .models import (
    STATUS_FAILED,
    STATUS_IN_PROGRESS,
    STATUS_SUCCESS,
    STATUS_TIMED_OUT,
    Invocation,
)

logger = logging.getLogger(__name__)


class SSHTransport:
    """Execute documents over SSH and expose them as pollable invocations.

    A document is a list of shell commands. Submitting one starts a
    background task per host and returns a fresh command id; the task
    records the host's outcome once its commands finish.
    """

    def __init__(
        self,
        documents: dict[str, list[str]],
        defaults: Defaults | None = None,
    ) -> None:
        self.documents = documents
        self.defaults = defaults or Defaults()
        self._invocations: dict[tuple[str, str], Invocation] = {}
        self._tasks: set[asyncio.Task] = set()

    async def submit(
        self, document_name: str, targets: list[str], timeout_seconds: int
    ) -> str:
        commands = self.documents.get(document_name)
        if not commands:
            raise TransportError(f"Unknown document: {document_name}", "InvalidDocument")

        command_id = uuid.uuid4().hex
        for target in targets:
            self._invocations[(command_id, target)] = Invocation(
                command_id=command_id, target=target, status=STATUS_IN_PROGRESS
            )
            task = asyncio.create_task(
                self._execute(command_id, target, commands, timeout_seconds)
            )
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        logger.debug("Started %s on %d hosts as %s", document_name, len(targets), command_id)
        return command_id

    async def get_invocation(self, command_id: str, target: str) -> Invocation:
        try:
            invocation = self._invocations[(command_id, target)]
        except KeyError:
            raise TransportError(
                f"No invocation of {command_id} on {target}", "InvocationDoesNotExist"
            ) from None
        if not invocation.in_progress:
            # A finished invocation is handed out once, then forgotten
            del self._invocations[(command_id, target)]
            return invocation
        # Hand out a snapshot; the background task keeps mutating the original
        return replace(invocation)

    async def close(self, wait: bool = True) -> None:
        """Wait for documents still running on hosts to finish.

        With ``wait=False`` the documents are left running in the background
        and this returns immediately.
        """
        if wait and self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _execute(
        self, command_id: str, target: str, commands: list[str], timeout_seconds: int
    ) -> None:
        invocation = self._invocations[(command_id, target)]
        output: list[str] = []

        try:
            exit_status = await asyncio.wait_for(
                self._run_commands(target, commands, output), timeout=timeout_seconds
            )
        except asyncio.TimeoutError:
            invocation.status = STATUS_TIMED_OUT
            invocation.status_details = f"Document exceeded {timeout_seconds}s"
        except asyncssh.Error as e:
            invocation.status = STATUS_FAILED
            invocation.status_details = f"SSH error: {e}"
        except OSError as e:
            invocation.status = STATUS_FAILED
            invocation.status_details = f"Connection error: {e}"
        else:
            invocation.response_code = exit_status
            invocation.status = STATUS_SUCCESS if exit_status == 0 else STATUS_FAILED
            if exit_status != 0:
                invocation.status_details = f"Command exited with status {exit_status}"

        invocation.standard_output = "".join(output)
        logger.debug("%s on %s finished: %s", command_id, target, invocation.status)

    async def _run_commands(
        self, target: str, commands: list[str], output: list[str]
    ) -> int:
        """Run commands in order, stopping at the first failure. Returns the exit status."""
        async with asyncssh.connect(
            target,
            port=self.defaults.port,
            username=self.defaults.user,
            client_keys=[str(self.defaults.ssh_key)],
            known_hosts=None,
            connect_timeout=self.defaults.connect_timeout,
        ) as conn:
            for cmd in commands:
                result = await conn.run(cmd, check=False)
                output.append(str(result.stdout or ""))
                # exit_status is None when the command died on a signal
                exit_status = -1 if result.exit_status is None else result.exit_status
                if exit_status != 0:
                    return exit_status
        return 0

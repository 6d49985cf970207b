"""AWS Systems Manager transport."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .errors import TransportError
from .models import Invocation

logger = logging.getLogger(__name__)


def _error_code(exc: Exception) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


class SSMTransport:
    """Sends commands and reads invocations through the SSM API.

    boto3 is blocking, so every call is pushed to a worker thread to keep
    per-target polling concurrent.
    """

    def __init__(self, client: Any = None, region: str | None = None) -> None:
        self._client = client
        self.region = region

    @property
    def client(self) -> Any:
        """Get (or create) the SSM client."""
        if self._client is None:
            self._client = boto3.client(
                "ssm",
                region_name=self.region,
                config=BotoConfig(retries={"max_attempts": 5, "mode": "standard"}),
            )
        return self._client

    async def submit(
        self, document_name: str, targets: list[str], timeout_seconds: int
    ) -> str:
        try:
            resp = await asyncio.to_thread(
                self.client.send_command,
                DocumentName=document_name,
                InstanceIds=list(targets),
                TimeoutSeconds=timeout_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(f"SSM send_command failed: {exc}", _error_code(exc)) from exc

        command = (resp or {}).get("Command") or {}
        return command.get("CommandId") or ""

    async def get_invocation(self, command_id: str, target: str) -> Invocation:
        try:
            resp = await asyncio.to_thread(
                self.client.get_command_invocation,
                CommandId=command_id,
                InstanceId=target,
            )
        except (BotoCoreError, ClientError) as exc:
            raise TransportError(
                f"SSM get_command_invocation failed for {target}: {exc}", _error_code(exc)
            ) from exc

        try:
            response_code = resp.get("ResponseCode")
            return Invocation(
                command_id=command_id,
                target=target,
                status=resp.get("Status") or "",
                response_code=-1 if response_code is None else int(response_code),
                standard_output=resp.get("StandardOutputContent") or "",
                status_details=resp.get("StatusDetails") or "",
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise TransportError(
                f"Malformed get_command_invocation response for {target}: {exc}",
                "MalformedResponse",
            ) from exc

    async def close(self, wait: bool = True) -> None:
        """Nothing to release; SSM commands run on without us."""

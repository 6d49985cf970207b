"""Command submission."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .errors import ConfigurationError, SubmissionError, TransportError
from .transport import Transport

logger = logging.getLogger(__name__)


async def dispatch(
    transport: Transport,
    document_name: str,
    targets: Iterable[str],
    timeout_seconds: int = 60,
) -> str:
    """Submit one command for every target and return its command id.

    The fan-out to targets happens on the service side, so this makes exactly
    one submission call. Nothing is retried here: a failed or id-less
    submission aborts the run before any polling starts.
    """
    target_list = list(dict.fromkeys(targets))
    if not document_name or not target_list:
        raise ConfigurationError("A document name and at least one target are required")

    try:
        command_id = await transport.submit(document_name, target_list, timeout_seconds)
    except TransportError as e:
        raise SubmissionError(str(e)) from e

    if not command_id:
        raise SubmissionError("could not retrieve commandId from sendCommand")

    logger.info(
        "Sent %s to %d targets as command %s", document_name, len(target_list), command_id
    )
    return command_id

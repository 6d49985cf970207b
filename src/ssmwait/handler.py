"""AWS Lambda entry point.

Environment variables:
    SSM_DOCUMENT            document to send (required)
    INSTANCE_IDS            comma-separated instance ids (required)
    MAX_SSM_WAIT_RETRIES    status polls per instance (default 50)
    SSM_TIMEOUT_SECONDS     send_command timeout (default 60)
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from .config import Config
from .errors import ConfigurationError
from .runner import run
from .ssm import SSMTransport

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def _report_failure(message: str) -> RuntimeError:
    logger.error(message)
    return RuntimeError(json.dumps(message))


def lambda_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    """Send the configured document and wait for every instance.

    The triggering event is not inspected; everything comes from the
    environment. Raises on any failure so the invocation is marked failed.
    """
    try:
        config = Config.from_env()
    except ConfigurationError as e:
        raise _report_failure(str(e)) from e
    # Lambda's filesystem is read-only outside /tmp
    config.log_dir = None

    result = asyncio.run(run(config, transport=SSMTransport(region=config.region)))
    if not result.success:
        raise _report_failure(result.message)

    return {
        "status": "success",
        "command_id": result.command_id,
        "results": result.summary_lines,
    }

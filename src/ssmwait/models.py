"""Invocation records shared by transports and the tracker."""

from __future__ import annotations

from dataclasses import dataclass

STATUS_SUCCESS = "Success"
STATUS_IN_PROGRESS = "InProgress"
STATUS_FAILED = "Failed"
STATUS_TIMED_OUT = "TimedOut"


@dataclass
class Invocation:
    """One target's execution of a submitted command."""

    command_id: str
    target: str
    status: str
    response_code: int = -1
    standard_output: str = ""
    status_details: str = ""

    @property
    def is_success(self) -> bool:
        return self.status == STATUS_SUCCESS

    @property
    def in_progress(self) -> bool:
        return self.status == STATUS_IN_PROGRESS

    def summary_line(self) -> str:
        return (
            f"InstanceId: {self.target} Status: {self.status} "
            f"ResponseCode: {self.response_code} "
            f"StandardOutputContent: {self.standard_output}"
        )

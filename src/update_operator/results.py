"""Reconciliation step results.

A step returns exactly one of InProgress, Success or Failed. Success and
Failed are terminal: they carry no callback context, so the external
scheduler stops redelivering.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import ErrorKind
from .models import DesiredConfig, ObservedState, ResumableContext


class OperationStatus(str, Enum):
    """Status reported in the result envelope."""

    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(frozen=True)
class InProgress:
    """The update is still being applied; call back after the delay."""

    context: ResumableContext
    delay_seconds: int

    @property
    def status(self) -> OperationStatus:
        return OperationStatus.IN_PROGRESS

    @property
    def callback_context(self) -> ResumableContext:
        return self.context

    @property
    def callback_delay_seconds(self) -> int:
        return self.delay_seconds

    def to_envelope(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "callbackContext": self.context.to_payload(),
            "callbackDelaySeconds": self.delay_seconds,
        }


@dataclass(frozen=True)
class Success:
    """The resource reached a stable status after the update."""

    final_state: ObservedState

    @property
    def status(self) -> OperationStatus:
        return OperationStatus.SUCCESS

    @property
    def callback_context(self) -> None:
        return None

    @property
    def callback_delay_seconds(self) -> int:
        return 0

    def to_envelope(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "resourceModel": self.final_state.model_dump(mode="json"),
            "callbackContext": None,
            "callbackDelaySeconds": 0,
        }


@dataclass(frozen=True)
class Failed:
    """Terminal failure with a stable error kind."""

    error_kind: ErrorKind
    message: str
    resource_model: DesiredConfig | None = None

    @property
    def status(self) -> OperationStatus:
        return OperationStatus.FAILED

    @property
    def callback_context(self) -> None:
        return None

    @property
    def callback_delay_seconds(self) -> int:
        return 0

    def to_envelope(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "errorCode": self.error_kind.value,
            "message": self.message,
            "resourceModel": (
                self.resource_model.model_dump(mode="json", by_alias=True)
                if self.resource_model is not None
                else None
            ),
            "callbackContext": None,
            "callbackDelaySeconds": 0,
        }


ReconciliationResult = InProgress | Success | Failed

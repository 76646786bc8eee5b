"""Stabilization poller.

Decides, from a freshly observed remote status, whether an update has
settled. The vocabulary is provider specific: Azure reports
``provisioningState`` values such as ``Succeeded``/``Updating`` while
managed workflow services report ``AVAILABLE``/``UPDATING``. Matching is
case-insensitive so both spellings resolve through the same sets.

Unrecognized statuses are never escalated. They are treated as
transitioning (so new provider states do not break reconciliation) and
logged so they show up in observability.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

DEFAULT_STABLE_STATUSES: frozenset[str] = frozenset({"Succeeded", "Available", "Ready"})
DEFAULT_TRANSITIONING_STATUSES: frozenset[str] = frozenset(
    {"Updating", "Creating", "Accepted", "Provisioning", "Running"}
)
DEFAULT_FAILED_STATUSES: frozenset[str] = frozenset({"Failed", "Canceled", "Update_Failed"})


class StabilizationState(str, Enum):
    """Outcome of inspecting one observed status."""

    STABLE = "stable"
    TRANSITIONING = "transitioning"
    FAILED = "failed"
    VANISHED_DURING_UPDATE = "vanished_during_update"


@dataclass(frozen=True)
class StatusVocabulary:
    """Provider status values grouped by meaning."""

    stable: frozenset[str] = DEFAULT_STABLE_STATUSES
    transitioning: frozenset[str] = DEFAULT_TRANSITIONING_STATUSES
    failed: frozenset[str] = DEFAULT_FAILED_STATUSES

    def __post_init__(self) -> None:
        # Store casefolded copies; frozen dataclass needs object.__setattr__
        object.__setattr__(self, "stable", frozenset(s.casefold() for s in self.stable))
        object.__setattr__(
            self, "transitioning", frozenset(s.casefold() for s in self.transitioning)
        )
        object.__setattr__(self, "failed", frozenset(s.casefold() for s in self.failed))

    def classify(self, status: str | None) -> StabilizationState | None:
        """Map a status to its state, or None when the status is unknown."""
        if not status:
            return None
        key = status.casefold()
        if key in self.stable:
            return StabilizationState.STABLE
        if key in self.transitioning:
            return StabilizationState.TRANSITIONING
        if key in self.failed:
            return StabilizationState.FAILED
        return None


def evaluate_stabilization(
    status: str | None,
    vocabulary: StatusVocabulary,
    *,
    not_found: bool = False,
    update_submitted: bool = False,
    identity: str | None = None,
) -> StabilizationState:
    """Decide whether the resource has settled.

    Args:
        status: Status reported by the latest lookup (ignored when not_found).
        vocabulary: Recognized provider statuses.
        not_found: True when the lookup itself reported the resource missing.
        update_submitted: True when an update was submitted in this or an
            earlier step.
        identity: Resource identity, only used for log context.

    Returns:
        The stabilization state.

    Raises:
        ValueError: If not_found is set before any update was submitted.
            A missing resource on the very first lookup is a different
            failure that the orchestrator handles before polling.
    """
    if not_found:
        if not update_submitted:
            raise ValueError("Resource lookup failed before an update was submitted")
        logger.warning(
            "Resource vanished while waiting for update to stabilize",
            extra={"identity": identity},
        )
        return StabilizationState.VANISHED_DURING_UPDATE

    state = vocabulary.classify(status)
    if state is None:
        logger.warning(
            "Unrecognized resource status, treating as transitioning",
            extra={"identity": identity, "status": status},
        )
        return StabilizationState.TRANSITIONING

    logger.debug(
        "Stabilization check",
        extra={"identity": identity, "status": status, "state": state.value},
    )
    return state

"""Scripted ResourceProvider double for orchestrator tests.

Lookups return (or raise) a scripted sequence of outcomes; once the
script is exhausted the last outcome repeats. Every collaborator call is
recorded in order so tests can assert on call counts and ordering.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from update_operator.models import ObservedState

RESOURCE_ID = (
    "/subscriptions/00000000-0000-0000-0000-000000000000/resourceGroups/rg-data"
    "/providers/Microsoft.Web/sites/app-orders"
)


def observed(
    status: str,
    *,
    identity: str = RESOURCE_ID,
    properties: dict[str, Any] | None = None,
    tags: dict[str, str] | None = None,
) -> ObservedState:
    """Build an ObservedState for scripting lookups."""
    return ObservedState(
        identity=identity,
        status=status,
        properties=properties or {},
        tags=tags or {},
    )


class MockResourceProvider:
    """In-memory provider whose behaviour is scripted per test."""

    def __init__(
        self,
        lookups: Iterable[ObservedState | Exception],
        *,
        submit_error: Exception | None = None,
        remove_error: Exception | None = None,
        add_error: Exception | None = None,
    ) -> None:
        self._lookups = list(lookups)
        if not self._lookups:
            raise ValueError("at least one lookup outcome is required")
        self._submit_error = submit_error
        self._remove_error = remove_error
        self._add_error = add_error
        self.calls: list[tuple[str, Any]] = []

    def call_count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def call_order(self) -> list[str]:
        return [name for name, _ in self.calls]

    def arguments(self, operation: str) -> list[Any]:
        return [args for name, args in self.calls if name == operation]

    def lookup(self, identity: str) -> ObservedState:
        self.calls.append(("lookup", identity))
        outcome = self._lookups.pop(0) if len(self._lookups) > 1 else self._lookups[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def submit_update(self, identity: str, fields: Mapping[str, Any]) -> None:
        self.calls.append(("submit_update", dict(fields)))
        if self._submit_error is not None:
            raise self._submit_error

    def remove_tags(self, identity: str, keys: Iterable[str]) -> None:
        self.calls.append(("remove_tags", sorted(keys)))
        if self._remove_error is not None:
            raise self._remove_error

    def add_tags(self, identity: str, tags: Mapping[str, str]) -> None:
        self.calls.append(("add_tags", dict(tags)))
        if self._add_error is not None:
            raise self._add_error

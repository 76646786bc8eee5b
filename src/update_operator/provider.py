"""Collaborator contract for the remote resource provider.

The engine only needs four operations. Implementations raise
ResourceNotFoundFault / ValidationFault (see errors.py) for the failures
the engine classifies; any other exception is treated as an unclassified
fault and propagates.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from .models import ObservedState


@runtime_checkable
class ResourceProvider(Protocol):
    """Remote provider operations used by the update orchestrator."""

    def lookup(self, identity: str) -> ObservedState:
        """Fetch the current state.

        Raises:
            ResourceNotFoundFault: If the resource does not exist.
        """
        ...

    def submit_update(self, identity: str, fields: Mapping[str, Any]) -> None:
        """Start an asynchronous update of the non-tag fields.

        Must return as soon as the provider accepted the request.

        Raises:
            ValidationFault: If a field or value is rejected.
            ResourceNotFoundFault: If the resource no longer exists.
        """
        ...

    def remove_tags(self, identity: str, keys: Iterable[str]) -> None:
        """Delete the given tag keys."""
        ...

    def add_tags(self, identity: str, tags: Mapping[str, str]) -> None:
        """Set the given tags, overwriting existing values for the same keys."""
        ...

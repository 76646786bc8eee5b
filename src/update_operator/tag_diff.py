"""Minimal add/remove diff between desired and observed tag sets.

Tags are reconciled as a partial update: only keys that actually differ
are touched, so tags set by other tooling with identical values survive.
A changed value is expressed as a removal plus an addition of the same
key. Removals are applied before additions by the orchestrator, which
keeps the provider from ever seeing a duplicate key.

An empty or missing desired set means "clear all", not "leave alone".
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class TagDiff:
    """Changes that turn an observed tag set into a desired one.

    Attributes:
        to_remove: Keys to delete from the resource.
        to_add: Key/value pairs to set on the resource.
    """

    to_remove: frozenset[str] = field(default_factory=frozenset)
    to_add: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when the resource already carries the desired tags."""
        return not self.to_remove and not self.to_add

    def apply(self, observed: Mapping[str, str]) -> dict[str, str]:
        """Return the tag set that results from applying this diff."""
        result = {k: v for k, v in observed.items() if k not in self.to_remove}
        result.update(self.to_add)
        return result


def compute_tag_diff(
    desired: Mapping[str, str] | None,
    observed: Mapping[str, str] | None,
) -> TagDiff:
    """Compute the minimal tag changes.

    Args:
        desired: Target tags. None or empty clears every observed tag.
        observed: Tags currently on the resource.

    Returns:
        TagDiff whose removals are keys in observed not present with an
        identical value in desired, and whose additions are desired entries
        absent from observed or present with a different value.
    """
    desired = desired or {}
    observed = observed or {}

    to_remove = frozenset(
        key for key, value in observed.items() if key not in desired or desired[key] != value
    )
    to_add = {
        key: value
        for key, value in desired.items()
        if key not in observed or observed[key] != value
    }

    return TagDiff(to_remove=to_remove, to_add=to_add)

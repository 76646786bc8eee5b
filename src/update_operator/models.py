"""Pydantic models for desired configuration, observed state and progress.

These models provide:
1. Type-safe parsing of desired-config files
2. Validation at the boundary (fail fast, fail loudly)
3. A serializable progress marker carried between reconciliation steps
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import MAX_IDENTITY_LENGTH, MAX_TAG_COUNT

# =============================================================================
# Desired Configuration
# =============================================================================


class DesiredConfig(BaseModel):
    """Caller's target attributes for one managed resource.

    Immutable for the duration of a reconciliation run. The engine compares
    it against observed state but never modifies it.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    identity: Annotated[
        str, Field(min_length=1, max_length=MAX_IDENTITY_LENGTH, alias="resourceId")
    ]

    # Non-tag fields sent with the primary update call, e.g. maxWorkers
    properties: dict[str, Any] = Field(default_factory=dict)

    # None and {} both clear every tag on the resource
    tags: dict[str, str] | None = None

    @field_validator("identity")
    @classmethod
    def validate_identity(cls, v: str) -> str:
        if v != v.strip():
            raise ValueError("identity must not have leading or trailing whitespace")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: dict[str, str] | None) -> dict[str, str] | None:
        if v is None:
            return v
        if len(v) > MAX_TAG_COUNT:
            raise ValueError(f"at most {MAX_TAG_COUNT} tags are supported")
        for key in v:
            if not key:
                raise ValueError("tag keys must not be empty")
        return v


# =============================================================================
# Observed State
# =============================================================================


class ObservedState(BaseModel):
    """Snapshot of the remote resource, fetched fresh on every step."""

    model_config = ConfigDict(extra="ignore")

    identity: str
    status: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)
    tags: dict[str, str] = Field(default_factory=dict)

    def matches(self, desired: DesiredConfig) -> bool:
        """Check whether every desired field and the full tag set are reflected."""
        for key, value in desired.properties.items():
            if self.properties.get(key) != value:
                return False
        return self.tags == (desired.tags or {})


# =============================================================================
# Resumable Context
# =============================================================================


class ResumableContext(BaseModel):
    """Opaque progress marker passed between steps by the external scheduler.

    Only update_submitted is needed to resume correctly; unknown fields are
    kept so that contexts written by newer versions survive a round trip.
    Instances are immutable; a step records progress on a copy.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    update_submitted: bool = False
    stabilization_attempts: Annotated[int, Field(ge=0)] = 0

    @property
    def is_empty(self) -> bool:
        """True until an update has been submitted."""
        return not self.update_submitted

    def to_payload(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> ResumableContext:
        """Rebuild a context from to_payload() output; None yields an empty one."""
        if not payload:
            return cls()
        return cls.model_validate(payload)

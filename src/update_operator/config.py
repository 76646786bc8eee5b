"""Configuration management with validation.

All values are validated at construction time so a misconfigured engine
fails before it touches the remote provider.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from .stabilization import (
    DEFAULT_FAILED_STATUSES,
    DEFAULT_STABLE_STATUSES,
    DEFAULT_TRANSITIONING_STATUSES,
    StatusVocabulary,
)


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


# Configuration constants with documented bounds
DEFAULT_RESOURCE_TYPE = "Azure::Resources::Resource"

DEFAULT_CALLBACK_DELAY_SECONDS = 30
MIN_CALLBACK_DELAY_SECONDS = 1
MAX_CALLBACK_DELAY_SECONDS = 900

DEFAULT_API_VERSION = "2023-07-01"

MAX_SPEC_FILE_SIZE_BYTES = 1024 * 1024  # 1MB max desired-config file
MAX_IDENTITY_LENGTH = 1024
MAX_TAG_COUNT = 50

# Input validation patterns
VALID_SUBSCRIPTION_ID_PATTERN = r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
VALID_API_VERSION_PATTERN = r"^\d{4}-\d{2}-\d{2}(-preview)?$"


def _parse_status_list(key: str, value: str | None, default: frozenset[str]) -> frozenset[str]:
    if value is None:
        return default
    statuses = frozenset(part.strip() for part in value.split(",") if part.strip())
    if not statuses:
        raise ConfigurationError(f"{key} must list at least one status")
    return statuses


def _get_int(key: str, default: int | None) -> int | None:
    value = os.environ.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer: {value}") from e


@dataclass(frozen=True)
class EngineConfig:
    """Reconciliation engine configuration.

    The status vocabulary is provider specific, so every set can be
    replaced from the environment.
    """

    resource_type: str = DEFAULT_RESOURCE_TYPE
    callback_delay_seconds: int = DEFAULT_CALLBACK_DELAY_SECONDS

    # None means "poll until the provider settles"
    max_stabilization_attempts: int | None = None

    stable_statuses: frozenset[str] = DEFAULT_STABLE_STATUSES
    transitioning_statuses: frozenset[str] = DEFAULT_TRANSITIONING_STATUSES
    failed_statuses: frozenset[str] = DEFAULT_FAILED_STATUSES

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        errors: list[str] = []

        if not self.resource_type:
            errors.append("RESOURCE_TYPE is required")

        if not (
            MIN_CALLBACK_DELAY_SECONDS
            <= self.callback_delay_seconds
            <= MAX_CALLBACK_DELAY_SECONDS
        ):
            errors.append(
                f"CALLBACK_DELAY_SECONDS must be between {MIN_CALLBACK_DELAY_SECONDS} "
                f"and {MAX_CALLBACK_DELAY_SECONDS} seconds"
            )

        if self.max_stabilization_attempts is not None and self.max_stabilization_attempts < 1:
            errors.append("MAX_STABILIZATION_ATTEMPTS must be at least 1")

        if not self.stable_statuses:
            errors.append("STABLE_STATUSES must not be empty")

        # Overlapping sets would make a status ambiguous
        named_sets = {
            "STABLE_STATUSES": {s.casefold() for s in self.stable_statuses},
            "TRANSITIONING_STATUSES": {s.casefold() for s in self.transitioning_statuses},
            "FAILED_STATUSES": {s.casefold() for s in self.failed_statuses},
        }
        names = list(named_sets)
        for i, first in enumerate(names):
            for second in names[i + 1 :]:
                overlap = named_sets[first] & named_sets[second]
                if overlap:
                    errors.append(f"{first} and {second} overlap: {sorted(overlap)}")

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @property
    def vocabulary(self) -> StatusVocabulary:
        """Status vocabulary handed to the stabilization poller."""
        return StatusVocabulary(
            stable=self.stable_statuses,
            transitioning=self.transitioning_statuses,
            failed=self.failed_statuses,
        )

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load engine configuration from environment variables.

        Environment Variables:
            RESOURCE_TYPE: Type name used in failure messages
            CALLBACK_DELAY_SECONDS: Requested redelivery delay (default: 30)
            MAX_STABILIZATION_ATTEMPTS: Give up after this many polls (default: unlimited)
            STABLE_STATUSES: Comma-separated statuses meaning "ready"
            TRANSITIONING_STATUSES: Comma-separated in-progress statuses
            FAILED_STATUSES: Comma-separated statuses meaning the update failed
        """
        return cls(
            resource_type=os.environ.get("RESOURCE_TYPE", DEFAULT_RESOURCE_TYPE),
            callback_delay_seconds=_get_int(
                "CALLBACK_DELAY_SECONDS", DEFAULT_CALLBACK_DELAY_SECONDS
            ),
            max_stabilization_attempts=_get_int("MAX_STABILIZATION_ATTEMPTS", None),
            stable_statuses=_parse_status_list(
                "STABLE_STATUSES", os.environ.get("STABLE_STATUSES"), DEFAULT_STABLE_STATUSES
            ),
            transitioning_statuses=_parse_status_list(
                "TRANSITIONING_STATUSES",
                os.environ.get("TRANSITIONING_STATUSES"),
                DEFAULT_TRANSITIONING_STATUSES,
            ),
            failed_statuses=_parse_status_list(
                "FAILED_STATUSES", os.environ.get("FAILED_STATUSES"), DEFAULT_FAILED_STATUSES
            ),
        )


@dataclass(frozen=True)
class AzureProviderConfig:
    """Settings for the Azure Resource Manager collaborator.

    Authentication always goes through a managed identity; client_id
    selects a user-assigned identity, otherwise the system-assigned one
    is used.
    """

    subscription_id: str
    api_version: str = DEFAULT_API_VERSION
    client_id: str | None = None

    def __post_init__(self) -> None:
        errors: list[str] = []

        if not self.subscription_id:
            errors.append("AZURE_SUBSCRIPTION_ID is required")
        elif not re.match(VALID_SUBSCRIPTION_ID_PATTERN, self.subscription_id.lower()):
            errors.append(f"AZURE_SUBSCRIPTION_ID must be a valid GUID: {self.subscription_id}")

        if not re.match(VALID_API_VERSION_PATTERN, self.api_version):
            errors.append(f"AZURE_API_VERSION must look like YYYY-MM-DD: {self.api_version}")

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @classmethod
    def from_env(cls) -> AzureProviderConfig:
        """Load provider configuration from environment variables.

        Environment Variables:
            AZURE_SUBSCRIPTION_ID: Subscription holding the managed resource
            AZURE_API_VERSION: Resource provider API version (default: 2023-07-01)
            AZURE_CLIENT_ID: Optional user-assigned managed identity client ID
        """
        return cls(
            subscription_id=os.environ.get("AZURE_SUBSCRIPTION_ID", ""),
            api_version=os.environ.get("AZURE_API_VERSION", DEFAULT_API_VERSION),
            client_id=os.environ.get("AZURE_CLIENT_ID") or None,
        )

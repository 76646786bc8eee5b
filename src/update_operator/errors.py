"""Collaborator faults and the failure taxonomy.

Provider implementations translate their SDK exceptions into the faults
below at the boundary. Anything that is not a ProviderError subclass is
an unclassified fault and propagates unchanged.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Terminal failure categories reported to the external scheduler."""

    NOT_FOUND = "NotFound"
    NOT_UPDATABLE = "NotUpdatable"
    INVALID_REQUEST = "InvalidRequest"
    NOT_STABILIZED = "NotStabilized"
    GENERAL_SERVICE_EXCEPTION = "GeneralServiceException"


class ProviderError(Exception):
    """Base class for faults raised by a resource provider."""

    def __init__(self, message: str, *, identity: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.identity = identity


class ResourceNotFoundFault(ProviderError):
    """The provider reports that the resource does not exist."""

    pass


class ValidationFault(ProviderError):
    """The provider rejected a field or value.

    The message is the provider's own validation detail and is surfaced
    verbatim to the caller.
    """

    pass

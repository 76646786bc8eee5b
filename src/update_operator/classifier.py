"""Failure classifier.

Maps raw collaborator faults to the fixed failure taxonomy. The mapping
depends only on the fault and on the phase it was raised in, never on
which remote call raised it.

| Situation                                   | Kind            |
|---------------------------------------------|-----------------|
| first lookup reports not found              | NotFound        |
| submission reports not found                | NotUpdatable    |
| submission rejects a field or value         | InvalidRequest  |
| resource vanishes while polling             | NotStabilized   |
| anything else                               | unclassified    |
"""

from __future__ import annotations

import logging

from .errors import ErrorKind, ResourceNotFoundFault, ValidationFault
from .models import DesiredConfig
from .results import Failed

logger = logging.getLogger(__name__)

VANISHED_DURING_UPDATE_MESSAGE = "Update failed, resource no longer exists"


def not_found_message(resource_type: str, identity: str) -> str:
    return f"Resource of type '{resource_type}' with identifier '{identity}' was not found."


def not_updatable_message(resource_type: str, identity: str) -> str:
    return f"Resource of type '{resource_type}' with identifier '{identity}' is not updatable."


def invalid_request_message(detail: str) -> str:
    return f"Invalid request provided: {detail}"


def classify_lookup_error(
    exc: Exception,
    *,
    resource_type: str,
    desired: DesiredConfig,
) -> Failed | None:
    """Classify a fault raised by the lookup that precedes submission.

    Returns:
        Failed for a not-found fault, None for unclassified faults.
    """
    if not isinstance(exc, ResourceNotFoundFault):
        return None

    return Failed(
        error_kind=ErrorKind.NOT_FOUND,
        message=not_found_message(resource_type, desired.identity),
        resource_model=desired,
    )


def vanished_during_update(desired: DesiredConfig) -> Failed:
    """Failure for a resource that disappeared after the update was submitted."""
    return Failed(
        error_kind=ErrorKind.NOT_STABILIZED,
        message=VANISHED_DURING_UPDATE_MESSAGE,
        resource_model=desired,
    )


def classify_submission_error(
    exc: Exception,
    *,
    resource_type: str,
    desired: DesiredConfig,
) -> Failed | None:
    """Classify a fault raised by the update call or a tag call.

    Returns:
        Failed for not-found and validation faults, None for unclassified
        faults, which the caller re-raises unchanged.
    """
    if isinstance(exc, ResourceNotFoundFault):
        return Failed(
            error_kind=ErrorKind.NOT_UPDATABLE,
            message=not_updatable_message(resource_type, desired.identity),
            resource_model=desired,
        )
    if isinstance(exc, ValidationFault):
        return Failed(
            error_kind=ErrorKind.INVALID_REQUEST,
            message=invalid_request_message(exc.message),
            resource_model=desired,
        )

    logger.debug(
        "Unclassified submission fault",
        extra={"identity": desired.identity, "error_type": type(exc).__name__},
    )
    return None

"""Azure Resource Manager implementation of the provider contract.

The managed resource is addressed by its full ARM resource ID. Updates are
started with PATCH and never waited on: the long-running-operation poller
returned by the SDK is dropped, because stabilization is observed through
the resource's provisioningState on the next step instead.

Azure SDK exceptions are translated into engine faults at this boundary.
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterable, Mapping
from contextlib import contextmanager
from typing import Any

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.identity import ManagedIdentityCredential
from azure.mgmt.resource import ResourceManagementClient
from azure.mgmt.resource.resources.models import (
    GenericResource,
    Tags,
    TagsPatchOperation,
    TagsPatchResource,
)

from .config import AzureProviderConfig
from .errors import ResourceNotFoundFault, ValidationFault
from .models import ObservedState

logger = logging.getLogger(__name__)

# ARM error codes that mean "the request body was rejected"
VALIDATION_ERROR_CODES: frozenset[str] = frozenset(
    {
        "BadRequest",
        "InvalidParameter",
        "InvalidRequestContent",
        "InvalidRequestFormat",
        "InvalidTemplate",
        "LinkedInvalidPropertyId",
        "ValidationError",
    }
)
VALIDATION_STATUS_CODES: frozenset[int] = frozenset({400, 422})

STATUS_PROPERTY_NAMES: tuple[str, ...] = ("provisioningState", "status")


@contextmanager
def translate_azure_errors(identity: str) -> Generator[None, None, None]:
    """Translate Azure SDK errors into engine faults.

    Errors that are neither not-found nor validation failures propagate
    unchanged as unclassified faults.
    """
    try:
        yield
    except HttpResponseError as e:
        if isinstance(e, ResourceNotFoundError) or e.status_code == 404:
            raise ResourceNotFoundFault(
                f"Resource not found: {identity}", identity=identity
            ) from e

        error_code = e.error.code if e.error else None
        if e.status_code in VALIDATION_STATUS_CODES or error_code in VALIDATION_ERROR_CODES:
            detail = e.error.message if e.error and e.error.message else e.message
            raise ValidationFault(detail, identity=identity) from e

        logger.warning(
            "Azure API call failed",
            extra={"identity": identity, "status_code": e.status_code, "error_code": error_code},
        )
        raise


def _observed_from_generic(identity: str, resource: Any) -> ObservedState:
    properties = dict(resource.properties or {})
    status = None
    for name in STATUS_PROPERTY_NAMES:
        if properties.get(name):
            status = str(properties[name])
            break

    return ObservedState(
        identity=resource.id or identity,
        status=status,
        properties=properties,
        tags=dict(resource.tags or {}),
    )


class AzureResourceProvider:
    """ResourceProvider backed by ResourceManagementClient."""

    def __init__(self, client: ResourceManagementClient, api_version: str) -> None:
        """Initialize the provider.

        Args:
            client: Authenticated Resource Manager client.
            api_version: API version of the managed resource's provider.
        """
        self._client = client
        self._api_version = api_version

    def lookup(self, identity: str) -> ObservedState:
        with translate_azure_errors(identity):
            resource = self._client.resources.get_by_id(
                resource_id=identity,
                api_version=self._api_version,
            )
        return _observed_from_generic(identity, resource)

    def submit_update(self, identity: str, fields: Mapping[str, Any]) -> None:
        with translate_azure_errors(identity):
            self._client.resources.begin_update_by_id(
                resource_id=identity,
                api_version=self._api_version,
                parameters=GenericResource(properties=dict(fields)),
            )
        logger.debug("PATCH accepted", extra={"identity": identity, "fields": sorted(fields)})

    def remove_tags(self, identity: str, keys: Iterable[str]) -> None:
        keys = set(keys)
        if not keys:
            return

        with translate_azure_errors(identity):
            # Delete matches on name/value pairs, so resolve current values first
            current = self._client.tags.get_at_scope(scope=identity)
            current_tags = dict(current.properties.tags or {}) if current.properties else {}
            to_delete = {k: v for k, v in current_tags.items() if k in keys}
            if not to_delete:
                return
            self._client.tags.begin_update_at_scope(
                scope=identity,
                parameters=TagsPatchResource(
                    operation=TagsPatchOperation.DELETE,
                    properties=Tags(tags=to_delete),
                ),
            )

    def add_tags(self, identity: str, tags: Mapping[str, str]) -> None:
        if not tags:
            return

        with translate_azure_errors(identity):
            self._client.tags.begin_update_at_scope(
                scope=identity,
                parameters=TagsPatchResource(
                    operation=TagsPatchOperation.MERGE,
                    properties=Tags(tags=dict(tags)),
                ),
            )


def create_azure_provider(config: AzureProviderConfig) -> AzureResourceProvider:
    """Build an AzureResourceProvider authenticated with a managed identity."""
    if config.client_id:
        logger.info(
            "Using user-assigned managed identity",
            extra={"client_id": config.client_id[:8] + "..."},
        )
        credential = ManagedIdentityCredential(client_id=config.client_id)
    else:
        logger.info("Using system-assigned managed identity")
        credential = ManagedIdentityCredential()

    client = ResourceManagementClient(
        credential=credential,
        subscription_id=config.subscription_id,
    )
    return AzureResourceProvider(client, config.api_version)

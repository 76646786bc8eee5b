"""Azure API Mock for testing.

Provides mock implementations that let the engine and the Azure provider
be tested without Azure connectivity:
- In-memory ARM resource state with tag operations
- Managed Identity simulation
- A scripted ResourceProvider that records every collaborator call

Usage:
    from azure_mock import MockResourceProvider, observed

    provider = MockResourceProvider([observed("Succeeded"), observed("Updating")])
    engine = UpdateOrchestrator(provider)
    result = engine.step(desired)
    assert provider.call_count("submit_update") == 1
"""

from .context import MockAzureContext
from .credential import MockManagedIdentityCredential, create_mock_credential
from .provider import RESOURCE_ID, MockResourceProvider, observed
from .resources import MockGenericResource, MockResourceClient, MockResourceState

__all__ = [
    "RESOURCE_ID",
    "MockAzureContext",
    "MockGenericResource",
    "MockManagedIdentityCredential",
    "MockResourceClient",
    "MockResourceProvider",
    "MockResourceState",
    "create_mock_credential",
    "observed",
]

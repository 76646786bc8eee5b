"""Azure Mock Context for integration testing.

Provides a context manager that patches the Azure SDK entry points used by
update_operator.azure_provider with mock implementations.
"""

from __future__ import annotations

from typing import Any
from unittest import mock

from .credential import MockManagedIdentityCredential, create_mock_credential
from .resources import MockResourceClient, MockResourceState


class MockAzureContext:
    """Context manager for Azure API mocking.

    Patches:
    - azure_provider.ManagedIdentityCredential -> MockManagedIdentityCredential
    - azure_provider.ResourceManagementClient -> MockResourceClient

    Usage:
        with MockAzureContext() as ctx:
            ctx.state.put_resource(RESOURCE_ID, tags={"env": "dev"})
            provider = create_azure_provider(config)
            provider.lookup(RESOURCE_ID)
            assert ctx.client.calls_to("get_by_id") == 1
    """

    def __init__(self) -> None:
        self._state: MockResourceState | None = None
        self._client: MockResourceClient | None = None
        self._patches: list[Any] = []
        self.credential_client_ids: list[str | None] = []

    @property
    def state(self) -> MockResourceState:
        if self._state is None:
            raise RuntimeError("MockAzureContext must be used as a context manager")
        return self._state

    @property
    def client(self) -> MockResourceClient:
        if self._client is None:
            raise RuntimeError("No ResourceManagementClient was created in this context")
        return self._client

    def __enter__(self) -> MockAzureContext:
        self._state = MockResourceState()

        def credential_factory(client_id: str | None = None) -> MockManagedIdentityCredential:
            credential = create_mock_credential(client_id)
            self.credential_client_ids.append(credential.client_id)
            return credential

        def create_mock_client(credential: Any, subscription_id: str) -> MockResourceClient:
            self._client = MockResourceClient(state=self.state, subscription_id=subscription_id)
            return self._client

        self._patches = [
            mock.patch(
                "update_operator.azure_provider.ManagedIdentityCredential",
                side_effect=credential_factory,
            ),
            mock.patch(
                "update_operator.azure_provider.ResourceManagementClient",
                side_effect=create_mock_client,
            ),
        ]
        for patch in self._patches:
            patch.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        for patch in reversed(self._patches):
            patch.stop()
        self._patches.clear()

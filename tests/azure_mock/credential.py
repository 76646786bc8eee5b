"""Mock Azure credential for secretless testing.

Stands in for ManagedIdentityCredential so provider construction can be
tested without a managed identity endpoint.
"""

from __future__ import annotations


class MockManagedIdentityCredential:
    """Mock ManagedIdentityCredential; the mock client never requests tokens."""

    def __init__(self, client_id: str | None = None) -> None:
        self._client_id = client_id

    @property
    def client_id(self) -> str | None:
        return self._client_id

    def close(self) -> None:
        pass


def create_mock_credential(client_id: str | None = None) -> MockManagedIdentityCredential:
    """Factory function to create a mock credential."""
    return MockManagedIdentityCredential(client_id=client_id)

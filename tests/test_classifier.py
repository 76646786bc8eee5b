"""Tests for the failure classifier."""

from __future__ import annotations

import pytest
from azure_mock import RESOURCE_ID

from update_operator.classifier import (
    VANISHED_DURING_UPDATE_MESSAGE,
    classify_lookup_error,
    classify_submission_error,
    vanished_during_update,
)
from update_operator.errors import (
    ErrorKind,
    ProviderError,
    ResourceNotFoundFault,
    ValidationFault,
)
from update_operator.models import DesiredConfig

RESOURCE_TYPE = "Azure::Web::Site"


class TestClassifyLookupError:
    """Tests for classify_lookup_error."""

    def test_not_found_on_first_lookup(self, desired: DesiredConfig) -> None:
        """Test the resource never existed."""
        failure = classify_lookup_error(
            ResourceNotFoundFault("missing"),
            resource_type=RESOURCE_TYPE,
            desired=desired,
        )

        assert failure is not None
        assert failure.error_kind == ErrorKind.NOT_FOUND
        assert RESOURCE_TYPE in failure.message
        assert RESOURCE_ID in failure.message

    def test_other_faults_unclassified(self, desired: DesiredConfig) -> None:
        """Test faults other than not-found are passed through."""
        failure = classify_lookup_error(
            ProviderError("throttled"),
            resource_type=RESOURCE_TYPE,
            desired=desired,
        )

        assert failure is None


class TestVanishedDuringUpdate:
    """Tests for vanished_during_update."""

    def test_not_stabilized(self, desired: DesiredConfig) -> None:
        """Test a resource that vanished while the update was in flight."""
        failure = vanished_during_update(desired)

        assert failure.error_kind == ErrorKind.NOT_STABILIZED
        assert failure.message == VANISHED_DURING_UPDATE_MESSAGE
        assert failure.resource_model == desired
        assert failure.callback_context is None
        assert failure.callback_delay_seconds == 0


class TestClassifySubmissionError:
    """Tests for classify_submission_error."""

    def test_not_found_is_not_updatable(self, desired: DesiredConfig) -> None:
        """Test a resource missing at submission is NotUpdatable, not NotFound."""
        failure = classify_submission_error(
            ResourceNotFoundFault("missing"), resource_type=RESOURCE_TYPE, desired=desired
        )

        assert failure is not None
        assert failure.error_kind == ErrorKind.NOT_UPDATABLE
        assert RESOURCE_TYPE in failure.message
        assert failure.resource_model == desired

    def test_validation_echoes_detail(self, desired: DesiredConfig) -> None:
        """Test the provider's validation detail is included verbatim."""
        detail = "Property 'maxWorkers' must be between 1 and 25."
        failure = classify_submission_error(
            ValidationFault(detail), resource_type=RESOURCE_TYPE, desired=desired
        )

        assert failure is not None
        assert failure.error_kind == ErrorKind.INVALID_REQUEST
        assert detail in failure.message

    @pytest.mark.parametrize(
        "error", [ProviderError("throttled"), RuntimeError("boom"), TimeoutError()]
    )
    def test_other_faults_unclassified(self, desired: DesiredConfig, error: Exception) -> None:
        """Test anything else is left for the caller to re-raise."""
        assert (
            classify_submission_error(error, resource_type=RESOURCE_TYPE, desired=desired)
            is None
        )

    def test_envelope_carries_error_code(self, desired: DesiredConfig) -> None:
        """Test the failure envelope reports the taxonomy code."""
        failure = classify_submission_error(
            ValidationFault("bad"), resource_type=RESOURCE_TYPE, desired=desired
        )

        assert failure is not None
        envelope = failure.to_envelope()
        assert envelope["status"] == "FAILED"
        assert envelope["errorCode"] == "InvalidRequest"
        assert envelope["callbackContext"] is None
        assert envelope["resourceModel"]["resourceId"] == RESOURCE_ID

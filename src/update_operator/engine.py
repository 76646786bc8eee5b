"""Update orchestrator: one non-blocking reconciliation step per invocation.

The orchestrator replaces a blocking wait loop with an explicit state
transition function. An external scheduler calls step() and, on
InProgress, calls it again after the requested delay with the returned
context. All loop-carried state lives in ResumableContext; observed state
is fetched fresh by exactly one lookup per step.

States are implied by the context and the observed status:

    Init (context empty)
      lookup -> not found: Failed(NotFound)
      tag removals, tag additions, primary update
      -> classified fault: Failed(NotUpdatable | InvalidRequest)
      -> accepted: InProgress(marked context, delay)
    Polling (context marked)
      lookup -> not found: Failed(NotStabilized)
      stable -> Success
      failed status -> Failed(NotStabilized)
      transitioning or unknown -> InProgress(context, delay)

The submitting step never reports Success: a provider may still show the
pre-update status for a moment after accepting a PATCH, so the first
status that counts is the one read on the next step.

Remote calls per step are bounded: one lookup, plus at most two tag calls
and one update while in Init. The engine never sleeps and never mutates
the context it is given.
"""

from __future__ import annotations

import logging

from .classifier import (
    classify_lookup_error,
    classify_submission_error,
    vanished_during_update,
)
from .config import EngineConfig
from .errors import ErrorKind, ProviderError, ResourceNotFoundFault
from .models import DesiredConfig, ResumableContext
from .provider import ResourceProvider
from .results import Failed, InProgress, ReconciliationResult, Success
from .stabilization import StabilizationState, evaluate_stabilization
from .tag_diff import TagDiff, compute_tag_diff

logger = logging.getLogger(__name__)


class UpdateOrchestrator:
    """Drives a remote resource toward its desired configuration.

    The orchestrator holds no state between invocations besides its
    provider and configuration, so one instance can serve any number of
    resources as long as the scheduler runs at most one step per resource
    at a time.
    """

    def __init__(self, provider: ResourceProvider, config: EngineConfig | None = None) -> None:
        """Initialize the orchestrator.

        Args:
            provider: Remote provider client.
            config: Engine configuration (defaults apply when omitted).
        """
        self._provider = provider
        self._config = config or EngineConfig()
        self._vocabulary = self._config.vocabulary

    @property
    def config(self) -> EngineConfig:
        """Get the engine configuration."""
        return self._config

    def step(
        self,
        desired: DesiredConfig,
        context: ResumableContext | None = None,
    ) -> ReconciliationResult:
        """Run one reconciliation step.

        The update is only submitted while the context is empty. The given
        context is never modified; progress is recorded on the context
        carried by an InProgress result, and redelivering that context
        never submits twice.

        Args:
            desired: Target configuration.
            context: Context returned by the previous step, or None/empty
                on the first invocation.

        Returns:
            InProgress, Success or Failed.

        Raises:
            Exception: Unclassified provider faults propagate unchanged.
        """
        if context is None:
            context = ResumableContext()

        if not context.is_empty:
            return self._poll(desired, context)

        failure = self._submit(desired)
        if failure is not None:
            return failure

        return InProgress(
            context=context.model_copy(update={"update_submitted": True}),
            delay_seconds=self._config.callback_delay_seconds,
        )

    def _submit(self, desired: DesiredConfig) -> Failed | None:
        """Validate the resource exists, apply the tag diff and submit the update."""
        identity = desired.identity

        try:
            observed = self._provider.lookup(identity)
        except ResourceNotFoundFault as e:
            failure = classify_lookup_error(
                e,
                resource_type=self._config.resource_type,
                desired=desired,
            )
            logger.error(
                "Resource to update does not exist",
                extra={"identity": identity, "error_code": ErrorKind.NOT_FOUND.value},
            )
            return failure

        diff = compute_tag_diff(desired.tags, observed.tags)
        logger.info(
            "Submitting update",
            extra={
                "identity": identity,
                "fields": sorted(desired.properties),
                "tags_removed": len(diff.to_remove),
                "tags_added": len(diff.to_add),
            },
        )

        # Tag calls are applied eagerly so partial progress stays consistent
        # even when the primary update is rejected below
        tag_error = self._apply_tag_diff(identity, diff)

        try:
            self._provider.submit_update(identity, dict(desired.properties))
        except ProviderError as e:
            return self._classify_or_raise(e, desired)

        if tag_error is not None:
            return self._classify_or_raise(tag_error, desired)

        logger.info("Update accepted by provider", extra={"identity": identity})
        return None

    def _apply_tag_diff(self, identity: str, diff: TagDiff) -> Exception | None:
        """Apply removals then additions, attempting each one independently.

        Returns:
            The first fault raised by a tag call, or None.
        """
        first_error: Exception | None = None

        if diff.to_remove:
            try:
                self._provider.remove_tags(identity, sorted(diff.to_remove))
            except Exception as e:
                logger.warning(
                    "Tag removal failed",
                    extra={"identity": identity, "keys": sorted(diff.to_remove), "error": str(e)},
                )
                first_error = e

        if diff.to_add:
            try:
                self._provider.add_tags(identity, dict(diff.to_add))
            except Exception as e:
                logger.warning(
                    "Tag addition failed",
                    extra={"identity": identity, "keys": sorted(diff.to_add), "error": str(e)},
                )
                if first_error is None:
                    first_error = e

        return first_error

    def _classify_or_raise(self, exc: Exception, desired: DesiredConfig) -> Failed:
        failure = classify_submission_error(
            exc,
            resource_type=self._config.resource_type,
            desired=desired,
        )
        if failure is None:
            raise exc

        logger.error(
            "Update submission failed",
            extra={
                "identity": desired.identity,
                "error_code": failure.error_kind.value,
                "error": failure.message,
            },
        )
        return failure

    def _poll(self, desired: DesiredConfig, context: ResumableContext) -> ReconciliationResult:
        """Re-fetch the resource and decide the next action."""
        identity = desired.identity

        try:
            observed = self._provider.lookup(identity)
        except ResourceNotFoundFault:
            observed = None

        state = evaluate_stabilization(
            observed.status if observed is not None else None,
            self._vocabulary,
            not_found=observed is None,
            update_submitted=True,
            identity=identity,
        )

        match state:
            case StabilizationState.VANISHED_DURING_UPDATE:
                return vanished_during_update(desired)

            case StabilizationState.STABLE:
                if not observed.matches(desired):
                    logger.warning(
                        "Resource is stable but differs from the desired configuration",
                        extra={"identity": identity, "status": observed.status},
                    )
                logger.info(
                    "Update stabilized",
                    extra={
                        "identity": identity,
                        "status": observed.status,
                        "attempts": context.stabilization_attempts,
                    },
                )
                return Success(final_state=observed)

            case StabilizationState.FAILED:
                logger.error(
                    "Resource reported a failed status",
                    extra={"identity": identity, "status": observed.status},
                )
                return Failed(
                    error_kind=ErrorKind.NOT_STABILIZED,
                    message=f"Update failed, resource status is {observed.status}",
                    resource_model=desired,
                )

        attempts = context.stabilization_attempts + 1
        limit = self._config.max_stabilization_attempts
        if limit is not None and attempts >= limit:
            logger.error(
                "Update did not stabilize in time",
                extra={"identity": identity, "attempts": attempts},
            )
            return Failed(
                error_kind=ErrorKind.NOT_STABILIZED,
                message=f"Update did not stabilize after {attempts} attempts",
                resource_model=desired,
            )

        logger.info(
            "Update in progress",
            extra={
                "identity": identity,
                "status": observed.status,
                "attempts": attempts,
                "callback_delay_seconds": self._config.callback_delay_seconds,
            },
        )
        return InProgress(
            context=context.model_copy(update={"stabilization_attempts": attempts}),
            delay_seconds=self._config.callback_delay_seconds,
        )

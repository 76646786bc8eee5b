"""Main entry point: drives one resource update to a terminal result.

This module plays the role of the external scheduler. The engine itself
never waits; here each InProgress result is honoured by sleeping for the
requested delay and redelivering the returned context.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from pathlib import Path

from .azure_provider import create_azure_provider
from .config import AzureProviderConfig, ConfigurationError, EngineConfig
from .engine import UpdateOrchestrator
from .models import DesiredConfig, ResumableContext
from .results import Failed, InProgress, ReconciliationResult, Success
from .spec_loader import SpecLoadError, load_desired_config

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 240

_RESERVED_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JsonFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        # Fields passed through extra={...}
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(level: int = logging.INFO) -> None:
    """Configure structured logging with JSON output."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Reduce noise from Azure SDK
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


async def run_to_completion(
    engine: UpdateOrchestrator,
    desired: DesiredConfig,
    *,
    context: ResumableContext | None = None,
    max_steps: int = DEFAULT_MAX_STEPS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Success | Failed:
    """Invoke the engine until it returns a terminal result.

    Each step performs blocking SDK calls, so it runs in the default
    executor to keep the event loop responsive.

    Args:
        engine: Orchestrator to drive.
        desired: Target configuration.
        context: Context to resume from, if any.
        max_steps: Upper bound on invocations.
        sleep: Awaitable used to wait between steps.

    Returns:
        The terminal Success or Failed result.

    Raises:
        RuntimeError: If no terminal result was reached within max_steps.
    """
    loop = asyncio.get_event_loop()

    for step_number in range(1, max_steps + 1):
        result: ReconciliationResult = await loop.run_in_executor(
            None, engine.step, desired, context
        )

        if not isinstance(result, InProgress):
            logger.info(
                "Reconciliation finished",
                extra={
                    "identity": desired.identity,
                    "status": result.status.value,
                    "steps": step_number,
                },
            )
            return result

        context = result.context
        await sleep(result.delay_seconds)

    raise RuntimeError(
        f"Resource '{desired.identity}' did not reach a terminal state within {max_steps} steps"
    )


async def main() -> int:
    """Run the updater.

    Environment Variables:
        SPEC_FILE: Path to the desired-config YAML file.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    setup_logging()

    spec_file = os.environ.get("SPEC_FILE")
    if not spec_file:
        logger.error("Configuration error", extra={"error": "SPEC_FILE is required"})
        return 1

    try:
        engine_config = EngineConfig.from_env()
        provider_config = AzureProviderConfig.from_env()
        desired = load_desired_config(Path(spec_file))
    except (ConfigurationError, SpecLoadError) as e:
        logger.error("Configuration error", extra={"error": str(e)})
        return 1

    engine = UpdateOrchestrator(create_azure_provider(provider_config), engine_config)

    try:
        result = await run_to_completion(engine, desired)
    except Exception as e:
        logger.exception("Unhandled exception", extra={"error": str(e)})
        return 1

    if isinstance(result, Failed):
        logger.error(
            "Update failed",
            extra={"error_code": result.error_kind.value, "error": result.message},
        )
        return 1

    return 0


def run() -> None:
    """Entry point for the updater."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()

# pm_pipeline/orchestrator/recovery.py
"""Retry and fallback policy applied around every stage call.

Stages never implement their own recovery. ``run_stage`` retries an
operation per its ``RetryPolicy``, classifies the final error, and either
substitutes the stage's fallback value or raises a ``ProcessingError``.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from pm_pipeline.orchestrator.errors import (
    IntentParsingError,
    ProcessingError,
    ProcessingFailureError,
    ValidationError,
)
from pm_pipeline.orchestrator.logging import PipelineLogger
from pm_pipeline.pipeline.parallel import with_timeout

SUGGESTED_ACTIONS = {
    "intent": "Simplify intent description or provide more specific details",
    "analysis": "Use basic analysis techniques with reduced complexity",
    "optimization": "Apply minimal optimization strategies with lower risk",
    "forecasting": "Use conservative estimates based on workflow complexity",
}
VALIDATION_ACTION = "Fix input validation issues and retry"
DEFAULT_ACTION = "Review input and try again"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry: ``max_retries`` extra attempts, ``delay_ms`` apart."""

    max_retries: int = 0
    delay_ms: int = 0
    backoff: float = 1.0

    def delay_seconds(self, attempt: int) -> float:
        return self.delay_ms * (self.backoff ** (attempt - 1)) / 1000.0


NO_RETRY = RetryPolicy()


@dataclass
class StageOutcome:
    """Stage output plus whether it came from the fallback path."""

    value: Any
    degraded: bool = False
    error: Optional[str] = None


def is_fatal(error: BaseException) -> bool:
    """Fixed classification table."""
    if isinstance(error, (ValidationError, IntentParsingError, ProcessingError)):
        return True
    if isinstance(error, ProcessingFailureError):
        return not error.fallback_available
    return False


def suggested_action(stage: str, error: Optional[BaseException] = None) -> str:
    if isinstance(error, ValidationError):
        return VALIDATION_ACTION
    return SUGGESTED_ACTIONS.get(stage, DEFAULT_ACTION)


def to_processing_error(stage: str, error: BaseException,
                        fallback_available: bool = False) -> ProcessingError:
    """Build the structured fatal error for ``error`` raised in ``stage``."""
    if isinstance(error, ProcessingError):
        return error
    return ProcessingError(
        stage=stage,
        type=type(error).__name__,
        message=str(error) or type(error).__name__,
        suggested_action=suggested_action(stage, error),
        fallback_available=fallback_available,
    )


async def run_stage(
    stage: str,
    operation: Callable[[], Awaitable[Any]],
    fallback_factory: Optional[Callable[[], Any]] = None,
    retry_policy: RetryPolicy = NO_RETRY,
    session_id: str = "",
    logger: Optional[PipelineLogger] = None,
    timeout: Optional[float] = None,
) -> StageOutcome:
    """Run one stage under the recovery policy.

    Raises:
        ProcessingError: the failure is fatal, or no fallback exists
    """
    log = logger or PipelineLogger()
    call = with_timeout(operation, timeout, name=f"{stage} stage")
    attempt = 0

    while True:
        try:
            return StageOutcome(value=await call())
        except Exception as e:
            last_error = e
            if is_fatal(e) or attempt >= retry_policy.max_retries:
                break
            attempt += 1
            log.retry_scheduled(session_id, stage, attempt, retry_policy.delay_ms, str(e))
            await asyncio.sleep(retry_policy.delay_seconds(attempt))

    if is_fatal(last_error) or fallback_factory is None:
        raise to_processing_error(stage, last_error) from last_error

    try:
        fallback = fallback_factory()
    except Exception as e:
        raise to_processing_error(stage, e) from last_error

    log.fallback_used(session_id, stage, type(last_error).__name__, str(last_error))
    return StageOutcome(value=fallback, degraded=True, error=str(last_error))

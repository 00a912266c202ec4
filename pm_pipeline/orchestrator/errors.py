# pm_pipeline/orchestrator/errors.py
"""Custom error types for the orchestrator."""

from typing import Optional


class PipelineError(Exception):
    """Base error for pipeline operations."""
    pass


class ValidationError(PipelineError):
    """Malformed or empty input. Never retried."""

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]


class ProcessingFailureError(PipelineError):
    """A stage failed to produce output."""

    fallback_available = True

    def __init__(self, message: str, stage: str = "unknown",
                 fallback_available: Optional[bool] = None):
        super().__init__(message)
        self.stage = stage
        if fallback_available is not None:
            self.fallback_available = fallback_available


class IntentParsingError(ProcessingFailureError):
    """Intent could not be interpreted at all."""

    fallback_available = False

    def __init__(self, message: str):
        super().__init__(message, stage="intent")


class AnalysisError(ProcessingFailureError):
    """Business analysis failed."""

    def __init__(self, message: str):
        super().__init__(message, stage="analysis")


class OptimizationError(ProcessingFailureError):
    """Workflow optimization failed."""

    def __init__(self, message: str):
        super().__init__(message, stage="optimization")


class ForecastingError(ProcessingFailureError):
    """Quota forecasting or ROI analysis failed."""

    def __init__(self, message: str):
        super().__init__(message, stage="forecasting")


class StageTimeoutError(PipelineError):
    """Operation exceeded timeout."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout


class ProcessingError(PipelineError):
    """Unrecoverable stage failure, surfaced to callers as a structured value."""

    def __init__(self, stage: str, type: str, message: str,
                 suggested_action: str, fallback_available: bool = False):
        super().__init__(message)
        self.stage = stage
        self.type = type
        self.message = message
        self.suggested_action = suggested_action
        self.fallback_available = fallback_available

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "type": self.type,
            "message": self.message,
            "suggested_action": self.suggested_action,
            "fallback_available": self.fallback_available,
        }

"""Pipeline Orchestrator package.

The Orchestrator class itself lives in ``pm_pipeline.orchestrator.orchestrator``;
this package exports the error types and logger shared by every layer.
"""

from pm_pipeline.orchestrator.errors import (
    PipelineError,
    ValidationError,
    ProcessingFailureError,
    IntentParsingError,
    AnalysisError,
    OptimizationError,
    ForecastingError,
    StageTimeoutError,
    ProcessingError,
)
from pm_pipeline.orchestrator.logging import PipelineLogger

__all__ = [
    "PipelineError",
    "ValidationError",
    "ProcessingFailureError",
    "IntentParsingError",
    "AnalysisError",
    "OptimizationError",
    "ForecastingError",
    "StageTimeoutError",
    "ProcessingError",
    "PipelineLogger",
]

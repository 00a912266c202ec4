# tests/test_orchestrator_errors.py
"""Tests for orchestrator error types."""

import pytest


def test_processing_error_to_dict():
    from pm_pipeline.orchestrator.errors import ProcessingError

    error = ProcessingError(
        stage="intent",
        type="ValidationError",
        message="Raw intent must be a non-empty string",
        suggested_action="Fix input validation issues and retry",
    )

    assert str(error) == "Raw intent must be a non-empty string"
    assert error.to_dict() == {
        "stage": "intent",
        "type": "ValidationError",
        "message": "Raw intent must be a non-empty string",
        "suggested_action": "Fix input validation issues and retry",
        "fallback_available": False,
    }


def test_validation_error_collects_messages():
    from pm_pipeline.orchestrator.errors import ValidationError

    error = ValidationError("a; b", errors=["a", "b"])

    assert error.errors == ["a", "b"]
    assert ValidationError("single").errors == ["single"]


def test_stage_errors_carry_stage():
    from pm_pipeline.orchestrator.errors import AnalysisError, ForecastingError, OptimizationError

    assert AnalysisError("x").stage == "analysis"
    assert OptimizationError("x").stage == "optimization"
    assert ForecastingError("x").stage == "forecasting"
    assert AnalysisError("x").fallback_available


def test_intent_parsing_error_has_no_fallback():
    from pm_pipeline.orchestrator.errors import IntentParsingError

    error = IntentParsingError("No words")

    assert error.stage == "intent"
    assert error.fallback_available is False


def test_processing_failure_fallback_override():
    from pm_pipeline.orchestrator.errors import ProcessingFailureError

    assert ProcessingFailureError("x").fallback_available is True
    assert ProcessingFailureError("x", fallback_available=False).fallback_available is False


def test_timeout_error():
    from pm_pipeline.orchestrator.errors import PipelineError, StageTimeoutError

    error = StageTimeoutError("analysis stage exceeded 5s", timeout=5)

    assert error.timeout == 5
    assert isinstance(error, PipelineError)


def test_to_processing_error_uses_class_name():
    from pm_pipeline.orchestrator.recovery import to_processing_error

    error = to_processing_error("analysis", RuntimeError("boom"))

    assert error.type == "RuntimeError"
    assert error.stage == "analysis"
    assert error.message == "boom"

# tests/test_validation.py
"""Tests for input validation."""

import pytest


def test_valid_intent_is_stripped():
    from pm_pipeline.validation import validate_raw_intent

    assert validate_raw_intent("   Build a reporting dashboard  ") == "Build a reporting dashboard"


@pytest.mark.parametrize("intent", [
    "",
    "   ",
    None,
    42,
    "too short",
    "x" * 5001,
])
def test_invalid_intents(intent):
    from pm_pipeline.orchestrator.errors import ValidationError
    from pm_pipeline.validation import validate_raw_intent

    with pytest.raises(ValidationError):
        validate_raw_intent(intent)


def test_params_default_to_empty_dict():
    from pm_pipeline.validation import validate_optional_params

    assert validate_optional_params(None) == {}


def test_valid_params_pass_through():
    from pm_pipeline.validation import validate_optional_params

    params = {
        "expected_user_volume": 5000,
        "cost_constraints": {"max_vibes": 100, "max_specs": 10, "max_cost_dollars": 50},
        "performance_sensitivity": "high",
        "unknown_key": "ignored",
    }

    assert validate_optional_params(params) == params


def test_param_errors_are_collected():
    from pm_pipeline.orchestrator.errors import ValidationError
    from pm_pipeline.validation import validate_optional_params

    with pytest.raises(ValidationError) as exc_info:
        validate_optional_params({
            "expected_user_volume": -1,
            "performance_sensitivity": "extreme",
        })

    assert len(exc_info.value.errors) == 2
    assert "; " in str(exc_info.value)


def test_cost_constraint_upper_bound():
    from pm_pipeline.orchestrator.errors import ValidationError
    from pm_pipeline.validation import validate_optional_params

    with pytest.raises(ValidationError, match="max_vibes"):
        validate_optional_params({"cost_constraints": {"max_vibes": 20_000}})


def test_document_options_checked():
    from pm_pipeline.orchestrator.errors import ValidationError
    from pm_pipeline.validation import validate_optional_params

    with pytest.raises(ValidationError, match="prfaq"):
        validate_optional_params({"generate_pm_documents": {"prfaq": "yes"}})


def test_parsed_intent_needs_operations():
    from pm_pipeline.models import ParsedIntent
    from pm_pipeline.orchestrator.errors import ValidationError
    from pm_pipeline.validation import validate_parsed_intent

    parsed = ParsedIntent.fallback("Build a reporting dashboard").to_dict()
    validate_parsed_intent(parsed)

    parsed["operations_required"] = []
    with pytest.raises(ValidationError, match="At least one operation"):
        validate_parsed_intent(parsed)


def test_workflow_validation(  ):
    from conftest import SAMPLE_WORKFLOW
    from pm_pipeline.orchestrator.errors import ValidationError
    from pm_pipeline.validation import validate_workflow

    validate_workflow(SAMPLE_WORKFLOW)

    with pytest.raises(ValidationError, match="at least one step"):
        validate_workflow({"id": "wf", "steps": []})


def test_consulting_analysis_validation():
    from conftest import SAMPLE_ANALYSIS
    from pm_pipeline.orchestrator.errors import ValidationError
    from pm_pipeline.validation import validate_consulting_analysis

    validate_consulting_analysis(SAMPLE_ANALYSIS)

    with pytest.raises(ValidationError, match="relevance score"):
        validate_consulting_analysis({
            "techniques_used": [{"name": "MECE", "relevance_score": 1.5}],
        })


@pytest.mark.parametrize("roi", [
    None,
    {"scenarios": []},
    {"scenarios": [{"forecast": {}}]},
    {"scenarios": [{"name": "Balanced", "forecast": None}]},
])
def test_invalid_roi_analysis(roi):
    from pm_pipeline.orchestrator.errors import ValidationError
    from pm_pipeline.validation import validate_roi_analysis

    with pytest.raises(ValidationError):
        validate_roi_analysis(roi)


def test_roi_fallback_passes_validation():
    from pm_pipeline.models import QuotaForecast, ROIAnalysis
    from pm_pipeline.validation import validate_roi_analysis

    validate_roi_analysis(ROIAnalysis.fallback(QuotaForecast.fallback(3)).to_dict())


def test_workflow_fallback_passes_validation():
    from pm_pipeline.models import Workflow
    from pm_pipeline.validation import validate_workflow

    workflow = Workflow.fallback()

    validate_workflow(workflow.to_dict())
    assert len(workflow.steps) == 1
    assert workflow.steps[0].type == "analysis"

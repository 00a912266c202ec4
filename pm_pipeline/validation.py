"""
Input validation utilities

Every check raises ValidationError; the orchestrator treats it as fatal
(stage ``intent``) and never retries.
"""

import re
from typing import Any, Optional

from pm_pipeline.models import (
    COMPLEXITY_LEVELS,
    OPERATION_TYPES,
    QUOTA_IMPACTS,
    REQUIREMENT_TYPES,
    TECHNIQUE_NAMES,
)
from pm_pipeline.orchestrator.errors import ValidationError

MIN_INTENT_LENGTH = 10
MAX_INTENT_LENGTH = 5000
MAX_USER_VOLUME = 1_000_000
MAX_VIBES = 10_000
MAX_SPECS = 1_000
MAX_COST_DOLLARS = 100_000
SENSITIVITIES = ("low", "medium", "high")

TRIVIAL_INTENT = re.compile(r'^\s*(test|hello|hi|[a-z])\s*$', re.IGNORECASE)

DOCUMENT_FLAGS = ("requirements", "design_options", "task_plan", "management_onepager", "prfaq")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_raw_intent(raw_intent: Any) -> str:
    """
    Validate free-text intent.

    Returns:
        The intent with surrounding whitespace removed

    Raises:
        ValidationError: If the intent is empty, too short, too long, or a greeting
    """
    if not raw_intent or not isinstance(raw_intent, str):
        raise ValidationError("Raw intent must be a non-empty string")

    stripped = raw_intent.strip()
    if len(stripped) < MIN_INTENT_LENGTH:
        raise ValidationError("Intent description is too short. Please provide more detail.")

    if len(raw_intent) > MAX_INTENT_LENGTH:
        raise ValidationError(
            f"Intent description is too long. Please keep it under {MAX_INTENT_LENGTH} characters."
        )

    if TRIVIAL_INTENT.match(raw_intent):
        raise ValidationError(
            "Intent appears to be a test or greeting. "
            "Please provide a clear description of what you want to build."
        )

    return stripped


def _check_bounded(errors: list[str], name: str, value: Any, upper: float) -> None:
    if value is None:
        return
    if not _is_number(value) or value < 0:
        errors.append(f"{name} must be a non-negative number")
    elif value > upper:
        errors.append(f"{name} seems unreasonably high (max {upper:,})")


def validate_optional_params(params: Optional[dict]) -> dict:
    """
    Validate optional pipeline parameters.

    Unknown keys are ignored. All violations are reported together.

    Returns:
        The params dict (empty dict for None)
    """
    if params is None:
        return {}
    if not isinstance(params, dict):
        raise ValidationError("Optional params must be an object")

    errors: list[str] = []

    _check_bounded(errors, "expected_user_volume", params.get("expected_user_volume"), MAX_USER_VOLUME)

    constraints = params.get("cost_constraints")
    if constraints is not None:
        if not isinstance(constraints, dict):
            errors.append("cost_constraints must be an object")
        else:
            _check_bounded(errors, "cost_constraints.max_vibes", constraints.get("max_vibes"), MAX_VIBES)
            _check_bounded(errors, "cost_constraints.max_specs", constraints.get("max_specs"), MAX_SPECS)
            _check_bounded(
                errors, "cost_constraints.max_cost_dollars",
                constraints.get("max_cost_dollars"), MAX_COST_DOLLARS,
            )

    sensitivity = params.get("performance_sensitivity")
    if sensitivity is not None and sensitivity not in SENSITIVITIES:
        errors.append("performance_sensitivity must be low, medium, or high")

    documents = params.get("generate_pm_documents")
    if documents is not None:
        errors.extend(_document_option_errors(documents))

    if errors:
        raise ValidationError("; ".join(errors), errors=errors)

    return params


def _document_option_errors(documents: Any) -> list[str]:
    if not isinstance(documents, dict):
        return ["generate_pm_documents must be an object"]

    errors = []
    for flag in DOCUMENT_FLAGS:
        value = documents.get(flag)
        if value is not None and not isinstance(value, bool):
            errors.append(f"generate_pm_documents.{flag} must be a boolean")

    target_date = documents.get("target_date")
    if target_date is not None and not isinstance(target_date, str):
        errors.append("generate_pm_documents.target_date must be a string")

    steering = documents.get("steering_options")
    if steering is not None:
        if not isinstance(steering, dict):
            errors.append("generate_pm_documents.steering_options must be an object")
        else:
            name = steering.get("feature_name")
            if name is not None and (not isinstance(name, str) or not name.strip()):
                errors.append("steering_options.feature_name must be a non-empty string")
    return errors


def validate_parsed_intent(intent: Any) -> None:
    """Structural check of a parsed intent dict."""
    if not isinstance(intent, dict):
        raise ValidationError("Parsed intent must be an object")

    objective = intent.get("business_objective")
    if not isinstance(objective, str) or not objective.strip():
        raise ValidationError("Business objective must be a non-empty string")

    for name in ("technical_requirements", "data_sources_needed", "operations_required", "potential_risks"):
        if not isinstance(intent.get(name, []), list):
            raise ValidationError(f"{name} must be an array")

    operations = intent.get("operations_required", [])
    if not operations:
        raise ValidationError("At least one operation must be identified from the intent")

    for index, op in enumerate(operations):
        if not isinstance(op, dict) or not op.get("id"):
            raise ValidationError(f"Operation {index} must have a valid ID")
        if op.get("type") not in OPERATION_TYPES:
            raise ValidationError(f"Operation {index} must have a valid type")
        if not op.get("description"):
            raise ValidationError(f"Operation {index} must have a description")
        cost = op.get("estimated_quota_cost")
        if not _is_number(cost) or cost < 0:
            raise ValidationError(f"Operation {index} must have a non-negative quota cost")

    for index, req in enumerate(intent.get("technical_requirements", [])):
        if req.get("type") not in REQUIREMENT_TYPES:
            raise ValidationError(f"Technical requirement {index} must have a valid type")
        if req.get("complexity") not in COMPLEXITY_LEVELS:
            raise ValidationError(f"Technical requirement {index} must have a valid complexity level")
        if req.get("quota_impact") not in QUOTA_IMPACTS:
            raise ValidationError(f"Technical requirement {index} must have a valid quota impact level")


def validate_workflow(workflow: Any) -> None:
    """Structural check of a workflow dict."""
    if not isinstance(workflow, dict):
        raise ValidationError("Workflow must be an object")
    if not workflow.get("id") or not isinstance(workflow["id"], str):
        raise ValidationError("Workflow must have a valid ID")

    steps = workflow.get("steps")
    if not isinstance(steps, list):
        raise ValidationError("Workflow steps must be an array")
    if not steps:
        raise ValidationError("Workflow must have at least one step")

    complexity = workflow.get("estimated_complexity", 0)
    if not _is_number(complexity) or complexity < 0:
        raise ValidationError("Workflow must have a non-negative estimated complexity")

    for index, step in enumerate(steps):
        if not isinstance(step, dict) or not step.get("id"):
            raise ValidationError(f"Workflow step {index} must have a valid ID")
        if step.get("type") not in OPERATION_TYPES:
            raise ValidationError(f"Workflow step {index} must have a valid type")
        if not step.get("description"):
            raise ValidationError(f"Workflow step {index} must have a description")
        cost = step.get("quota_cost")
        if not _is_number(cost) or cost < 0:
            raise ValidationError(f"Workflow step {index} must have a non-negative quota cost")
        for name in ("inputs", "outputs"):
            if not isinstance(step.get(name, []), list):
                raise ValidationError(f"Workflow step {index} {name} must be an array")


def validate_consulting_analysis(analysis: Any) -> None:
    """Structural check of a consulting analysis dict."""
    if not isinstance(analysis, dict):
        raise ValidationError("Analysis must be an object")

    techniques = analysis.get("techniques_used")
    if not isinstance(techniques, list) or not techniques:
        raise ValidationError("At least one consulting technique must be provided")

    for index, technique in enumerate(techniques):
        if not isinstance(technique, dict) or technique.get("name") not in TECHNIQUE_NAMES:
            raise ValidationError(f"Technique {index} must have a valid name")
        score = technique.get("relevance_score")
        if not _is_number(score) or not 0 <= score <= 1:
            raise ValidationError(f"Technique {index} relevance score must be between 0 and 1")

    if not isinstance(analysis.get("key_findings", []), list):
        raise ValidationError("key_findings must be an array")


def validate_roi_analysis(roi: Any) -> None:
    """Structural check of an ROI analysis dict."""
    if not isinstance(roi, dict):
        raise ValidationError("ROI analysis must be an object")

    scenarios = roi.get("scenarios")
    if not isinstance(scenarios, list) or not scenarios:
        raise ValidationError("ROI analysis must have at least one scenario")

    for index, scenario in enumerate(scenarios):
        if not isinstance(scenario, dict) or not scenario.get("name"):
            raise ValidationError(f"Scenario {index} must have a name")
        if not isinstance(scenario.get("forecast"), dict):
            raise ValidationError(f"Scenario {index} must have a forecast")


def validate_non_empty_string(value: Any, field_name: str, min_length: int = 1) -> str:
    """Validate a free-text tool argument and return it stripped."""
    if not isinstance(value, str) or len(value.strip()) < min_length:
        if min_length > 1:
            raise ValidationError(f"{field_name} must be at least {min_length} characters")
        raise ValidationError(f"{field_name} must be a non-empty string")
    return value.strip()

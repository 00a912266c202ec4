"""MCP tool functions for the PM pipeline.

Each function returns a plain dict and never raises; failures come back as
``{"success": False, "error": {...}}``.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError as SchemaError

from pm_pipeline.orchestrator.errors import ProcessingError, ValidationError
from pm_pipeline.orchestrator.recovery import VALIDATION_ACTION, to_processing_error
from pm_pipeline.schemas import FeatureIdeaInput, IdeaInput, ProcessIntentInput

logger = logging.getLogger(__name__)

_orchestrator = None


def get_orchestrator():
    """Lazily build the server's orchestrator from the environment."""
    global _orchestrator
    if _orchestrator is None:
        from pm_pipeline.config import PipelineConfig
        from pm_pipeline.orchestrator.orchestrator import Orchestrator

        _orchestrator = Orchestrator(PipelineConfig.from_env())
    return _orchestrator


def reset_orchestrator() -> None:
    """Destroy the current orchestrator; the next tool call builds a fresh one."""
    global _orchestrator
    if _orchestrator is not None:
        _orchestrator.destroy()
    _orchestrator = None


def _schema_messages(error: SchemaError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}"
        for e in error.errors()
    ]


def _schema_error(error: SchemaError) -> dict:
    return {
        "success": False,
        "error": {
            "stage": "input",
            "type": "ValidationError",
            "message": f"Invalid input: {'; '.join(_schema_messages(error))}",
            "suggested_action": VALIDATION_ACTION,
            "fallback_available": False,
        },
    }


async def _call(stage: str, operation: Callable[[], Awaitable[Any]]) -> dict:
    try:
        return {"success": True, "result": await operation()}
    except ProcessingError as e:
        return {"success": False, "error": e.to_dict()}
    except Exception as e:
        logger.exception(f"Tool call failed in stage {stage}")
        return {"success": False, "error": to_processing_error(stage, e).to_dict()}


async def process_intent(
    intent: str,
    expected_user_volume: Optional[int] = None,
    cost_constraints: Optional[dict] = None,
    performance_sensitivity: Optional[str] = None,
    generate_pm_documents: Optional[dict] = None,
) -> dict:
    """
    Run the full pipeline: intent, analysis, optimization, ROI, summary, spec.

    Args:
        intent: Free-text description of what to build
        expected_user_volume: Expected number of users (0-1,000,000)
        cost_constraints: {max_vibes, max_specs, max_cost_dollars}
        performance_sensitivity: low, medium or high
        generate_pm_documents: Which PM documents and steering files to produce

    Returns:
        PipelineResult dict with success, payload, error and metadata
    """
    try:
        validated = ProcessIntentInput(
            intent=intent,
            expected_user_volume=expected_user_volume,
            cost_constraints=cost_constraints,
            performance_sensitivity=performance_sensitivity,
            generate_pm_documents=generate_pm_documents,
        )
    except SchemaError as e:
        messages = _schema_messages(e)
        rejected = ValidationError(f"Invalid input: {'; '.join(messages)}", errors=messages)
        return get_orchestrator().reject_input(rejected).to_dict()

    result = await get_orchestrator().process_intent(validated.intent, validated.to_params())
    return result.to_dict()


async def analyze_workflow(workflow: dict) -> dict:
    """Consulting analysis and optimization of an existing workflow."""
    return await _call("analysis", lambda: get_orchestrator().analyze_workflow(workflow))


async def generate_roi_analysis(workflow: dict, optimized_workflow: Optional[dict] = None) -> dict:
    """Conservative / Balanced / Bold cost comparison for a workflow."""
    return await _call(
        "forecasting",
        lambda: get_orchestrator().generate_roi_analysis(workflow, optimized_workflow),
    )


async def generate_consulting_summary(analysis: dict, techniques: Optional[list[str]] = None) -> dict:
    """Pyramid-principle summary of a consulting analysis."""
    return await _call(
        "summary",
        lambda: get_orchestrator().generate_consulting_summary(analysis, techniques),
    )


async def validate_idea_quick(idea: str, context: Optional[dict] = None) -> dict:
    """
    PASS/FAIL verdict on an idea with three next-step options.

    Args:
        idea: The idea to check
        context: Optional {urgency, budget_range, team_size}
    """
    try:
        validated = IdeaInput(idea=idea, context=context)
    except SchemaError as e:
        return _schema_error(e)
    return await _call(
        "quick_validation",
        lambda: get_orchestrator().validate_idea_quick(validated.idea, validated.context),
    )


async def generate_requirements(intent: str, context: Optional[dict] = None) -> dict:
    return await _call("requirements", lambda: get_orchestrator().generate_requirements(intent, context))


async def generate_design_options(requirements: Any) -> dict:
    return await _call("design_options", lambda: get_orchestrator().generate_design_options(requirements))


async def generate_task_plan(design: Any, limits: Optional[dict] = None) -> dict:
    return await _call("task_plan", lambda: get_orchestrator().generate_task_plan(design, limits))


async def generate_management_onepager(
    requirements: Any,
    design: Any,
    tasks: Any = None,
    roi_inputs: Optional[dict] = None,
) -> dict:
    return await _call(
        "management_onepager",
        lambda: get_orchestrator().generate_management_onepager(requirements, design, tasks, roi_inputs),
    )


async def generate_prfaq(requirements: Any, design: Any, target_date: Optional[str] = None) -> dict:
    return await _call(
        "prfaq",
        lambda: get_orchestrator().generate_prfaq(requirements, design, target_date),
    )


async def analyze_competitors(feature_idea: str, context: Optional[dict] = None) -> dict:
    try:
        validated = FeatureIdeaInput(feature_idea=feature_idea, context=context)
    except SchemaError as e:
        return _schema_error(e)
    return await _call(
        "competitors",
        lambda: get_orchestrator().analyze_competitors(validated.feature_idea, validated.context),
    )


async def calculate_market_sizing(feature_idea: str, market_context: Optional[dict] = None) -> dict:
    try:
        validated = FeatureIdeaInput(feature_idea=feature_idea, context=market_context)
    except SchemaError as e:
        return _schema_error(e)
    return await _call(
        "market_sizing",
        lambda: get_orchestrator().calculate_market_sizing(validated.feature_idea, validated.context),
    )


def get_performance() -> dict:
    """Performance verdict, counters, latency percentiles and cache stats."""
    return get_orchestrator().get_performance_summary()


def clear_cache() -> dict:
    get_orchestrator().clear_cache()
    return {"success": True, "cleared": True}


def reset_metrics() -> dict:
    get_orchestrator().reset_metrics()
    return {"success": True, "reset": True}

# tests/test_mcp_server.py
"""Tests for the MCP tool functions."""

import pytest

from conftest import INTENT, SAMPLE_WORKFLOW


@pytest.fixture(autouse=True)
def fresh_orchestrator(monkeypatch, tmp_path):
    """Each test gets its own orchestrator built from a clean environment."""
    from pm_pipeline import mcp_server

    monkeypatch.setenv("PM_STEERING_DIR", str(tmp_path / "steering"))
    monkeypatch.setenv("PM_CACHE_CLEANUP_MS", "0")
    monkeypatch.setenv("PM_RETRY_DELAY_MS", "0")
    mcp_server.reset_orchestrator()
    yield
    mcp_server.reset_orchestrator()


def test_orchestrator_is_shared():
    from pm_pipeline.mcp_server import get_orchestrator

    assert get_orchestrator() is get_orchestrator()


def test_reset_builds_a_new_orchestrator():
    from pm_pipeline.mcp_server import get_orchestrator, reset_orchestrator

    first = get_orchestrator()
    reset_orchestrator()

    assert get_orchestrator() is not first
    assert first.cache.destroyed


@pytest.mark.asyncio
async def test_process_intent_tool():
    from pm_pipeline.mcp_server import process_intent

    result = await process_intent(INTENT, performance_sensitivity="medium")

    assert result["success"] is True
    assert result["error"] is None
    assert "enhanced_spec" in result["payload"]
    assert result["metadata"]["quota_used"] == 8


@pytest.mark.asyncio
async def test_process_intent_schema_error():
    from pm_pipeline.mcp_server import get_orchestrator, process_intent

    result = await process_intent(INTENT, performance_sensitivity="extreme")

    assert result["success"] is False
    assert result["payload"] is None
    assert result["error"]["stage"] == "intent"
    assert result["error"]["type"] == "ValidationError"
    assert result["error"]["message"].startswith("Invalid input: performance_sensitivity")
    assert result["metadata"]["quota_used"] == 0
    assert result["metadata"]["session_id"].startswith("pipeline-")
    assert get_orchestrator().get_performance_metrics()["error_count"] == 1


@pytest.mark.asyncio
async def test_process_intent_negative_budget_rejected():
    from pm_pipeline.mcp_server import process_intent

    result = await process_intent(INTENT, cost_constraints={"max_vibes": -1})

    assert result["success"] is False
    assert result["error"]["stage"] == "intent"
    assert "cost_constraints.max_vibes" in result["error"]["message"]
    assert "metadata" in result


@pytest.mark.asyncio
async def test_process_intent_overlong_intent_rejected():
    from pm_pipeline.mcp_server import process_intent

    result = await process_intent("x" * 5001)

    assert result["success"] is False
    assert result["error"]["stage"] == "intent"
    assert result["metadata"]["cache_hit"] is False


@pytest.mark.asyncio
async def test_process_intent_empty_intent_reports_intent_stage():
    from pm_pipeline.mcp_server import process_intent

    result = await process_intent("")

    assert result["success"] is False
    assert result["error"]["stage"] == "intent"


@pytest.mark.asyncio
async def test_process_intent_with_documents():
    from pm_pipeline.mcp_server import process_intent

    result = await process_intent(INTENT, generate_pm_documents={"requirements": True})

    assert result["success"] is True
    assert set(result["payload"]["pm_documents"]) == {"requirements"}


@pytest.mark.asyncio
async def test_analyze_workflow_tool():
    from pm_pipeline.mcp_server import analyze_workflow

    result = await analyze_workflow(SAMPLE_WORKFLOW)

    assert result["success"] is True
    assert "optimized_workflow" in result["result"]


@pytest.mark.asyncio
async def test_analyze_workflow_tool_error():
    from pm_pipeline.mcp_server import analyze_workflow

    result = await analyze_workflow({"id": "wf", "steps": []})

    assert result["success"] is False
    assert result["error"]["stage"] == "analysis"
    assert result["error"]["type"] == "ValidationError"


@pytest.mark.asyncio
async def test_validate_idea_tool():
    from pm_pipeline.mcp_server import validate_idea_quick

    passed = await validate_idea_quick("  Build a tool to reduce onboarding time  ")
    blank = await validate_idea_quick("   ")

    assert passed["success"] is True
    assert passed["result"]["verdict"] == "PASS"
    assert blank["success"] is False
    assert blank["error"]["stage"] == "input"


@pytest.mark.asyncio
async def test_design_options_requires_requirements():
    from pm_pipeline.mcp_server import generate_design_options

    result = await generate_design_options(None)

    assert result["success"] is False
    assert result["error"]["stage"] == "design_options"
    assert result["error"]["message"] == "requirements is required"


@pytest.mark.asyncio
async def test_unexpected_error_is_structured(monkeypatch):
    from unittest.mock import AsyncMock
    from pm_pipeline import mcp_server

    orchestrator = mcp_server.get_orchestrator()
    monkeypatch.setattr(orchestrator, "generate_task_plan", AsyncMock(side_effect=RuntimeError("kaput")))

    result = await mcp_server.generate_task_plan({"options": {}})

    assert result["success"] is False
    assert result["error"]["type"] == "RuntimeError"
    assert result["error"]["stage"] == "task_plan"


@pytest.mark.asyncio
async def test_competitor_tools_validate_input():
    from pm_pipeline.mcp_server import analyze_competitors, calculate_market_sizing

    short = await analyze_competitors("ab")
    sizing = await calculate_market_sizing("Automated invoice reconciliation", {"total_market_usd": 1000})

    assert short["success"] is False
    assert short["error"]["stage"] == "input"
    assert sizing["success"] is True
    assert sizing["result"]["tam"]["value_usd"] == 1000


@pytest.mark.asyncio
async def test_operational_tools():
    from pm_pipeline.mcp_server import clear_cache, get_performance, process_intent, reset_metrics

    await process_intent(INTENT)

    performance = get_performance()
    assert performance["metrics"]["execution_count"] == 1
    assert performance["cache_stats"]["size"] > 0

    assert clear_cache() == {"success": True, "cleared": True}
    assert get_performance()["cache_stats"]["size"] == 0

    assert reset_metrics() == {"success": True, "reset": True}
    assert get_performance()["metrics"]["execution_count"] == 0


def test_schema_to_params_drops_unset_fields():
    from pm_pipeline.schemas import ProcessIntentInput

    validated = ProcessIntentInput(intent=INTENT, cost_constraints={"max_vibes": 10})

    assert validated.to_params() == {"cost_constraints": {"max_vibes": 10}}


def test_document_options_target_date_pattern():
    from pydantic import ValidationError
    from pm_pipeline.schemas import DocumentOptions

    assert DocumentOptions(prfaq=True, target_date="2027-03-01").target_date == "2027-03-01"
    with pytest.raises(ValidationError):
        DocumentOptions(prfaq=True, target_date="March 1st")


def test_server_module_exposes_fastmcp_app():
    import pm_mcp_server

    assert pm_mcp_server.mcp.name == "pm-pipeline"

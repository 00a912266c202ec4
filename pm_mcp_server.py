#!/usr/bin/env python3
"""
MCP Server wrapper for the PM pipeline tools.

Exposes the full intent-to-spec pipeline, the individual analysis and
document stages, and the cache/metrics controls via MCP.
"""
from typing import Any, Optional

from fastmcp import FastMCP

from pm_pipeline.mcp_server import (
    # Full pipeline
    process_intent as run_pipeline,
    # Analysis stages
    analyze_workflow as run_workflow_analysis,
    generate_roi_analysis as run_roi_analysis,
    generate_consulting_summary as run_consulting_summary,
    validate_idea_quick as run_quick_validation,
    # PM documents
    generate_requirements as run_requirements,
    generate_design_options as run_design_options,
    generate_task_plan as run_task_plan,
    generate_management_onepager as run_onepager,
    generate_prfaq as run_prfaq,
    # Market
    analyze_competitors as run_competitor_analysis,
    calculate_market_sizing as run_market_sizing,
    # Operations
    get_performance as performance_summary,
    clear_cache as clear_pipeline_cache,
    reset_metrics as reset_pipeline_metrics,
)

# Create MCP server
mcp = FastMCP("pm-pipeline")

# Register tools with the names clients call


@mcp.tool()
async def process_intent(
    intent: str,
    expected_user_volume: Optional[int] = None,
    cost_constraints: Optional[dict] = None,
    performance_sensitivity: Optional[str] = None,
    generate_pm_documents: Optional[dict] = None,
) -> dict:
    """Turn a product intent into an optimized spec with ROI analysis and a consulting summary."""
    return await run_pipeline(
        intent,
        expected_user_volume=expected_user_volume,
        cost_constraints=cost_constraints,
        performance_sensitivity=performance_sensitivity,
        generate_pm_documents=generate_pm_documents,
    )


@mcp.tool()
async def analyze_workflow(workflow: dict) -> dict:
    """Analyze and optimize an existing workflow."""
    return await run_workflow_analysis(workflow)


@mcp.tool()
async def generate_roi_analysis(workflow: dict, optimized_workflow: Optional[dict] = None) -> dict:
    """Compare Conservative, Balanced and Bold cost scenarios for a workflow."""
    return await run_roi_analysis(workflow, optimized_workflow)


@mcp.tool()
async def generate_consulting_summary(analysis: dict, techniques: Optional[list[str]] = None) -> dict:
    """Summarize a consulting analysis, answer first."""
    return await run_consulting_summary(analysis, techniques)


@mcp.tool()
async def validate_idea_quick(idea: str, context: Optional[dict] = None) -> dict:
    """Quick PASS/FAIL check of an idea with three next-step options."""
    return await run_quick_validation(idea, context)


@mcp.tool()
async def generate_requirements(intent: str, context: Optional[dict] = None) -> dict:
    """Requirements document: goal, user needs, functional requirements, priorities."""
    return await run_requirements(intent, context)


@mcp.tool()
async def generate_design_options(requirements: Any) -> dict:
    """Conservative / Balanced / Bold design options from requirements."""
    return await run_design_options(requirements)


@mcp.tool()
async def generate_task_plan(design: Any, limits: Optional[dict] = None) -> dict:
    """Phased task plan with quota guardrails."""
    return await run_task_plan(design, limits)


@mcp.tool()
async def generate_management_onepager(
    requirements: Any,
    design: Any,
    tasks: Any = None,
    roi_inputs: Optional[dict] = None,
) -> dict:
    """Answer-first management one-pager."""
    return await run_onepager(requirements, design, tasks, roi_inputs)


@mcp.tool()
async def generate_prfaq(requirements: Any, design: Any, target_date: Optional[str] = None) -> dict:
    """Press release, FAQ and launch checklist."""
    return await run_prfaq(requirements, design, target_date)


@mcp.tool()
async def analyze_competitors(feature_idea: str, context: Optional[dict] = None) -> dict:
    """Competitor landscape for a feature idea."""
    return await run_competitor_analysis(feature_idea, context)


@mcp.tool()
async def calculate_market_sizing(feature_idea: str, market_context: Optional[dict] = None) -> dict:
    """TAM / SAM / SOM estimate for a feature idea."""
    return await run_market_sizing(feature_idea, market_context)


@mcp.tool()
def get_performance() -> dict:
    """Pipeline performance verdict, counters and cache statistics."""
    return performance_summary()


@mcp.tool()
def clear_cache() -> dict:
    """Drop every cached pipeline and stage result."""
    return clear_pipeline_cache()


@mcp.tool()
def reset_metrics() -> dict:
    """Reset the performance counters."""
    return reset_pipeline_metrics()


if __name__ == "__main__":
    from pm_pipeline.config import PipelineConfig
    from pm_pipeline.orchestrator.logging import setup_logging

    setup_logging(PipelineConfig.from_env().log_level)
    mcp.run()

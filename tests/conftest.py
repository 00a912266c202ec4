"""Shared test helpers."""

import pytest

INTENT = "Build a dashboard that tracks weekly active users and reduces churn cost"

SAMPLE_WORKFLOW = {
    "id": "wf-sample",
    "steps": [
        {
            "id": "step-1",
            "type": "data_retrieval",
            "description": "Fetch user events",
            "inputs": [],
            "outputs": ["events"],
            "quota_cost": 3,
        },
        {
            "id": "step-2",
            "type": "data_retrieval",
            "description": "Fetch account records",
            "inputs": [],
            "outputs": ["accounts"],
            "quota_cost": 3,
        },
        {
            "id": "step-3",
            "type": "analysis",
            "description": "Compute churn",
            "inputs": ["events", "accounts"],
            "outputs": ["churn"],
            "quota_cost": 4,
        },
    ],
    "data_flow": [],
    "estimated_complexity": 3,
}

SAMPLE_ANALYSIS = {
    "techniques_used": [
        {"name": "MECE", "relevance_score": 0.8, "applicable_scenarios": ["problem split"]},
        {"name": "ValueDriverTree", "relevance_score": 0.9, "applicable_scenarios": ["cost drivers"]},
    ],
    "key_findings": ["Three data pulls dominate cost"],
    "total_quota_savings": 25.0,
    "implementation_complexity": "medium",
}


@pytest.fixture
def config(tmp_path):
    from pm_pipeline.config import PipelineConfig

    return PipelineConfig(
        retry_delay_ms=0,
        cache_cleanup_interval_ms=0,
        steering_dir=tmp_path / "steering",
    )


@pytest.fixture
def orchestrator(config):
    from pm_pipeline.orchestrator.orchestrator import Orchestrator

    orch = Orchestrator(config)
    yield orch
    orch.destroy()

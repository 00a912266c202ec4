# tests/test_stages.py
"""Tests for the content stages."""

import pytest


# ─────────────────────────────────────────────────────────────
# Intent interpretation
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_parse_intent_extracts_operations():
    from conftest import INTENT
    from pm_pipeline.stages import IntentInterpreter

    parsed = await IntentInterpreter().parse_intent(INTENT)

    assert parsed.business_objective.startswith("Build a dashboard")
    assert any(op.type == "analysis" and op.estimated_quota_cost == 4 for op in parsed.operations_required)
    assert "user_data" in parsed.data_sources_needed
    assert "analytics_data" in parsed.data_sources_needed
    assert [op.id for op in parsed.operations_required][0] == "op-1"


@pytest.mark.asyncio
async def test_parse_intent_default_operation():
    from pm_pipeline.stages import IntentInterpreter

    parsed = await IntentInterpreter().parse_intent("Please make everything better for everyone")

    assert len(parsed.operations_required) == 1
    assert parsed.operations_required[0].description == "Basic application functionality"


@pytest.mark.asyncio
async def test_high_volume_raises_retrieval_cost():
    from pm_pipeline.stages import IntentInterpreter

    interpreter = IntentInterpreter()
    normal = await interpreter.parse_intent("Let people search the catalogue")
    busy = await interpreter.parse_intent("Let people search the catalogue", {"expected_user_volume": 20_000})

    assert normal.operations_required[0].estimated_quota_cost == 2
    assert busy.operations_required[0].estimated_quota_cost == 3


@pytest.mark.asyncio
async def test_unparseable_intent_raises():
    from pm_pipeline.orchestrator.errors import IntentParsingError
    from pm_pipeline.stages import IntentInterpreter

    with pytest.raises(IntentParsingError):
        await IntentInterpreter().parse_intent("12345 !!! 67890")


@pytest.mark.asyncio
async def test_independent_checks():
    from pm_pipeline.models import Operation, ParsedIntent
    from pm_pipeline.stages.checks import assess_risks, validate_intent

    parsed = ParsedIntent(
        business_objective="Bulk import",
        operations_required=[Operation(id="op-1", type="processing", description="Import", estimated_quota_cost=12)],
    )

    assert (await validate_intent(parsed))["valid"]
    risks = await assess_risks(parsed)
    assert risks[0]["type"] == "high_quota_usage"

    empty = ParsedIntent(business_objective=" ")
    result = await validate_intent(empty)
    assert not result["valid"]
    assert len(result["issues"]) == 2


# ─────────────────────────────────────────────────────────────
# Business analysis
# ─────────────────────────────────────────────────────────────

def _parsed_with_ops(count):
    from pm_pipeline.models import Operation, ParsedIntent

    return ParsedIntent(
        business_objective="Reduce reporting cost",
        data_sources_needed=["database"],
        operations_required=[
            Operation(id=f"op-{i}", type="processing", description=f"Operation {i}", estimated_quota_cost=2)
            for i in range(1, count + 1)
        ],
    )


def test_build_workflow_chains_steps():
    from pm_pipeline.stages import BusinessAnalyzer

    workflow = BusinessAnalyzer().build_workflow(_parsed_with_ops(3))

    assert [s.id for s in workflow.steps] == ["step-1", "step-2", "step-3"]
    assert workflow.steps[0].inputs == ["database"]
    assert workflow.steps[1].inputs == workflow.steps[0].outputs
    assert len(workflow.data_flow) == 2
    assert workflow.total_quota_cost == 6


def test_select_techniques():
    from pm_pipeline.stages import BusinessAnalyzer

    names = [t.name for t in BusinessAnalyzer().select_techniques(_parsed_with_ops(4))]

    assert names == ["MECE", "ValueDriverTree", "ImpactEffort"]


@pytest.mark.asyncio
async def test_analyze_uses_quota_estimate():
    from pm_pipeline.stages import BusinessAnalyzer

    analyzer = BusinessAnalyzer()
    parsed = _parsed_with_ops(2)

    analysis = await analyzer.analyze(parsed, None, {"naive": 10, "optimized": 7, "zero_based": 5})

    assert analysis.total_quota_savings == 30.0
    assert analysis.zero_based_solution["estimated_quota"] == 5
    assert analysis.techniques_used[0].name == "ValueDriverTree"


@pytest.mark.asyncio
async def test_analyze_workflow():
    from conftest import SAMPLE_WORKFLOW
    from pm_pipeline.models import Workflow
    from pm_pipeline.stages import BusinessAnalyzer

    analysis = await BusinessAnalyzer().analyze_workflow(Workflow.from_dict(SAMPLE_WORKFLOW))

    assert analysis.total_quota_savings == 15.0
    assert any("candidates for caching" in f for f in analysis.key_findings)


# ─────────────────────────────────────────────────────────────
# Workflow optimization
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_optimize_batches_and_caches():
    from conftest import SAMPLE_WORKFLOW
    from pm_pipeline.models import Workflow
    from pm_pipeline.stages import WorkflowOptimizer

    workflow = Workflow.from_dict(SAMPLE_WORKFLOW)

    optimized = await WorkflowOptimizer().optimize(workflow)

    assert [o.type for o in optimized.optimizations] == ["batching", "caching"]
    assert [s.id for s in optimized.steps] == ["batch-data_retrieval", "step-3"]
    assert optimized.total_quota_cost == 7
    assert optimized.efficiency_gains.total_savings_percentage == 30.0
    # Input untouched
    assert [s.quota_cost for s in workflow.steps] == [3, 3, 4]
    assert optimized.original_workflow is workflow


@pytest.mark.asyncio
async def test_high_sensitivity_skips_batching():
    from conftest import SAMPLE_WORKFLOW
    from pm_pipeline.models import Workflow
    from pm_pipeline.stages import WorkflowOptimizer

    optimized = await WorkflowOptimizer().optimize(
        Workflow.from_dict(SAMPLE_WORKFLOW), params={"performance_sensitivity": "high"},
    )

    assert [o.type for o in optimized.optimizations] == ["caching"]
    assert optimized.total_quota_cost == 8


@pytest.mark.asyncio
async def test_vibe_budget_converts_expensive_step():
    from conftest import SAMPLE_WORKFLOW
    from pm_pipeline.models import Workflow
    from pm_pipeline.stages import WorkflowOptimizer

    optimized = await WorkflowOptimizer().optimize(
        Workflow.from_dict(SAMPLE_WORKFLOW), params={"cost_constraints": {"max_vibes": 5}},
    )

    assert "vibe_to_spec" in [o.type for o in optimized.optimizations]
    assert any(s.type == "spec" for s in optimized.steps)


# ─────────────────────────────────────────────────────────────
# Forecasting
# ─────────────────────────────────────────────────────────────

def test_forecast_prices_steps():
    from conftest import SAMPLE_WORKFLOW
    from pm_pipeline.models import Workflow
    from pm_pipeline.stages import QuotaForecaster

    forecast = QuotaForecaster().forecast(Workflow.from_dict(SAMPLE_WORKFLOW), scenario="naive")

    assert forecast.vibes_consumed == 10
    assert forecast.specs_consumed == 0
    assert forecast.estimated_cost == 0.1
    assert len(forecast.breakdown) == 3


@pytest.mark.asyncio
async def test_roi_analysis_has_three_scenarios():
    from conftest import SAMPLE_WORKFLOW
    from pm_pipeline.models import Workflow
    from pm_pipeline.stages import QuotaForecaster, WorkflowOptimizer

    workflow = Workflow.from_dict(SAMPLE_WORKFLOW)
    optimized = await WorkflowOptimizer().optimize(workflow)

    roi = await QuotaForecaster().generate_roi_analysis(workflow, optimized)

    assert [s.name for s in roi.scenarios] == ["Conservative", "Balanced", "Bold"]
    assert roi.best_option in ("Conservative", "Balanced", "Bold")
    assert roi.scenario("balanced").savings_percentage == 30.0
    assert roi.scenario("missing") is None


def test_efficiency_summary_zero_baseline():
    from pm_pipeline.models import QuotaForecast
    from pm_pipeline.stages import QuotaForecaster

    zero = QuotaForecast(vibes_consumed=0, specs_consumed=0, estimated_cost=0.0)

    summary = QuotaForecaster().efficiency_summary(zero, zero)

    assert summary["savings"]["total_savings_percentage"] == 0.0
    assert summary["savings"]["vibe_reduction"] == 0.0


# ─────────────────────────────────────────────────────────────
# Summary and spec
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_summary_pyramid():
    from conftest import SAMPLE_ANALYSIS
    from pm_pipeline.models import ConsultingAnalysis
    from pm_pipeline.stages import SummaryGenerator

    summary = await SummaryGenerator().generate(ConsultingAnalysis.from_dict(SAMPLE_ANALYSIS))

    assert summary.techniques_applied == ["MECE", "ValueDriverTree"]
    assert "25.0%" in summary.executive_summary
    assert summary.recommendations[0].main_recommendation.startswith("Prioritize")


def test_spec_name():
    from pm_pipeline.stages.spec_generator import spec_name

    assert spec_name("Build a dashboard that tracks weekly users") == "Dashboard Tracks Weekly Optimizer"
    assert spec_name("do it") == "Feature Optimizer"


@pytest.mark.asyncio
async def test_generate_spec():
    from conftest import SAMPLE_WORKFLOW
    from pm_pipeline.models import Workflow
    from pm_pipeline.stages import SpecGenerator, WorkflowOptimizer

    optimized = await WorkflowOptimizer().optimize(Workflow.from_dict(SAMPLE_WORKFLOW))

    spec = await SpecGenerator().generate(optimized, "Compute churn from user events")

    assert spec["requirements"][-1]["id"] == "REQ-OPT"
    assert spec["metadata"]["optimizations_applied"] == ["batching", "caching"]
    assert "30.0%" in spec["description"]
    assert len(spec["design"]["optimization_notes"]) == 2
    assert "consulting_summary" not in spec


# ─────────────────────────────────────────────────────────────
# PM documents
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_requirements_document():
    from pm_pipeline.stages import DocumentGenerator

    doc = await DocumentGenerator().generate_requirements(
        "Track weekly active users, alert on churn and export reports",
        {"budget": 500},
    )

    assert len(doc["functional_requirements"]) == 3
    assert doc["right_time_verdict"]["decision"] == "do_now"
    assert "Budget cap of $500" in doc["constraints_risks"]
    assert len(doc["priority"]["must"]) == 2


@pytest.mark.asyncio
async def test_design_options_accept_text_or_dict():
    from pm_pipeline.stages import DocumentGenerator

    generator = DocumentGenerator()
    requirements = await generator.generate_requirements("Track weekly active users, alert on churn")

    from_dict = await generator.generate_design_options(requirements)
    from_text = await generator.generate_design_options("Some loose notes about a feature")

    assert set(from_dict["options"]) == {"conservative", "balanced", "bold"}
    assert from_dict["right_time_recommendation"].startswith("Balanced")
    assert from_text["right_time_recommendation"].startswith("Conservative")


@pytest.mark.asyncio
async def test_task_plan_carries_limits():
    from pm_pipeline.stages import DocumentGenerator

    generator = DocumentGenerator()
    design = await generator.generate_design_options(
        await generator.generate_requirements("Track weekly active users, alert on churn")
    )

    plan = await generator.generate_task_plan(design, {"max_vibes": 100})

    assert plan["guardrails_check"]["limits"]["max_vibes"] == 100
    assert plan["immediate_wins"][0]["description"].endswith("(Balanced option)")


@pytest.mark.asyncio
async def test_onepager_markdown():
    from pm_pipeline.stages import DocumentGenerator

    generator = DocumentGenerator()
    requirements = await generator.generate_requirements("Track weekly active users, alert on churn")
    design = await generator.generate_design_options(requirements)

    onepager = await generator.generate_management_onepager(
        requirements, design, roi_inputs={"cost_naive": 0.5},
    )

    assert onepager["answer"].startswith("Proceed with the Balanced option")
    assert "# Management One-Pager" in onepager["markdown"]
    assert "$0.50" in onepager["markdown"]
    assert "Cost Bold: n/a" in onepager["markdown"]


@pytest.mark.asyncio
async def test_prfaq_dates():
    from pm_pipeline.stages import DocumentGenerator

    generator = DocumentGenerator()
    requirements = await generator.generate_requirements("Track weekly active users, alert on churn")

    prfaq = await generator.generate_prfaq(requirements, {}, target_date="2027-03-01")

    assert prfaq["press_release"]["date"] == "2027-03-01"
    assert len(prfaq["faq"]) == 10
    assert prfaq["launch_checklist"][-1]["due_date"] == "2027-02-27"
    assert prfaq["markdown"]["faq"].startswith("**Q1:")


@pytest.mark.asyncio
async def test_prfaq_bad_date_defaults_to_quarter_out():
    from datetime import date, timedelta
    from pm_pipeline.stages import DocumentGenerator

    prfaq = await DocumentGenerator().generate_prfaq("Some goal", "Some design", target_date="not-a-date")

    assert prfaq["press_release"]["date"] == (date.today() + timedelta(days=90)).isoformat()


# ─────────────────────────────────────────────────────────────
# Steering files
# ─────────────────────────────────────────────────────────────

def test_sanitize_feature_name():
    from pm_pipeline.stages.steering_writer import sanitize_feature_name

    assert sanitize_feature_name("My Feature!") == "my-feature"
    assert sanitize_feature_name("!!!") == "feature"


def test_render_rejects_unknown_type(tmp_path):
    from pm_pipeline.stages import SteeringWriter

    with pytest.raises(ValueError):
        SteeringWriter(tmp_path).render("roadmap", {}, "feature")


@pytest.mark.asyncio
async def test_write_documents(tmp_path):
    from pm_pipeline.stages import SteeringWriter

    writer = SteeringWriter(tmp_path / "steering")
    documents = {
        "requirements": {"business_goal": "Reduce churn"},
        "management_onepager": {"markdown": "# Management One-Pager"},
    }
    options = {"create_steering_files": True, "feature_name": "Churn Radar", "inclusion_rule": "always"}

    first = await writer.write_documents(documents, options)
    second = await writer.write_documents(documents, options)

    assert first["created"]
    assert (tmp_path / "steering" / "churn-radar-requirements.md").exists()
    onepager = (tmp_path / "steering" / "churn-radar-management-onepager.md").read_text()
    assert onepager.startswith("---\ninclusion: always")
    assert "# Management One-Pager" in onepager
    assert not second["created"]
    assert "overwrite_existing" in second["results"][0]["message"]


@pytest.mark.asyncio
async def test_write_documents_not_requested(tmp_path):
    from pm_pipeline.stages import SteeringWriter

    result = await SteeringWriter(tmp_path).write_documents({"requirements": {}}, {})

    assert result["created"] is False
    assert result["results"] == []


# ─────────────────────────────────────────────────────────────
# Quick validation and market tools
# ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
@pytest.mark.parametrize("idea,context,verdict", [
    ("Build a tool to reduce onboarding time for new hires", {}, "PASS"),
    ("short", {}, "FAIL"),
    ("Dashboard of colorful charts for the office", {}, "FAIL"),
    ("Build a complete onboarding suite", {"urgency": "high"}, "FAIL"),
    ("Build an integration platform", {"team_size": 1}, "FAIL"),
])
async def test_quick_validation(idea, context, verdict):
    from pm_pipeline.stages import QuickValidator

    result = await QuickValidator().validate_idea_quick(idea, context)

    assert result["verdict"] == verdict
    assert [o["id"] for o in result["options"]] == ["A", "B", "C"]
    assert result["processing_time_ms"] > 0


@pytest.mark.asyncio
async def test_competitor_analysis_is_deterministic():
    from pm_pipeline.stages import CompetitiveAnalyzer

    analyzer = CompetitiveAnalyzer()
    first = await analyzer.analyze_competitors("Automated invoice reconciliation")
    second = await analyzer.analyze_competitors("Automated invoice reconciliation", {"competitors": ["Acme"]})

    assert first["competitors"] == second["competitors"][:4]
    assert second["competitors"][-1]["name"] == "Acme"
    assert first["market_segment"] == "automated invoice"


@pytest.mark.asyncio
async def test_market_sizing():
    from pm_pipeline.stages import CompetitiveAnalyzer

    analyzer = CompetitiveAnalyzer()
    default = await analyzer.calculate_market_sizing("Automated invoice reconciliation")
    sized = await analyzer.calculate_market_sizing("Automated invoice reconciliation", {"total_market_usd": 1_000_000})

    assert default["sam"]["value_usd"] == 1_000_000_000
    assert default["som"]["value_usd"] == 50_000_000
    assert default["confidence_level"] == "low"
    assert sized["confidence_level"] == "medium"
    assert sized["tam"]["value_usd"] == 1_000_000

# pm_pipeline/stages/quota_forecaster.py
"""Quota forecasts and ROI scenarios."""

from typing import Optional

from pm_pipeline.models import (
    SPEC_COST_DOLLARS,
    VIBE_COST_DOLLARS,
    OptimizationScenario,
    OptimizedWorkflow,
    ParsedIntent,
    QuotaForecast,
    ROIAnalysis,
    Workflow,
)

OPTIMIZED_FACTOR = 0.7
ZERO_BASED_FACTOR = 0.5
RISK_PENALTY = {"low": 0, "medium": 10, "high": 25}


def _price(vibes: int, specs: int) -> float:
    return round(vibes * VIBE_COST_DOLLARS + specs * SPEC_COST_DOLLARS, 4)


def _pct_change(before: float, after: float) -> float:
    return round((before - after) / before * 100, 1) if before else 0.0


class QuotaForecaster:
    """Prices workflows and compares naive, optimized and zero-based plans."""

    def estimate_quota(self, parsed: ParsedIntent) -> dict:
        """Quick estimate used while business analysis runs."""
        naive = parsed.total_quota_cost
        return {
            "naive": naive,
            "optimized": round(naive * OPTIMIZED_FACTOR),
            "zero_based": round(naive * ZERO_BASED_FACTOR),
        }

    def forecast(self, workflow: Workflow, scenario: str = "optimized",
                 confidence: str = "medium") -> QuotaForecast:
        breakdown = []
        vibes = specs = 0
        for step in workflow.steps:
            step_specs = step.quota_cost if step.type == "spec" else 0
            step_vibes = step.quota_cost - step_specs
            vibes += step_vibes
            specs += step_specs
            breakdown.append({
                "step_id": step.id,
                "step_description": step.description,
                "vibes": step_vibes,
                "specs": step_specs,
                "cost": _price(step_vibes, step_specs),
            })

        return QuotaForecast(
            vibes_consumed=vibes,
            specs_consumed=specs,
            estimated_cost=_price(vibes, specs),
            confidence_level=confidence,
            scenario=scenario,
            breakdown=breakdown,
        )

    def _zero_based(self, forecast: QuotaForecast) -> QuotaForecast:
        vibes = round(forecast.vibes_consumed * ZERO_BASED_FACTOR)
        specs = round(forecast.specs_consumed * ZERO_BASED_FACTOR)
        return QuotaForecast(
            vibes_consumed=vibes,
            specs_consumed=specs,
            estimated_cost=_price(vibes, specs),
            confidence_level="low",
            scenario="zero-based",
        )

    async def generate_roi_analysis(self, workflow: Workflow,
                                    optimized: Optional[OptimizedWorkflow] = None) -> ROIAnalysis:
        """Conservative / Balanced / Bold comparison."""
        naive = self.forecast(workflow, scenario="naive", confidence="high")
        balanced = self.forecast(optimized, scenario="optimized") if optimized else QuotaForecast(
            vibes_consumed=round(naive.vibes_consumed * OPTIMIZED_FACTOR),
            specs_consumed=round(naive.specs_consumed * OPTIMIZED_FACTOR),
            estimated_cost=round(naive.estimated_cost * OPTIMIZED_FACTOR, 4),
            confidence_level="medium",
            scenario="optimized",
        )
        bold = self._zero_based(balanced)

        scenarios = [
            OptimizationScenario(
                name="Conservative",
                forecast=naive,
                savings_percentage=0.0,
                implementation_effort="low",
                risk_level="low",
            ),
            OptimizationScenario(
                name="Balanced",
                forecast=balanced,
                savings_percentage=_pct_change(naive.estimated_cost, balanced.estimated_cost),
                implementation_effort="medium",
                risk_level="medium",
            ),
            OptimizationScenario(
                name="Bold",
                forecast=bold,
                savings_percentage=_pct_change(naive.estimated_cost, bold.estimated_cost),
                implementation_effort="high",
                risk_level="high",
            ),
        ]
        best = max(scenarios, key=lambda s: s.savings_percentage - RISK_PENALTY[s.risk_level])

        recommendations = [f"Adopt the {best.name} approach for the best risk-adjusted savings"]
        if optimized and optimized.optimizations:
            kinds = sorted({o.type for o in optimized.optimizations})
            recommendations.append(f"Apply {', '.join(kinds)} optimizations first")
        if bold.estimated_cost < balanced.estimated_cost:
            recommendations.append("Revisit scope with a zero-based design once the first release ships")

        return ROIAnalysis(
            scenarios=scenarios,
            recommendations=recommendations,
            best_option=best.name,
            risk_assessment=(
                f"Balanced plan saves {scenarios[1].savings_percentage}% with moderate risk; "
                f"Bold saves {scenarios[2].savings_percentage}% but requires redesign"
            ),
        )

    def efficiency_summary(self, naive: QuotaForecast, optimized: QuotaForecast) -> dict:
        """Naive vs optimized savings; zero baselines report 0%."""
        cost_savings = round(naive.estimated_cost - optimized.estimated_cost, 4)
        return {
            "naive_approach": naive.to_dict(),
            "optimized_approach": optimized.to_dict(),
            "savings": {
                "vibe_reduction": _pct_change(naive.vibes_consumed, optimized.vibes_consumed),
                "spec_reduction": _pct_change(naive.specs_consumed, optimized.specs_consumed),
                "cost_savings": cost_savings,
                "total_savings_percentage": _pct_change(naive.estimated_cost, optimized.estimated_cost),
            },
        }

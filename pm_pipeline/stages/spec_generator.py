# pm_pipeline/stages/spec_generator.py
"""Implementation specs enriched with consulting insights."""

import re
from datetime import datetime, timezone
from typing import Optional

from pm_pipeline import __version__
from pm_pipeline.models import ConsultingSummary, OptimizedWorkflow, ROIAnalysis

NAME_STOPWORDS = {
    "create", "build", "implement", "make", "develop", "design", "write",
    "add", "the", "and", "for", "with", "that", "this", "want",
}
ALTERNATIVE_ROI = {"conservative": 1.0, "balanced": 2.5, "bold": 4.0}


def spec_name(intent: str) -> str:
    words = [
        w for w in re.sub(r"[^\w\s]", "", intent.lower()).split()
        if len(w) > 3 and w not in NAME_STOPWORDS
    ][:3]
    return " ".join(w.capitalize() for w in words) + " Optimizer" if words else "Feature Optimizer"


def _effort(cost: float) -> str:
    return "large" if cost > 10 else "medium" if cost > 5 else "small"


class SpecGenerator:
    """Builds requirements, design and tasks from an optimized workflow."""

    async def generate(self, optimized: OptimizedWorkflow, intent: str,
                       summary: Optional[ConsultingSummary] = None,
                       roi: Optional[ROIAnalysis] = None) -> dict:
        savings = optimized.efficiency_gains.total_savings_percentage
        description = (
            f'Optimized implementation of: "{intent}". This spec reduces quota consumption by '
            f"{savings:.1f}% through {len(optimized.optimizations)} optimization strategies."
        )
        if summary:
            description += f" {summary.executive_summary}"

        spec = {
            "name": spec_name(intent),
            "description": description,
            "requirements": self._requirements(optimized),
            "design": self._design(optimized),
            "tasks": self._tasks(optimized),
            "metadata": {
                "original_intent": intent,
                "optimizations_applied": [o.type for o in optimized.optimizations],
                "generated_at": datetime.now(timezone.utc).isoformat(),
                "version": __version__,
            },
        }
        if summary:
            spec["consulting_summary"] = summary.to_dict()
            spec["alternative_options"] = self._alternatives(summary)
        if roi:
            spec["roi_analysis"] = roi.to_dict()
        return spec

    def minimal_spec(self, intent: str) -> dict:
        """Skeleton spec used when spec generation falls back."""
        return {
            "name": spec_name(intent),
            "description": f'Implementation of: "{intent}"',
            "requirements": [{
                "id": "REQ-1",
                "user_story": f"As a user, I want {intent.strip().rstrip('.')}",
                "acceptance_criteria": ["WHEN the feature is used THEN it SHALL meet the stated intent"],
                "priority": "high",
            }],
            "design": {"overview": "To be refined", "components": [], "data_models": []},
            "tasks": [{"id": "TASK-1", "description": "Refine the spec", "estimated_effort": "small"}],
            "metadata": {"original_intent": intent, "optimizations_applied": [], "version": __version__},
        }

    def optimization_notes(self, optimized: OptimizedWorkflow) -> list[str]:
        notes = []
        for opt in optimized.optimizations:
            pct = opt.estimated_savings.percentage
            if opt.type == "batching":
                notes.append(f"Batched {len(opt.steps_affected)} operations to reduce API calls by {pct}%")
            elif opt.type == "caching":
                notes.append(f"Added caching layer to reduce redundant processing by {pct}%")
            elif opt.type == "decomposition":
                notes.append(f"Decomposed workflow into focused specs, saving {pct}%")
            else:
                notes.append(f"Converted vibe steps to specs, saving {pct}%")
        return notes

    def _requirements(self, optimized: OptimizedWorkflow) -> list[dict]:
        requirements = []
        for index, step in enumerate(optimized.steps, start=1):
            requirements.append({
                "id": f"REQ-{index}",
                "user_story": (
                    f"As a user, I want the system to {step.description.lower()}, "
                    "so that I can achieve my intended outcome efficiently."
                ),
                "acceptance_criteria": [
                    f"WHEN the system processes {step.type} operations THEN it SHALL complete within quota limits",
                    f"WHEN {step.description} is executed THEN it SHALL produce: {', '.join(step.outputs)}",
                ],
                "priority": "high" if step.quota_cost > 10 else "medium" if step.quota_cost > 5 else "low",
            })

        requirements.append({
            "id": "REQ-OPT",
            "user_story": "As a user, I want the system to be optimized for quota efficiency, "
                          "so that I can minimize costs while maintaining functionality.",
            "acceptance_criteria": [
                "WHEN the optimized workflow runs THEN it SHALL consume "
                f"{optimized.efficiency_gains.total_savings_percentage:.1f}% fewer resources than the naive approach",
                "WHEN optimizations are applied THEN all original functionality SHALL be preserved",
            ],
            "priority": "high",
        })
        return requirements

    def _design(self, optimized: OptimizedWorkflow) -> dict:
        by_type: dict[str, list] = {}
        for step in optimized.steps:
            by_type.setdefault(step.type, []).append(step)

        components = [
            {
                "name": f"{step_type.replace('_', ' ').title()} Handler",
                "purpose": f"Manages {step_type} operations with optimized quota usage",
                "interfaces": [f"I{s.id}Handler" for s in steps],
                "dependencies": sorted({i for s in steps for i in s.inputs}),
            }
            for step_type, steps in by_type.items()
        ]
        return {
            "overview": f"Optimized workflow implementation with {len(optimized.optimizations)} efficiency improvements",
            "architecture": f"Pipeline architecture with {len(components)} main components",
            "components": components,
            "data_models": sorted({d.data_type for d in optimized.data_flow}),
            "optimization_notes": self.optimization_notes(optimized),
        }

    def _tasks(self, optimized: OptimizedWorkflow) -> list[dict]:
        tasks = [
            {
                "id": f"TASK-{index}",
                "description": f"Implement {opt.type} optimization: {opt.description}",
                "requirements": ["REQ-OPT"],
                "estimated_effort": "large" if opt.estimated_savings.percentage > 30 else
                                    "medium" if opt.estimated_savings.percentage > 15 else "small",
            }
            for index, opt in enumerate(optimized.optimizations, start=1)
        ]
        tasks.extend(
            {
                "id": f"IMPL-{index}",
                "description": f"Implement {step.description}",
                "requirements": [f"REQ-{index}"],
                "estimated_effort": _effort(step.quota_cost),
            }
            for index, step in enumerate(optimized.steps, start=1)
        )
        return tasks

    def _alternatives(self, summary: ConsultingSummary) -> dict:
        main = summary.recommendations[0].main_recommendation if summary.recommendations else ""
        return {
            "conservative": {
                "name": "Conservative",
                "description": "Ship the core flow with minimal optimization",
                "estimated_roi": ALTERNATIVE_ROI["conservative"],
            },
            "balanced": {
                "name": "Balanced",
                "description": main or "Apply proven optimizations alongside the core flow",
                "estimated_roi": ALTERNATIVE_ROI["balanced"],
            },
            "bold": {
                "name": "Bold",
                "description": "Zero-based redesign around the highest-value operation",
                "estimated_roi": ALTERNATIVE_ROI["bold"],
            },
        }

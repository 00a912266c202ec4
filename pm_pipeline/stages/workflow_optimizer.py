# pm_pipeline/stages/workflow_optimizer.py
"""Applies batching, caching, decomposition and vibe-to-spec strategies."""

from collections import defaultdict
from dataclasses import replace
from typing import Optional

from pm_pipeline.models import (
    ConsultingAnalysis,
    EfficiencyGains,
    Optimization,
    OptimizedWorkflow,
    Savings,
    Workflow,
    WorkflowStep,
)

BATCH_FACTOR = 0.7
DECOMPOSITION_THRESHOLD = 4


class WorkflowOptimizer:
    """Produces an OptimizedWorkflow; never mutates its input."""

    async def optimize(self, workflow: Workflow, analysis: Optional[ConsultingAnalysis] = None,
                       params: Optional[dict] = None) -> OptimizedWorkflow:
        params = params or {}
        steps = [replace(s, inputs=list(s.inputs), outputs=list(s.outputs)) for s in workflow.steps]
        optimizations: list[Optimization] = []

        if params.get("performance_sensitivity") != "high":
            steps = self._batch(steps, optimizations)
        steps = self._cache(steps, optimizations)
        steps = self._vibe_to_spec(steps, optimizations, params)

        if len(steps) > DECOMPOSITION_THRESHOLD:
            optimizations.append(Optimization(
                type="decomposition",
                description=f"Split {len(steps)} steps into independently deliverable specs",
                steps_affected=[s.id for s in steps],
                estimated_savings=Savings(percentage=10.0),
            ))

        if analysis is not None and analysis.implementation_complexity == "high":
            for opt in optimizations:
                opt.estimated_savings.percentage = round(opt.estimated_savings.percentage * 0.8, 1)

        return OptimizedWorkflow(
            id=f"{workflow.id}-optimized",
            steps=steps,
            data_flow=list(workflow.data_flow),
            estimated_complexity=max(1, workflow.estimated_complexity - len(optimizations)),
            optimizations=optimizations,
            original_workflow=workflow,
            efficiency_gains=self._gains(workflow.steps, steps),
        )

    def _batch(self, steps: list[WorkflowStep], optimizations: list[Optimization]) -> list[WorkflowStep]:
        groups: dict[str, list[WorkflowStep]] = defaultdict(list)
        for step in steps:
            groups[step.type].append(step)

        batchable = {t: g for t, g in groups.items() if len(g) > 1 and t in ("processing", "data_retrieval")}
        if not batchable:
            return steps

        result = []
        emitted = set()
        for step in steps:
            group = batchable.get(step.type)
            if group is None:
                result.append(step)
                continue
            if step.type in emitted:
                continue
            emitted.add(step.type)

            original_cost = sum(s.quota_cost for s in group)
            merged_cost = max(1, round(original_cost * BATCH_FACTOR))
            result.append(WorkflowStep(
                id=f"batch-{step.type}",
                type=step.type,
                description="Batched: " + "; ".join(s.description for s in group),
                inputs=sorted({i for s in group for i in s.inputs}),
                outputs=[o for s in group for o in s.outputs],
                quota_cost=merged_cost,
            ))
            optimizations.append(Optimization(
                type="batching",
                description=f"Batched {len(group)} {step.type} operations into one call",
                steps_affected=[s.id for s in group],
                estimated_savings=Savings(
                    vibes=original_cost - merged_cost,
                    percentage=round((original_cost - merged_cost) / original_cost * 100, 1),
                ),
            ))
        return result

    def _cache(self, steps: list[WorkflowStep], optimizations: list[Optimization]) -> list[WorkflowStep]:
        cacheable = [s for s in steps if s.type == "data_retrieval" and s.quota_cost > 1]
        if not cacheable:
            return steps

        for step in cacheable:
            step.quota_cost -= 1
        optimizations.append(Optimization(
            type="caching",
            description="Added caching layer to reduce redundant data retrieval",
            steps_affected=[s.id for s in cacheable],
            estimated_savings=Savings(vibes=len(cacheable), percentage=20.0),
        ))
        return steps

    def _vibe_to_spec(self, steps: list[WorkflowStep], optimizations: list[Optimization],
                      params: dict) -> list[WorkflowStep]:
        if not steps:
            return steps

        vibe_steps = [s for s in steps if s.type == "vibe"]
        max_vibes = (params.get("cost_constraints") or {}).get("max_vibes")
        over_budget = max_vibes is not None and sum(s.quota_cost for s in steps) > max_vibes

        if not vibe_steps and not over_budget:
            return steps

        if not vibe_steps:
            # Convert the most expensive step to meet the vibe budget
            vibe_steps = [max(steps, key=lambda s: s.quota_cost)]

        for step in vibe_steps:
            step.type = "spec"
            step.quota_cost = max(1, step.quota_cost // 2)
        optimizations.append(Optimization(
            type="vibe_to_spec",
            description=f"Converted {len(vibe_steps)} conversational step(s) to specs",
            steps_affected=[s.id for s in vibe_steps],
            estimated_savings=Savings(specs=len(vibe_steps), percentage=25.0),
        ))
        return steps

    def _gains(self, original: list[WorkflowStep], optimized: list[WorkflowStep]) -> EfficiencyGains:
        def split(steps):
            vibes = sum(s.quota_cost for s in steps if s.type != "spec")
            specs = sum(s.quota_cost for s in steps if s.type == "spec")
            return vibes, specs

        orig_vibes, orig_specs = split(original)
        new_vibes, new_specs = split(optimized)
        orig_cost = orig_vibes * 0.01 + orig_specs * 0.05
        new_cost = new_vibes * 0.01 + new_specs * 0.05
        orig_units = orig_vibes + orig_specs
        new_units = new_vibes + new_specs

        return EfficiencyGains(
            vibe_reduction=orig_vibes - new_vibes,
            spec_reduction=orig_specs - new_specs,
            cost_savings=round(orig_cost - new_cost, 4),
            total_savings_percentage=round((orig_units - new_units) / orig_units * 100, 1) if orig_units else 0.0,
        )

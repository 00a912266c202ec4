# pm_pipeline/stages/business_analyzer.py
"""Consulting-style analysis of a parsed intent or workflow."""

from typing import Optional

from pm_pipeline.models import (
    ConsultingAnalysis,
    ConsultingTechnique,
    DataFlow,
    ParsedIntent,
    Workflow,
    WorkflowStep,
)

TECHNIQUE_SCENARIOS = {
    "MECE": ["issue decomposition", "requirement coverage"],
    "ValueDriverTree": ["cost reduction", "efficiency gains"],
    "ImpactEffort": ["prioritization", "quick wins"],
    "ZeroBased": ["radical simplification"],
    "Pyramid": ["executive communication"],
    "ValueProp": ["user value framing"],
    "OptionFraming": ["decision making"],
}
MAX_TECHNIQUES = 3


def technique(name: str, score: float) -> ConsultingTechnique:
    return ConsultingTechnique(
        name=name,
        relevance_score=score,
        applicable_scenarios=list(TECHNIQUE_SCENARIOS.get(name, [])),
    )


class BusinessAnalyzer:
    """Builds workflows from intents and applies consulting techniques."""

    def build_workflow(self, parsed: ParsedIntent) -> Workflow:
        """One step per operation, chained output to input."""
        steps = []
        data_flow = []
        previous_output: Optional[str] = None

        for index, op in enumerate(parsed.operations_required, start=1):
            output = f"{op.type}_result_{index}"
            step = WorkflowStep(
                id=f"step-{index}",
                type=op.type,
                description=op.description,
                inputs=[previous_output] if previous_output else list(parsed.data_sources_needed[:1]),
                outputs=[output],
                quota_cost=op.estimated_quota_cost,
            )
            if steps:
                data_flow.append(DataFlow(from_step=steps[-1].id, to_step=step.id, data_type=previous_output))
            steps.append(step)
            previous_output = output

        high_complexity = sum(1 for r in parsed.technical_requirements if r.complexity == "high")
        return Workflow(
            id=f"workflow-{len(steps)}-{parsed.total_quota_cost}",
            steps=steps,
            data_flow=data_flow,
            estimated_complexity=len(steps) + 2 * high_complexity,
        )

    def select_techniques(self, parsed: ParsedIntent) -> list[ConsultingTechnique]:
        """MECE always; value drivers for cost goals; impact/effort for larger scopes."""
        selected = [technique("MECE", 0.8)]
        objective = parsed.business_objective.lower()
        if "cost" in objective or "efficien" in objective:
            selected.append(technique("ValueDriverTree", 0.9))
        if len(parsed.operations_required) > 3:
            selected.append(technique("ImpactEffort", 0.7))
        return selected

    async def analyze(self, parsed: ParsedIntent,
                      techniques: Optional[list[ConsultingTechnique]] = None,
                      quota_estimate: Optional[dict] = None) -> ConsultingAnalysis:
        techniques = techniques or self.select_techniques(parsed)
        chosen = sorted(techniques, key=lambda t: t.relevance_score, reverse=True)[:MAX_TECHNIQUES]

        naive = (quota_estimate or {}).get("naive", parsed.total_quota_cost)
        optimized = (quota_estimate or {}).get("optimized", round(naive * 0.7))
        savings = round((naive - optimized) / naive * 100, 1) if naive else 0.0

        findings = [
            f"{len(parsed.operations_required)} operations identified across "
            f"{len(parsed.data_sources_needed)} data source(s)",
        ]
        for t in chosen:
            findings.append(self._finding_for(t.name, parsed, savings))
        for risk in parsed.potential_risks:
            findings.append(f"Risk ({risk.severity}): {risk.description}")

        zero_based = None
        if (quota_estimate or {}).get("zero_based") is not None:
            zero_based = {
                "estimated_quota": quota_estimate["zero_based"],
                "approach": "Rebuild the flow around the single highest-value operation",
            }

        return ConsultingAnalysis(
            techniques_used=chosen,
            key_findings=findings,
            total_quota_savings=savings,
            implementation_complexity=self._complexity(parsed),
            zero_based_solution=zero_based,
        )

    async def analyze_workflow(self, workflow: Workflow) -> ConsultingAnalysis:
        """Analysis of an existing workflow, without an intent."""
        total = workflow.total_quota_cost
        vibe_steps = [s for s in workflow.steps if s.type == "vibe"]
        retrieval_steps = [s for s in workflow.steps if s.type == "data_retrieval"]

        findings = [f"Workflow has {len(workflow.steps)} steps costing {total} quota units"]
        if vibe_steps:
            findings.append(f"{len(vibe_steps)} vibe step(s) could be converted to specs")
        if len(retrieval_steps) > 1:
            findings.append(f"{len(retrieval_steps)} data retrieval steps are candidates for caching")

        techniques = [technique("MECE", 0.8)]
        if total > 10:
            techniques.append(technique("ValueDriverTree", 0.9))
        if len(workflow.steps) > 3:
            techniques.append(technique("ImpactEffort", 0.7))

        savings = 25.0 if vibe_steps else 15.0 if retrieval_steps else 10.0
        return ConsultingAnalysis(
            techniques_used=techniques,
            key_findings=findings,
            total_quota_savings=savings,
            implementation_complexity="high" if workflow.estimated_complexity > 8 else
                                      "medium" if workflow.estimated_complexity > 3 else "low",
        )

    def _finding_for(self, name: str, parsed: ParsedIntent, savings: float) -> str:
        if name == "MECE":
            kinds = sorted({op.type for op in parsed.operations_required})
            return f"Operations split into {len(kinds)} non-overlapping groups: {', '.join(kinds)}"
        if name == "ValueDriverTree":
            return f"Quota cost is the primary value driver; optimization saves about {savings}%"
        if name == "ImpactEffort":
            cheap = [op for op in parsed.operations_required if op.estimated_quota_cost <= 2]
            return f"{len(cheap)} low-effort operations are quick wins"
        return f"{name} applied"

    def _complexity(self, parsed: ParsedIntent) -> str:
        levels = [r.complexity for r in parsed.technical_requirements]
        if "high" in levels or len(parsed.operations_required) > 6:
            return "high"
        if "medium" in levels or len(parsed.operations_required) > 3:
            return "medium"
        return "low"

# pm_pipeline/models.py
"""Data types passed between pipeline stages."""

import math
from dataclasses import asdict, dataclass, field
from typing import Optional

OPERATION_TYPES = ("vibe", "spec", "data_retrieval", "processing", "analysis")
REQUIREMENT_TYPES = ("data_retrieval", "processing", "analysis", "output")
COMPLEXITY_LEVELS = ("low", "medium", "high")
QUOTA_IMPACTS = ("minimal", "moderate", "significant")
OPTIMIZATION_TYPES = ("batching", "caching", "decomposition", "vibe_to_spec")
TECHNIQUE_NAMES = (
    "MECE", "Pyramid", "ValueDriverTree", "ZeroBased",
    "ImpactEffort", "ValueProp", "OptionFraming",
)

VIBE_COST_DOLLARS = 0.01
SPEC_COST_DOLLARS = 0.05


@dataclass
class Operation:
    """A unit of work implied by the intent."""

    id: str
    type: str
    description: str
    estimated_quota_cost: int

    @classmethod
    def default(cls) -> "Operation":
        """The single operation used when intent parsing falls back."""
        return cls(
            id="default-op-1",
            type="analysis",
            description="Analyze and process user requirements",
            estimated_quota_cost=5,
        )


@dataclass
class TechnicalRequirement:
    type: str
    description: str
    complexity: str = "medium"
    quota_impact: str = "moderate"


@dataclass
class Risk:
    type: str
    severity: str
    description: str


@dataclass
class ParsedIntent:
    """Structured interpretation of free-text product intent."""

    business_objective: str
    technical_requirements: list[TechnicalRequirement] = field(default_factory=list)
    data_sources_needed: list[str] = field(default_factory=list)
    operations_required: list[Operation] = field(default_factory=list)
    potential_risks: list[Risk] = field(default_factory=list)

    @property
    def total_quota_cost(self) -> int:
        return sum(op.estimated_quota_cost for op in self.operations_required)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ParsedIntent":
        return cls(
            business_objective=data.get("business_objective", ""),
            technical_requirements=[
                TechnicalRequirement(**r) for r in data.get("technical_requirements", [])
            ],
            data_sources_needed=list(data.get("data_sources_needed", [])),
            operations_required=[Operation(**o) for o in data.get("operations_required", [])],
            potential_risks=[Risk(**r) for r in data.get("potential_risks", [])],
        )

    @classmethod
    def fallback(cls, raw_intent: str) -> "ParsedIntent":
        """Minimal interpretation used after intent parsing fails."""
        return cls(
            business_objective=raw_intent.strip()[:200] or "Process user request",
            technical_requirements=[
                TechnicalRequirement(
                    type="processing",
                    description="Basic processing of user request",
                    complexity="low",
                    quota_impact="minimal",
                )
            ],
            data_sources_needed=[],
            operations_required=[Operation.default()],
            potential_risks=[
                Risk(
                    type="incomplete_analysis",
                    severity="medium",
                    description="Intent interpretation used a simplified default",
                )
            ],
        )


@dataclass
class WorkflowStep:
    id: str
    type: str
    description: str
    inputs: list[str] = field(default_factory=list)
    outputs: list[str] = field(default_factory=list)
    quota_cost: int = 1


@dataclass
class DataFlow:
    from_step: str
    to_step: str
    data_type: str


@dataclass
class Workflow:
    """Ordered steps derived from a parsed intent."""

    id: str
    steps: list[WorkflowStep] = field(default_factory=list)
    data_flow: list[DataFlow] = field(default_factory=list)
    estimated_complexity: int = 0

    @property
    def total_quota_cost(self) -> int:
        return sum(step.quota_cost for step in self.steps)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def fallback(cls) -> "Workflow":
        """Single default step used when workflow construction fails."""
        op = Operation.default()
        return cls(
            id="workflow-fallback",
            steps=[
                WorkflowStep(
                    id="step-1",
                    type=op.type,
                    description=op.description,
                    outputs=[f"{op.type}_result_1"],
                    quota_cost=op.estimated_quota_cost,
                )
            ],
            estimated_complexity=1,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Workflow":
        return cls(
            id=data.get("id", "workflow"),
            steps=[WorkflowStep(**s) for s in data.get("steps", [])],
            data_flow=[DataFlow(**d) for d in data.get("data_flow", [])],
            estimated_complexity=data.get("estimated_complexity", 0),
        )


@dataclass
class Savings:
    vibes: int = 0
    specs: int = 0
    percentage: float = 0.0


@dataclass
class Optimization:
    type: str
    description: str
    steps_affected: list[str] = field(default_factory=list)
    estimated_savings: Savings = field(default_factory=Savings)


@dataclass
class EfficiencyGains:
    vibe_reduction: float = 0.0
    spec_reduction: float = 0.0
    cost_savings: float = 0.0
    total_savings_percentage: float = 0.0


@dataclass
class OptimizedWorkflow(Workflow):
    """Workflow after optimization strategies were applied."""

    optimizations: list[Optimization] = field(default_factory=list)
    original_workflow: Optional[Workflow] = None
    efficiency_gains: EfficiencyGains = field(default_factory=EfficiencyGains)

    @classmethod
    def from_dict(cls, data: dict) -> "OptimizedWorkflow":
        base = Workflow.from_dict(data)
        original = data.get("original_workflow")
        return cls(
            id=base.id,
            steps=base.steps,
            data_flow=base.data_flow,
            estimated_complexity=base.estimated_complexity,
            optimizations=[
                Optimization(
                    type=o["type"],
                    description=o.get("description", ""),
                    steps_affected=list(o.get("steps_affected", [])),
                    estimated_savings=Savings(**o.get("estimated_savings", {})),
                )
                for o in data.get("optimizations", [])
            ],
            original_workflow=Workflow.from_dict(original) if original else None,
            efficiency_gains=EfficiencyGains(**data.get("efficiency_gains", {})),
        )

    @classmethod
    def fallback(cls, workflow: Workflow) -> "OptimizedWorkflow":
        """Unmodified steps plus one conservative caching optimization."""
        return cls(
            id=f"{workflow.id}-optimized",
            steps=list(workflow.steps),
            data_flow=list(workflow.data_flow),
            estimated_complexity=workflow.estimated_complexity,
            optimizations=[
                Optimization(
                    type="caching",
                    description="Basic caching optimization applied",
                    steps_affected=[s.id for s in workflow.steps],
                    estimated_savings=Savings(vibes=0, specs=0, percentage=5.0),
                )
            ],
            original_workflow=workflow,
            efficiency_gains=EfficiencyGains(total_savings_percentage=5.0),
        )


@dataclass
class QuotaForecast:
    vibes_consumed: int
    specs_consumed: int
    estimated_cost: float
    confidence_level: str = "medium"
    scenario: str = "optimized"
    breakdown: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def fallback(cls, step_count: int) -> "QuotaForecast":
        """Conservative estimate from workflow size alone."""
        step_count = max(step_count, 1)
        return cls(
            vibes_consumed=step_count * 2,
            specs_consumed=math.ceil(step_count / 2),
            estimated_cost=round(step_count * 0.05, 4),
            confidence_level="low",
            scenario="optimized",
        )


@dataclass
class OptimizationScenario:
    name: str
    forecast: QuotaForecast
    savings_percentage: float = 0.0
    implementation_effort: str = "medium"
    risk_level: str = "medium"


@dataclass
class ROIAnalysis:
    scenarios: list[OptimizationScenario] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    best_option: str = ""
    risk_assessment: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    def scenario(self, name: str) -> Optional[OptimizationScenario]:
        for candidate in self.scenarios:
            if candidate.name.lower() == name.lower():
                return candidate
        return None

    @classmethod
    def fallback(cls, forecast: QuotaForecast) -> "ROIAnalysis":
        """Two-scenario table derived from a single forecast."""
        balanced = QuotaForecast(
            vibes_consumed=forecast.vibes_consumed,
            specs_consumed=forecast.specs_consumed,
            estimated_cost=round(forecast.estimated_cost * 0.8, 4),
            confidence_level="low",
            scenario="optimized",
        )
        return cls(
            scenarios=[
                OptimizationScenario(
                    name="Conservative",
                    forecast=forecast,
                    savings_percentage=0.0,
                    implementation_effort="low",
                    risk_level="low",
                ),
                OptimizationScenario(
                    name="Balanced",
                    forecast=balanced,
                    savings_percentage=20.0,
                    implementation_effort="medium",
                    risk_level="medium",
                ),
            ],
            recommendations=["Use conservative estimates based on workflow complexity"],
            best_option="Balanced",
            risk_assessment="Limited data available; estimates are conservative",
        )


@dataclass
class ConsultingTechnique:
    name: str
    relevance_score: float
    applicable_scenarios: list[str] = field(default_factory=list)


@dataclass
class ConsultingAnalysis:
    techniques_used: list[ConsultingTechnique] = field(default_factory=list)
    key_findings: list[str] = field(default_factory=list)
    total_quota_savings: float = 0.0
    implementation_complexity: str = "medium"
    zero_based_solution: Optional[dict] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ConsultingAnalysis":
        return cls(
            techniques_used=[ConsultingTechnique(**t) for t in data.get("techniques_used", [])],
            key_findings=list(data.get("key_findings", [])),
            total_quota_savings=data.get("total_quota_savings", 0.0),
            implementation_complexity=data.get("implementation_complexity", "medium"),
            zero_based_solution=data.get("zero_based_solution"),
        )

    @classmethod
    def fallback(cls) -> "ConsultingAnalysis":
        return cls(
            techniques_used=[
                ConsultingTechnique(
                    name="MECE",
                    relevance_score=0.5,
                    applicable_scenarios=["basic analysis"],
                )
            ],
            key_findings=["Basic analysis completed with limited techniques"],
            total_quota_savings=10.0,
            implementation_complexity="medium",
        )


@dataclass
class Recommendation:
    main_recommendation: str
    supporting_reasons: list[str] = field(default_factory=list)
    evidence: list[dict] = field(default_factory=list)
    expected_outcome: str = ""


@dataclass
class ConsultingSummary:
    executive_summary: str
    key_findings: list[str] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    techniques_applied: list[str] = field(default_factory=list)
    supporting_evidence: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def fallback(cls, analysis: ConsultingAnalysis) -> "ConsultingSummary":
        return cls(
            executive_summary="Analysis completed with basic techniques; detailed insights unavailable.",
            key_findings=list(analysis.key_findings),
            recommendations=[
                Recommendation(
                    main_recommendation="Proceed with a conservative, incremental implementation",
                    supporting_reasons=["Detailed analysis was not available"],
                    expected_outcome="Reduced delivery risk",
                )
            ],
            techniques_applied=[t.name for t in analysis.techniques_used],
        )


@dataclass(frozen=True)
class PipelineResult:
    """Envelope returned by every ``process_intent`` call."""

    success: bool
    metadata: dict
    payload: Optional[dict] = None
    error: Optional[dict] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "payload": self.payload,
            "error": self.error,
            "metadata": self.metadata,
        }

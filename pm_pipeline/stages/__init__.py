"""Content stages the orchestrator arranges; each is a black box to it."""

from pm_pipeline.stages.business_analyzer import BusinessAnalyzer
from pm_pipeline.stages.competitive_analyzer import CompetitiveAnalyzer
from pm_pipeline.stages.document_generator import DocumentGenerator
from pm_pipeline.stages.intent_interpreter import IntentInterpreter
from pm_pipeline.stages.quick_validator import QuickValidator
from pm_pipeline.stages.quota_forecaster import QuotaForecaster
from pm_pipeline.stages.spec_generator import SpecGenerator
from pm_pipeline.stages.steering_writer import SteeringWriter
from pm_pipeline.stages.summary_generator import SummaryGenerator
from pm_pipeline.stages.workflow_optimizer import WorkflowOptimizer

__all__ = [
    "BusinessAnalyzer",
    "CompetitiveAnalyzer",
    "DocumentGenerator",
    "IntentInterpreter",
    "QuickValidator",
    "QuotaForecaster",
    "SpecGenerator",
    "SteeringWriter",
    "SummaryGenerator",
    "WorkflowOptimizer",
]

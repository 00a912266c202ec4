# pm_pipeline/orchestrator/orchestrator.py
"""Pipeline Orchestrator - turns a product intent into an enhanced spec."""

import copy
import logging
import time
from functools import partial
from typing import Any, Awaitable, Callable, Optional

from pm_pipeline.config import PipelineConfig
from pm_pipeline.consistency import check_document_consistency
from pm_pipeline.models import (
    ConsultingAnalysis,
    ConsultingSummary,
    OptimizedWorkflow,
    ParsedIntent,
    PipelineResult,
    QuotaForecast,
    Risk,
    ROIAnalysis,
    Workflow,
)
from pm_pipeline.orchestrator.errors import (
    ProcessingError,
    ProcessingFailureError,
    ValidationError,
)
from pm_pipeline.orchestrator.logging import PipelineLogger
from pm_pipeline.orchestrator.recovery import NO_RETRY, RetryPolicy, run_stage, to_processing_error
from pm_pipeline.pipeline import cache_keys
from pm_pipeline.pipeline.cache import TTLCache
from pm_pipeline.pipeline.parallel import ParallelExecutor, with_timeout
from pm_pipeline.pipeline.performance import PerformanceMonitor
from pm_pipeline.pipeline.session import PipelineSession, new_session_id
from pm_pipeline.pipeline.states import (
    DOCUMENT_QUOTA_WEIGHT,
    STAGE_QUOTA_WEIGHTS,
    PipelineState,
)
from pm_pipeline.stages import (
    BusinessAnalyzer,
    CompetitiveAnalyzer,
    DocumentGenerator,
    IntentInterpreter,
    QuickValidator,
    QuotaForecaster,
    SpecGenerator,
    SteeringWriter,
    SummaryGenerator,
    WorkflowOptimizer,
)
from pm_pipeline.stages.checks import assess_risks, validate_intent
from pm_pipeline.validation import (
    validate_consulting_analysis,
    validate_non_empty_string,
    validate_optional_params,
    validate_parsed_intent,
    validate_raw_intent,
    validate_roi_analysis,
    validate_workflow,
)

logger = logging.getLogger(__name__)

# Stage tag reported for a failure raised while the session is in a state
STAGE_TAGS = {
    PipelineState.VALIDATING: "intent",
    PipelineState.CACHE_CHECK: "intent",
    PipelineState.INTENT: "intent",
    PipelineState.PARALLEL_VALIDATION: "intent",
    PipelineState.ANALYSIS: "analysis",
    PipelineState.OPTIMIZATION: "optimization",
    PipelineState.FORECASTING: "forecasting",
    PipelineState.SUMMARY: "summary",
    PipelineState.SPEC: "spec",
    PipelineState.DOCUMENTS: "documents",
    PipelineState.STEERING_FILES: "steering_files",
    PipelineState.ASSEMBLING: "assembling",
}


class Orchestrator:
    """Runs the staged pipeline and the individual stage entry points.

    The cache, performance monitor and executor are owned by the instance,
    so separate orchestrators never share counters or cached results.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        cache: Optional[TTLCache] = None,
        monitor: Optional[PerformanceMonitor] = None,
        executor: Optional[ParallelExecutor] = None,
        interpreter: Optional[IntentInterpreter] = None,
        analyzer: Optional[BusinessAnalyzer] = None,
        optimizer: Optional[WorkflowOptimizer] = None,
        forecaster: Optional[QuotaForecaster] = None,
        summarizer: Optional[SummaryGenerator] = None,
        spec_generator: Optional[SpecGenerator] = None,
        document_generator: Optional[DocumentGenerator] = None,
        steering_writer: Optional[SteeringWriter] = None,
        quick_validator: Optional[QuickValidator] = None,
        competitive_analyzer: Optional[CompetitiveAnalyzer] = None,
    ):
        self.config = config or PipelineConfig()
        self.cache = cache or TTLCache(
            max_size=self.config.cache_max_size,
            default_ttl_ms=self.config.cache_default_ttl_ms,
            cleanup_interval_ms=self.config.cache_cleanup_interval_ms,
        )
        self.monitor = monitor or PerformanceMonitor()
        self.executor = executor or ParallelExecutor(self.config.max_concurrency)
        self.logger = PipelineLogger()

        self.interpreter = interpreter or IntentInterpreter()
        self.analyzer = analyzer or BusinessAnalyzer()
        self.optimizer = optimizer or WorkflowOptimizer()
        self.forecaster = forecaster or QuotaForecaster()
        self.summarizer = summarizer or SummaryGenerator()
        self.spec_generator = spec_generator or SpecGenerator()
        self.document_generator = document_generator or DocumentGenerator()
        self.steering_writer = steering_writer or SteeringWriter(self.config.steering_dir)
        self.quick_validator = quick_validator or QuickValidator()
        self.competitive_analyzer = competitive_analyzer or CompetitiveAnalyzer()

        self.intent_retry = RetryPolicy(
            max_retries=self.config.intent_retries,
            delay_ms=self.config.retry_delay_ms,
        )

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    async def process_intent(self, raw_intent: Any, params: Optional[dict] = None) -> PipelineResult:
        """
        Run the full pipeline for one intent.

        Never raises: fatal failures come back as ``success=False`` with a
        structured error.
        """
        session = PipelineSession()
        try:
            return await self._run(session, raw_intent, params)
        except ProcessingError as e:
            return self._failure(session, e)
        except ValidationError as e:
            return self._failure(session, to_processing_error("intent", e))
        except Exception as e:
            logger.exception(f"Unexpected failure in session {session.session_id}")
            return self._failure(session, to_processing_error(STAGE_TAGS.get(session.state, "unknown"), e))

    def reject_input(self, error: ValidationError) -> PipelineResult:
        """Failed envelope for input rejected before the pipeline starts."""
        return self._failure(PipelineSession(), to_processing_error("intent", error))

    async def _run(self, session: PipelineSession, raw_intent: Any,
                   params: Optional[dict]) -> PipelineResult:
        intent = validate_raw_intent(raw_intent)
        params = validate_optional_params(params)
        self.logger.pipeline_started(session.session_id, len(intent), sorted(params))

        session.advance(PipelineState.CACHE_CHECK)
        pipeline_key = cache_keys.intent_key(intent, params)
        cached = self.cache.get(pipeline_key)
        if cached is not None:
            return self._from_cache(session, pipeline_key, cached)

        # Stage 1: intent interpretation
        session.advance(PipelineState.INTENT)
        parsed = await self._stage(
            session, "intent",
            lambda: self.interpreter.parse_intent(intent, params),
            fallback=lambda: ParsedIntent.fallback(intent),
            expected=ParsedIntent,
            check=lambda value: validate_parsed_intent(value.to_dict()),
            retry=self.intent_retry,
        )

        session.advance(PipelineState.PARALLEL_VALIDATION)
        await self._parallel_validation(session, parsed)

        # Stage 2: business analysis
        session.advance(PipelineState.ANALYSIS)
        techniques, quota_estimate = await self._parallel(session, [
            partial(self._select_techniques, parsed),
            partial(self._estimate_quota, parsed),
        ])
        analysis = await self._stage(
            session, "analysis",
            lambda: self.analyzer.analyze(parsed, techniques, quota_estimate),
            fallback=ConsultingAnalysis.fallback,
            expected=ConsultingAnalysis,
            cache_key=cache_keys.analysis_key(parsed, techniques),
            ttl_ms=self.config.analysis_cache_ttl_ms,
        )

        # Stage 3: workflow optimization
        session.advance(PipelineState.OPTIMIZATION)
        workflow = await self._assist(
            session, "optimization",
            partial(self._build_workflow, parsed),
            fallback=Workflow.fallback,
        )
        optimized = await self._stage(
            session, "optimization",
            lambda: self.optimizer.optimize(workflow, analysis, params),
            fallback=lambda: OptimizedWorkflow.fallback(workflow),
            expected=OptimizedWorkflow,
            check=lambda value: validate_workflow(value.to_dict()),
            cache_key=cache_keys.optimization_key(workflow, analysis),
        )
        session.optimizations_applied = [o.type for o in optimized.optimizations]

        # Stage 4: quota forecasting and ROI
        session.advance(PipelineState.FORECASTING)
        roi = await self._stage(
            session, "forecasting",
            lambda: self.forecaster.generate_roi_analysis(workflow, optimized),
            fallback=lambda: ROIAnalysis.fallback(QuotaForecast.fallback(len(workflow.steps))),
            expected=ROIAnalysis,
            check=lambda value: validate_roi_analysis(value.to_dict()),
            cache_key=cache_keys.roi_key(workflow, optimized),
        )

        # Stage 5: consulting summary
        session.advance(PipelineState.SUMMARY)
        summary = await self._stage(
            session, "summary",
            lambda: self.summarizer.generate(analysis, analysis.techniques_used, roi),
            fallback=lambda: ConsultingSummary.fallback(analysis),
            expected=ConsultingSummary,
            cache_key=cache_keys.summary_key(analysis, analysis.techniques_used, roi),
        )

        # Stage 6: enhanced spec
        session.advance(PipelineState.SPEC)
        spec = await self._stage(
            session, "spec",
            lambda: self.spec_generator.generate(optimized, intent, summary, roi),
            fallback=lambda: self.spec_generator.minimal_spec(intent),
            expected=dict,
            cache_key=cache_keys.generate_key(
                cache_keys.SPEC, {"intent": intent, "optimized": optimized}, {"summary": summary, "roi": roi}
            ),
        )
        efficiency = await self._assist(
            session, "spec",
            partial(self._efficiency_summary, roi),
            fallback=lambda: self._flat_efficiency(len(workflow.steps)),
        )

        # Stages 7 and 8 are best-effort
        documents = steering = None
        document_options = params.get("generate_pm_documents")
        if document_options and self._requested_documents(document_options):
            session.advance(PipelineState.DOCUMENTS)
            documents = await self._generate_documents(session, intent, parsed, params, roi)

            steering_options = document_options.get("steering_options") or {}
            if documents and steering_options.get("create_steering_files"):
                session.advance(PipelineState.STEERING_FILES)
                steering = await self._write_steering_files(session, documents, steering_options, spec)

        session.advance(PipelineState.ASSEMBLING)
        payload = {
            "enhanced_spec": spec,
            "consulting_summary": summary.to_dict(),
            "roi_analysis": roi.to_dict(),
            "efficiency_summary": efficiency,
            "pm_documents": documents,
            "steering_files": steering,
        }
        duration = session.elapsed_ms()
        metadata = self._metadata(session, duration)

        # Degraded results are not cached so a transient failure is retried next call
        if not session.degraded_stages:
            self.cache.set(
                pipeline_key,
                {"payload": copy.deepcopy(payload), "metadata": copy.deepcopy(metadata)},
                self.config.pipeline_cache_ttl_ms,
            )

        session.advance(PipelineState.SUCCESS)
        self.monitor.record_execution(duration, cache_hit=False,
                                      parallel_ops=session.parallel_operations_count)
        self.logger.pipeline_completed(session.session_id, True, duration,
                                       session.quota_used, session.degraded_stages)
        return PipelineResult(success=True, payload=payload, metadata=metadata)

    def _from_cache(self, session: PipelineSession, key: str, cached: dict) -> PipelineResult:
        session.advance(PipelineState.SUCCESS)
        self.logger.cache_hit(session.session_id, key)

        duration = session.elapsed_ms()
        metadata = copy.deepcopy(cached["metadata"])
        metadata.update(
            session_id=session.session_id,
            execution_time=round(duration, 2),
            cache_hit=True,
        )
        self.monitor.record_execution(duration, cache_hit=True)
        self.logger.pipeline_completed(session.session_id, True, duration,
                                       metadata["quota_used"], metadata["degraded_stages"])
        return PipelineResult(success=True, payload=copy.deepcopy(cached["payload"]), metadata=metadata)

    def _failure(self, session: PipelineSession, error: ProcessingError) -> PipelineResult:
        session.state = PipelineState.FAILED
        duration = session.elapsed_ms()

        self.logger.error(session.session_id, error.stage, error.type, error.message)
        self.monitor.record_error()
        self.monitor.record_execution(duration, cache_hit=False,
                                      parallel_ops=session.parallel_operations_count)
        self.logger.pipeline_completed(session.session_id, False, duration,
                                       session.quota_used, session.degraded_stages)
        return PipelineResult(success=False, error=error.to_dict(),
                              metadata=self._metadata(session, duration))

    def _metadata(self, session: PipelineSession, duration_ms: float) -> dict:
        return {
            "execution_time": round(duration_ms, 2),
            "session_id": session.session_id,
            "quota_used": session.quota_used,
            "optimizations_applied": list(session.optimizations_applied),
            "degraded_stages": list(session.degraded_stages),
            "parallel_operations": session.parallel_operations_count,
            "cache_hit": False,
        }

    async def _stage(
        self,
        session: PipelineSession,
        stage: str,
        operation: Callable[[], Awaitable[Any]],
        fallback: Optional[Callable[[], Any]] = None,
        expected: Optional[type] = None,
        check: Optional[Callable[[Any], None]] = None,
        cache_key: Optional[str] = None,
        ttl_ms: Optional[int] = None,
        retry: RetryPolicy = NO_RETRY,
    ) -> Any:
        """Run one main stage under the recovery policy and charge its quota."""
        weight = STAGE_QUOTA_WEIGHTS[session.state]
        self.logger.stage_started(session.session_id, stage)
        started = time.perf_counter()

        if cache_key is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self.logger.cache_hit(session.session_id, cache_key)
                session.charge(weight)
                self.logger.stage_completed(
                    session.session_id, stage, (time.perf_counter() - started) * 1000,
                    cached=True,
                )
                return copy.deepcopy(cached)

        async def checked():
            value = await operation()
            if expected is not None and not isinstance(value, expected):
                raise ProcessingFailureError(
                    f"Malformed {stage} output: {type(value).__name__}", stage=stage
                )
            if check is not None:
                try:
                    check(value)
                except ValidationError as e:
                    raise ProcessingFailureError(f"Malformed {stage} output: {e}", stage=stage) from e
            return value

        outcome = await run_stage(
            stage, checked, fallback,
            retry_policy=retry,
            session_id=session.session_id,
            logger=self.logger,
            timeout=self.config.stage_timeout_seconds,
        )

        if outcome.degraded:
            session.mark_degraded(stage)
        elif cache_key is not None:
            self.cache.set(cache_key, copy.deepcopy(outcome.value), ttl_ms)

        session.charge(weight)
        self.logger.stage_completed(
            session.session_id, stage, (time.perf_counter() - started) * 1000,
            degraded=outcome.degraded,
        )
        return outcome.value

    async def _assist(self, session: PipelineSession, stage: str,
                      operation: Callable[[], Awaitable[Any]],
                      fallback: Callable[[], Any]) -> Any:
        """Recovery-wrapped helper step of ``stage``; charges no quota."""
        outcome = await run_stage(
            stage, operation, fallback,
            session_id=session.session_id,
            logger=self.logger,
            timeout=self.config.stage_timeout_seconds,
        )
        if outcome.degraded:
            session.mark_degraded(stage)
        return outcome.value

    async def _parallel(self, session: PipelineSession,
                        operations: list[Callable[[], Awaitable[Any]]]) -> list[Any]:
        """Run sub-tasks through the executor; failed slots come back as ``None``."""
        results = await self.executor.execute_parallel(operations)
        session.add_parallel(len(operations))

        values = []
        for index, result in enumerate(results):
            if isinstance(result, BaseException):
                self.logger.warning(
                    session.session_id, "Parallel sub-task failed",
                    stage=STAGE_TAGS[session.state], index=index, error=str(result),
                )
                values.append(None)
            else:
                values.append(result)
        return values

    async def _parallel_validation(self, session: PipelineSession, parsed: ParsedIntent) -> None:
        validation, risks = await self._parallel(session, [
            partial(validate_intent, parsed),
            partial(assess_risks, parsed),
        ])

        if validation and not validation["valid"]:
            self.logger.warning(session.session_id, "Intent validation issues",
                                issues=validation["issues"])

        known = {(r.type, r.description) for r in parsed.potential_risks}
        for risk in risks or []:
            if (risk["type"], risk["description"]) not in known:
                parsed.potential_risks.append(Risk(**risk))

    async def _select_techniques(self, parsed: ParsedIntent):
        return self.analyzer.select_techniques(parsed)

    async def _estimate_quota(self, parsed: ParsedIntent) -> dict:
        return self.forecaster.estimate_quota(parsed)

    async def _build_workflow(self, parsed: ParsedIntent) -> Workflow:
        return self.analyzer.build_workflow(parsed)

    async def _efficiency_summary(self, roi: ROIAnalysis) -> dict:
        naive = roi.scenario("Conservative")
        optimized = roi.scenario("Balanced") or naive
        if naive is None:
            naive = optimized = roi.scenarios[0]
        return self.forecaster.efficiency_summary(naive.forecast, optimized.forecast)

    @staticmethod
    def _flat_efficiency(step_count: int) -> dict:
        """No-savings comparison from workflow size alone."""
        forecast = QuotaForecast.fallback(step_count).to_dict()
        return {
            "naive_approach": forecast,
            "optimized_approach": dict(forecast),
            "savings": {
                "vibe_reduction": 0.0,
                "spec_reduction": 0.0,
                "cost_savings": 0.0,
                "total_savings_percentage": 0.0,
            },
        }

    # ------------------------------------------------------------------
    # Optional stages
    # ------------------------------------------------------------------

    @staticmethod
    def _requested_documents(options: dict) -> set[str]:
        """Requested document types plus the prerequisites they are built from."""
        wanted = {name for name in (
            "requirements", "design_options", "task_plan", "management_onepager", "prfaq",
        ) if options.get(name)}
        if wanted - {"requirements"}:
            wanted.update({"requirements", "design_options"})
        return wanted

    async def _generate_documents(self, session: PipelineSession, intent: str,
                                  parsed: ParsedIntent, params: dict,
                                  roi: ROIAnalysis) -> Optional[dict]:
        """Document chain. A failed document is logged and omitted with its dependents."""
        options = params["generate_pm_documents"]
        wanted = self._requested_documents(options)
        constraints = params.get("cost_constraints") or {}
        documents: dict = {}

        async def produce(name: str, operation: Callable[[], Awaitable[Any]]) -> None:
            try:
                documents[name] = await with_timeout(
                    operation, self.config.stage_timeout_seconds, name=f"{name} document"
                )()
            except Exception as e:
                self.logger.warning(session.session_id, f"Skipped {name} document",
                                    stage="documents", error=str(e))
                return
            session.charge(DOCUMENT_QUOTA_WEIGHT)

        context = {
            "business_goal": parsed.business_objective,
            "constraints": [r.description for r in parsed.potential_risks],
            "budget": constraints.get("max_cost_dollars"),
        }
        await produce("requirements", partial(self.document_generator.generate_requirements, intent, context))
        requirements = documents.get("requirements")

        if requirements is not None and "design_options" in wanted:
            await produce("design_options",
                          partial(self.document_generator.generate_design_options, requirements))
        design = documents.get("design_options")

        if design is not None:
            if "task_plan" in wanted:
                limits = {
                    "max_vibes": constraints.get("max_vibes"),
                    "max_specs": constraints.get("max_specs"),
                    "budget_usd": constraints.get("max_cost_dollars"),
                }
                await produce("task_plan", partial(self.document_generator.generate_task_plan, design, limits))
            if "management_onepager" in wanted:
                await produce("management_onepager", partial(
                    self.document_generator.generate_management_onepager,
                    requirements, design, documents.get("task_plan"), self._roi_inputs(roi),
                ))
            if "prfaq" in wanted:
                await produce("prfaq", partial(
                    self.document_generator.generate_prfaq,
                    requirements, design, options.get("target_date"),
                ))

        consistency = check_document_consistency(documents)
        for message in consistency["issues"] + consistency["warnings"]:
            self.logger.warning(session.session_id, message, stage="documents", advisory=True)

        return documents or None

    @staticmethod
    def _roi_inputs(roi: ROIAnalysis) -> dict:
        def cost(name: str) -> Optional[float]:
            scenario = roi.scenario(name)
            return scenario.forecast.estimated_cost if scenario else None

        return {
            "cost_naive": cost("Conservative"),
            "cost_balanced": cost("Balanced"),
            "cost_bold": cost("Bold"),
        }

    async def _write_steering_files(self, session: PipelineSession, documents: dict,
                                    options: dict, spec: dict) -> Optional[dict]:
        options = dict(options)
        options.setdefault("feature_name", spec.get("name") or "feature")
        try:
            return await self.steering_writer.write_documents(documents, options)
        except Exception as e:
            self.logger.warning(session.session_id, "Steering file creation failed",
                                stage="steering_files", error=str(e))
            return None

    # ------------------------------------------------------------------
    # Individual stage entry points
    # ------------------------------------------------------------------

    @staticmethod
    def _validated(stage: str, check: Callable[..., Any], *args) -> Any:
        try:
            return check(*args)
        except ValidationError as e:
            raise to_processing_error(stage, e) from e

    async def _direct(self, stage: str, key: str, operation: Callable[[], Awaitable[Any]],
                      fallback: Optional[Callable[[], Any]] = None,
                      ttl_ms: Optional[int] = None) -> dict:
        """Cached, recovery-wrapped single stage call.

        Raises:
            ProcessingError: the stage failed and has no fallback
        """
        cached = self.cache.get(key)
        if cached is not None:
            return copy.deepcopy(cached)

        session_id = new_session_id()
        self.logger.stage_started(session_id, stage)
        started = time.perf_counter()
        outcome = await run_stage(
            stage, operation, fallback,
            session_id=session_id,
            logger=self.logger,
            timeout=self.config.stage_timeout_seconds,
        )
        value = outcome.value.to_dict() if hasattr(outcome.value, "to_dict") else outcome.value
        if not outcome.degraded:
            self.cache.set(key, copy.deepcopy(value), ttl_ms)
        self.logger.stage_completed(session_id, stage, (time.perf_counter() - started) * 1000,
                                    degraded=outcome.degraded)
        return value

    async def analyze_workflow(self, workflow: dict) -> dict:
        """Consulting analysis plus an optimized version of an existing workflow."""
        self._validated("analysis", validate_workflow, workflow)
        parsed = Workflow.from_dict(workflow)

        async def operation():
            analysis = await self.analyzer.analyze_workflow(parsed)
            optimized = await self.optimizer.optimize(parsed, analysis)
            return {"analysis": analysis.to_dict(), "optimized_workflow": optimized.to_dict()}

        return await self._direct(
            "analysis",
            cache_keys.generate_key(cache_keys.WORKFLOW, parsed),
            operation,
            fallback=lambda: {
                "analysis": ConsultingAnalysis.fallback().to_dict(),
                "optimized_workflow": OptimizedWorkflow.fallback(parsed).to_dict(),
            },
            ttl_ms=self.config.analysis_cache_ttl_ms,
        )

    async def generate_roi_analysis(self, workflow: dict,
                                    optimized_workflow: Optional[dict] = None) -> dict:
        self._validated("forecasting", validate_workflow, workflow)
        parsed = Workflow.from_dict(workflow)
        optimized = None
        if optimized_workflow is not None:
            self._validated("forecasting", validate_workflow, optimized_workflow)
            optimized = OptimizedWorkflow.from_dict(optimized_workflow)

        return await self._direct(
            "forecasting",
            cache_keys.roi_key(parsed, optimized),
            lambda: self.forecaster.generate_roi_analysis(parsed, optimized),
            fallback=lambda: ROIAnalysis.fallback(QuotaForecast.fallback(len(parsed.steps))),
        )

    async def generate_consulting_summary(self, analysis: dict,
                                          techniques: Optional[list[str]] = None) -> dict:
        self._validated("summary", validate_consulting_analysis, analysis)
        parsed = ConsultingAnalysis.from_dict(analysis)
        selected = parsed.techniques_used
        if techniques:
            selected = [t for t in parsed.techniques_used if t.name in techniques] or selected

        return await self._direct(
            "summary",
            cache_keys.summary_key(parsed, selected),
            lambda: self.summarizer.generate(parsed, selected),
            fallback=lambda: ConsultingSummary.fallback(parsed),
        )

    async def validate_idea_quick(self, idea: str, context: Optional[dict] = None) -> dict:
        idea = self._validated("quick_validation", validate_non_empty_string, idea, "idea")
        return await self._direct(
            "quick_validation",
            cache_keys.generate_key(cache_keys.QUICK_VALIDATION, idea, context),
            lambda: self.quick_validator.validate_idea_quick(idea, context),
        )

    async def generate_requirements(self, intent: str, context: Optional[dict] = None) -> dict:
        intent = self._validated("requirements", validate_non_empty_string, intent, "intent")
        return await self._direct(
            "requirements",
            cache_keys.generate_key(cache_keys.REQUIREMENTS, intent, context),
            lambda: self.document_generator.generate_requirements(intent, context),
        )

    async def generate_design_options(self, requirements: Any) -> dict:
        self._require("design_options", requirements, "requirements")
        return await self._direct(
            "design_options",
            cache_keys.generate_key(cache_keys.DESIGN_OPTIONS, requirements),
            lambda: self.document_generator.generate_design_options(requirements),
        )

    async def generate_task_plan(self, design: Any, limits: Optional[dict] = None) -> dict:
        self._require("task_plan", design, "design")
        return await self._direct(
            "task_plan",
            cache_keys.generate_key(cache_keys.TASK_PLAN, design, limits),
            lambda: self.document_generator.generate_task_plan(design, limits),
        )

    async def generate_management_onepager(self, requirements: Any, design: Any,
                                           tasks: Any = None,
                                           roi_inputs: Optional[dict] = None) -> dict:
        self._require("management_onepager", requirements, "requirements")
        self._require("management_onepager", design, "design")
        return await self._direct(
            "management_onepager",
            cache_keys.generate_key(
                cache_keys.ONEPAGER,
                {"requirements": requirements, "design": design},
                {"tasks": tasks, "roi_inputs": roi_inputs},
            ),
            lambda: self.document_generator.generate_management_onepager(
                requirements, design, tasks, roi_inputs
            ),
        )

    async def generate_prfaq(self, requirements: Any, design: Any,
                             target_date: Optional[str] = None) -> dict:
        self._require("prfaq", requirements, "requirements")
        self._require("prfaq", design, "design")
        return await self._direct(
            "prfaq",
            cache_keys.generate_key(
                cache_keys.PRFAQ, {"requirements": requirements, "design": design}, target_date
            ),
            lambda: self.document_generator.generate_prfaq(requirements, design, target_date),
        )

    async def analyze_competitors(self, feature_idea: str, context: Optional[dict] = None) -> dict:
        feature_idea = self._validated("competitors", validate_non_empty_string,
                                       feature_idea, "feature_idea")
        return await self._direct(
            "competitors",
            cache_keys.generate_key(cache_keys.COMPETITORS, feature_idea, context),
            lambda: self.competitive_analyzer.analyze_competitors(feature_idea, context),
        )

    async def calculate_market_sizing(self, feature_idea: str,
                                      market_context: Optional[dict] = None) -> dict:
        feature_idea = self._validated("market_sizing", validate_non_empty_string,
                                       feature_idea, "feature_idea")
        return await self._direct(
            "market_sizing",
            cache_keys.generate_key(cache_keys.MARKET_SIZING, feature_idea, market_context),
            lambda: self.competitive_analyzer.calculate_market_sizing(feature_idea, market_context),
        )

    def _require(self, stage: str, value: Any, field_name: str) -> None:
        if value is None or value == "" or value == {}:
            raise to_processing_error(stage, ValidationError(f"{field_name} is required"))

    # ------------------------------------------------------------------
    # Operational controls
    # ------------------------------------------------------------------

    def get_performance_metrics(self) -> dict:
        return self.monitor.get_metrics().to_dict()

    def get_performance_summary(self) -> dict:
        cache_stats = self.cache.get_stats()
        summary = self.monitor.get_performance_summary(memory_bytes=cache_stats["memory_bytes"])
        summary["cache_stats"] = cache_stats
        return summary

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Pipeline cache cleared")

    def reset_metrics(self) -> None:
        self.monitor.reset()

    def destroy(self) -> None:
        """Stop the cache sweeper and drop cached entries. Safe to call twice."""
        self.cache.destroy()

    async def warmup_cache(self, intents: list[str]) -> dict:
        """Run ``process_intent`` for each intent, a few at a time."""
        operations = [partial(self.process_intent, intent) for intent in intents]
        results = await self.executor.execute_batched(operations, self.config.warmup_batch_size)

        warmed = 0
        for intent, result in zip(intents, results):
            if isinstance(result, BaseException):
                logger.warning(f"Cache warmup failed for {intent[:50]!r}: {result}")
            elif not result.success:
                logger.warning(f"Cache warmup failed for {intent[:50]!r}: {result.error['message']}")
            else:
                warmed += 1

        logger.info(f"Cache warmup complete: {warmed}/{len(intents)} intents")
        return {"warmed": warmed, "failed": len(intents) - warmed}

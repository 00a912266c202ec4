# pm_pipeline/stages/intent_interpreter.py
"""Keyword-driven interpretation of free-text product intent."""

import re
from typing import Optional

from pm_pipeline.models import Operation, ParsedIntent, Risk, TechnicalRequirement
from pm_pipeline.orchestrator.errors import IntentParsingError

# (trigger keywords, [(type, description, cost), ...])
OPERATION_RULES = [
    (("login", "signin", "authenticate"), [
        ("processing", "User authentication and login", 3),
    ]),
    (("register", "signup", "registration"), [
        ("processing", "User registration and account creation", 3),
    ]),
    (("crud",), [
        ("processing", "Create records", 2),
        ("data_retrieval", "Read records", 1),
        ("processing", "Update records", 2),
        ("processing", "Delete records", 1),
    ]),
    (("create", "add new"), [("processing", "Create new entries", 2)]),
    (("read", "view", "display", "list"), [("data_retrieval", "Retrieve and display data", 1)]),
    (("update", "edit", "modify"), [("processing", "Update existing entries", 2)]),
    (("delete", "remove"), [("processing", "Delete entries", 1)]),
    (("search",), [("data_retrieval", "Search across stored data", 2)]),
    (("filter", "sort"), [("processing", "Filter and sort results", 1)]),
    (("analytics", "report", "dashboard"), [("analysis", "Generate analytics and reports", 4)]),
    (("api", "endpoint", "restful"), [("processing", "Expose API endpoints", 2)]),
    (("upload", "file", "image"), [("processing", "Handle file uploads and storage", 3)]),
]
USER_PROFILE = ("processing", "User profile management", 2)
DEFAULT_OPERATION = ("processing", "Basic application functionality", 2)

DATA_SOURCE_RULES = [
    ("user_data", ("user", "account", "profile", "auth")),
    ("database", ("database", " db", "store", "persist", "crud")),
    ("file_storage", ("file", "upload", "document", "image")),
    ("external_api", ("api", "external", "third-party", "integration", "restful")),
    ("configuration", ("config", "setting", "preference")),
    ("analytics_data", ("analytics", "report", "dashboard", "metrics")),
]

RISK_RULES = [
    ("excessive_loops", "medium", ("for each", "every", "loop", "iterate"),
     "Per-item processing may multiply quota usage"),
    ("redundant_query", "medium", ("multiple times", "repeatedly", "again and again"),
     "Repeated data access without reuse"),
    ("missing_cache", "low", ("search", "lookup", "fetch"),
     "Frequent reads without a caching layer"),
]

HIGH_VOLUME_THRESHOLD = 10_000
WORD = re.compile(r"[a-zA-Z]{2,}")


class IntentInterpreter:
    """Turns raw text into a ParsedIntent."""

    async def parse_intent(self, raw_intent: str, params: Optional[dict] = None) -> ParsedIntent:
        text = raw_intent.lower()
        if not WORD.search(text):
            raise IntentParsingError("No recognizable words in intent")

        operations = self._extract_operations(text, params or {})
        data_sources = self._extract_data_sources(text)

        return ParsedIntent(
            business_objective=self._extract_objective(raw_intent),
            technical_requirements=self._derive_requirements(operations, data_sources, text),
            data_sources_needed=data_sources,
            operations_required=operations,
            potential_risks=self._identify_risks(text, operations),
        )

    def _extract_objective(self, raw_intent: str) -> str:
        first_sentence = re.split(r"(?<=[.!?])\s", raw_intent.strip(), maxsplit=1)[0]
        return first_sentence.rstrip(".!? ")[:200]

    def _extract_operations(self, text: str, params: dict) -> list[Operation]:
        specs = []
        for keywords, ops in OPERATION_RULES:
            if any(k in text for k in keywords):
                specs.extend(ops)

        if "user" in text and ("manage" in text or "profile" in text):
            specs.append(USER_PROFILE)

        if not specs:
            specs.append(DEFAULT_OPERATION)

        high_volume = (params.get("expected_user_volume") or 0) > HIGH_VOLUME_THRESHOLD
        operations = []
        for index, (op_type, description, cost) in enumerate(specs, start=1):
            if high_volume and op_type == "data_retrieval":
                cost += 1
            operations.append(Operation(
                id=f"op-{index}",
                type=op_type,
                description=description,
                estimated_quota_cost=cost,
            ))
        return operations

    def _extract_data_sources(self, text: str) -> list[str]:
        padded = f" {text}"
        sources = [name for name, keywords in DATA_SOURCE_RULES if any(k in padded for k in keywords)]
        return sources or ["application_data"]

    def _derive_requirements(self, operations: list[Operation], data_sources: list[str],
                             text: str) -> list[TechnicalRequirement]:
        requirements = []

        retrieval = [op for op in operations if op.type == "data_retrieval"]
        if retrieval or data_sources:
            retrieval_cost = sum(op.estimated_quota_cost for op in retrieval)
            complexity = "low"
            if len(data_sources) > 2 or any(k in text for k in ("search", "filter", "join", "aggregate")):
                complexity = "medium"
            if "external_api" in data_sources or "complex" in text or "advanced" in text:
                complexity = "high"
            impact = "minimal"
            if retrieval_cost > 2 or len(data_sources) > 1:
                impact = "moderate"
            if retrieval_cost > 5 or "external_api" in data_sources:
                impact = "significant"
            requirements.append(TechnicalRequirement(
                type="data_retrieval",
                description=f"Retrieve {', '.join(s.replace('_', ' ') for s in data_sources)}",
                complexity=complexity,
                quota_impact=impact,
            ))

        processing = [op for op in operations if op.type == "processing"]
        if processing:
            processing_cost = sum(op.estimated_quota_cost for op in processing)
            requirements.append(TechnicalRequirement(
                type="processing",
                description="Process and validate business operations",
                complexity="medium" if len(processing) > 2 or "crud" in text else "low",
                quota_impact="significant" if processing_cost > 8 else
                             "moderate" if processing_cost > 3 else "minimal",
            ))

        if any(op.type == "analysis" for op in operations) or "insight" in text or "analyze" in text:
            requirements.append(TechnicalRequirement(
                type="analysis",
                description="Analyze data and surface insights",
                complexity="high" if "real-time" in text or "machine learning" in text else "medium",
                quota_impact="moderate",
            ))

        if any(k in text for k in ("export", "download", "generate", "output")):
            requirements.append(TechnicalRequirement(
                type="output",
                description="Generate and deliver output artifacts",
                complexity="low",
                quota_impact="minimal",
            ))

        return requirements

    def _identify_risks(self, text: str, operations: list[Operation]) -> list[Risk]:
        risks = [
            Risk(type=risk_type, severity=severity, description=description)
            for risk_type, severity, keywords, description in RISK_RULES
            if any(k in text for k in keywords)
        ]
        if len(operations) > 5:
            risks.append(Risk(
                type="unnecessary_vibes",
                severity="medium",
                description=f"{len(operations)} separate operations may be consolidated",
            ))
        return risks

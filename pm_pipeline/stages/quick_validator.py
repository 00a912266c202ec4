# pm_pipeline/stages/quick_validator.py
"""PASS/FAIL idea check with three next-step options."""

import time
from typing import Optional

OBJECTIVE_INDICATORS = (
    "want to", "need to", "should", "help", "improve", "reduce", "increase",
    "automate", "optimize", "solve", "fix", "create", "build", "generate",
)
COMPLEXITY_INDICATORS = (
    "real-time", "continuous monitoring", "machine learning", "ai training",
    "big data", "stream processing", "complex analytics", "heavy computation",
    "complex algorithms",
)
QUOTA_RISKS = (
    "loop through", "for each", "iterate over", "process all", "scan everything",
    "check every", "analyze all", "generate multiple", "batch process",
)

FAILURE_OPTIONS = [
    {
        "id": "A",
        "title": "Simplify & Retry",
        "description": "Break down into smaller, clearer components",
        "tradeoffs": ["Reduced scope", "Faster validation", "Lower risk"],
        "next_step": "Rewrite idea focusing on one specific problem to solve",
    },
    {
        "id": "B",
        "title": "Add Context",
        "description": "Provide more details about objectives and constraints",
        "tradeoffs": ["More upfront work", "Better validation", "Clearer direction"],
        "next_step": "Specify business goal, success metrics, and resource constraints",
    },
    {
        "id": "C",
        "title": "Research First",
        "description": "Investigate similar solutions and best practices",
        "tradeoffs": ["Delayed start", "Better informed approach", "Reduced risk"],
        "next_step": "Study existing solutions and return with refined approach",
    },
]
SUCCESS_OPTIONS = [
    {
        "id": "A",
        "title": "Start Small",
        "description": "Build the smallest version that proves the value",
        "tradeoffs": ["Limited features", "Fast feedback", "Low cost"],
        "next_step": "Write requirements for the must-have scope only",
    },
    {
        "id": "B",
        "title": "Balanced Build",
        "description": "Core features plus the key quota optimizations",
        "tradeoffs": ["Moderate effort", "Good efficiency", "Predictable cost"],
        "next_step": "Generate design options and a task plan",
    },
    {
        "id": "C",
        "title": "Go Big",
        "description": "Full feature set with advanced capabilities",
        "tradeoffs": ["Higher cost", "Longer timeline", "Maximum impact"],
        "next_step": "Run a full ROI analysis before committing",
    },
]


class QuickValidator:
    """Fast unit-test style verdict on an idea."""

    async def validate_idea_quick(self, idea: str, context: Optional[dict] = None) -> dict:
        start = time.perf_counter()
        verdict, reasoning = self._verdict(idea or "", context or {})
        options = FAILURE_OPTIONS if verdict == "FAIL" else SUCCESS_OPTIONS
        return {
            "verdict": verdict,
            "reasoning": reasoning,
            "options": [dict(o, tradeoffs=list(o["tradeoffs"])) for o in options],
            "processing_time_ms": max(round((time.perf_counter() - start) * 1000, 3), 0.001),
        }

    def _verdict(self, idea: str, context: dict) -> tuple[str, str]:
        text = idea.lower()
        if len(idea.strip()) < 10:
            return "FAIL", "Idea too vague or empty - needs more specific description"

        if not any(k in text for k in OBJECTIVE_INDICATORS):
            return "FAIL", "Missing clear business objective - what problem does this solve?"

        team_size = context.get("team_size")
        if team_size is not None and team_size < 2 and any(
                w in text for w in ("integration", "system", "platform", "architecture")):
            return "FAIL", "Complex system work requires larger team - consider simpler approach"

        if context.get("urgency") == "high" and any(
                w in text for w in ("comprehensive", "complete", "full", "entire", "all")):
            return "FAIL", "High urgency conflicts with broad scope - narrow focus needed"

        complex_idea = any(k in text for k in COMPLEXITY_INDICATORS)
        quota_risk = any(k in text for k in QUOTA_RISKS)
        if complex_idea and quota_risk:
            return "FAIL", "High complexity + quota risks - needs simplification before proceeding"
        if quota_risk and context.get("budget_range", "small") == "small":
            return "FAIL", "Quota-intensive approach with limited budget - optimize first"

        return "PASS", "Clear objective with manageable complexity and quota usage"

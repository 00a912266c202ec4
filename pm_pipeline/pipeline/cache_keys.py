"""Deterministic cache keys for pipeline stages.

A key is ``<category>:<fingerprint>[:<fingerprint>]``. Fingerprints are
SHA-256 digests of canonical JSON: keys sorted, ``None`` values dropped, so
a missing optional field and an explicit ``None`` hash the same.
"""

import hashlib
import json
from typing import Any, Iterable, Optional

# Categories
INTENT = "intent"
ANALYSIS = "analysis"
OPTIMIZATION = "optimization"
ROI = "roi"
SUMMARY = "summary"
SPEC = "spec"
WORKFLOW = "workflow-analysis"
QUICK_VALIDATION = "quick-validation"
REQUIREMENTS = "pm-requirements"
DESIGN_OPTIONS = "pm-design-options"
TASK_PLAN = "pm-task-plan"
ONEPAGER = "pm-onepager"
PRFAQ = "pm-prfaq"
COMPETITORS = "competitor-analysis"
MARKET_SIZING = "market-sizing"

FINGERPRINT_LENGTH = 32


def normalize(value: Any) -> Any:
    """Strip ``None`` entries recursively and unwrap model objects."""
    if hasattr(value, "to_dict"):
        value = value.to_dict()

    if isinstance(value, dict):
        return {
            str(k): normalize(v)
            for k, v in value.items()
            if v is not None
        }
    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]
    return value


def _is_empty(value: Any) -> bool:
    return value is None or value == {} or value == []


def fingerprint(payload: Any) -> str:
    """Stable hash of a JSON-like payload."""
    canonical = json.dumps(
        normalize(payload),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def generate_key(category: str, payload: Any = None, qualifier: Any = None,
                 empty_qualifier: str = "none") -> str:
    """Build a cache key for ``category`` over ``payload``.

    Args:
        category: Operation category, always the key prefix
        payload: Primary input
        qualifier: Optional secondary input (params, technique list, ...)
        empty_qualifier: Marker used when the qualifier is absent or empty
    """
    if not category or ":" in category:
        raise ValueError(f"Invalid cache key category: {category!r}")

    key = f"{category}:{fingerprint(payload)}"
    normalized = normalize(qualifier)
    if _is_empty(normalized):
        return f"{key}:{empty_qualifier}"
    return f"{key}:{fingerprint(normalized)}"


def _technique_names(techniques: Optional[Iterable[Any]]) -> Optional[list[str]]:
    if not techniques:
        return None
    names = []
    for technique in techniques:
        if isinstance(technique, dict):
            names.append(str(technique.get("name", "")))
        elif hasattr(technique, "name"):
            names.append(str(technique.name))
        else:
            names.append(str(technique))
    return sorted(names)


def intent_key(intent: str, params: Optional[dict] = None) -> str:
    return generate_key(INTENT, intent, params, empty_qualifier="no-params")


def analysis_key(parsed_intent: Any, techniques: Optional[Iterable[Any]] = None) -> str:
    return generate_key(
        ANALYSIS, parsed_intent, _technique_names(techniques),
        empty_qualifier="all-techniques",
    )


def optimization_key(workflow: Any, analysis: Any = None) -> str:
    return generate_key(OPTIMIZATION, workflow, analysis, empty_qualifier="no-analysis")


def roi_key(workflow: Any, optimized_workflow: Any = None) -> str:
    return generate_key(ROI, workflow, optimized_workflow, empty_qualifier="no-optimization")


def summary_key(analysis: Any, techniques: Optional[Iterable[Any]] = None, roi: Any = None) -> str:
    return generate_key(
        SUMMARY, {"analysis": analysis, "roi": roi}, _technique_names(techniques),
        empty_qualifier="all-techniques",
    )

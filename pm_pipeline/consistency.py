"""Advisory cross-document consistency check.

A keyword-overlap heuristic: it only produces warnings and never blocks a
pipeline run.
"""

import json
import re

STOPWORDS = {
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "had", "her",
    "was", "one", "our", "out", "day", "get", "has", "him", "his", "how", "its",
    "may", "new", "now", "old", "see", "two", "who", "did", "she", "use", "way",
    "this", "that", "with", "have", "from", "they", "will", "been", "than",
    "into", "only", "over", "such", "then", "them", "when", "what", "which",
    "shall", "should", "would", "could", "system", "user", "users",
}
MAX_KEYWORDS = 20
MIN_OVERLAP = 1


def _text(document) -> str:
    if isinstance(document, str):
        return document
    return json.dumps(document, default=str)


def extract_keywords(text: str) -> list[str]:
    """Up to 20 distinct words longer than two characters, in first-seen order."""
    seen = []
    for word in re.findall(r"[a-z][a-z0-9]+", text.lower()):
        if len(word) > 2 and word not in STOPWORDS and word not in seen:
            seen.append(word)
            if len(seen) == MAX_KEYWORDS:
                break
    return seen


def check_document_consistency(documents: dict) -> dict:
    """Compare each document's keywords to the requirements document."""
    issues: list[str] = []
    warnings: list[str] = []

    requirements = documents.get("requirements")
    if requirements is None:
        if documents:
            warnings.append("No requirements document to check other documents against")
        return {"is_valid": True, "issues": issues, "warnings": warnings}

    base = set(extract_keywords(_text(requirements.get("business_goal", requirements)
                                      if isinstance(requirements, dict) else requirements)))

    for name, document in documents.items():
        if name == "requirements" or document is None:
            continue
        overlap = base & set(extract_keywords(_text(document)))
        if len(overlap) < MIN_OVERLAP:
            warnings.append(f"{name} shares no key terms with the requirements business goal")

    if "task_plan" in documents and "design_options" not in documents:
        issues.append("task_plan present without design_options")

    return {"is_valid": not issues, "issues": issues, "warnings": warnings}

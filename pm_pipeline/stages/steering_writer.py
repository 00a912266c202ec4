# pm_pipeline/stages/steering_writer.py
"""Steering files: markdown with front matter, one per PM document."""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = {
    "requirements": "Requirements",
    "design_options": "Design Options",
    "task_plan": "Task Plan",
    "management_onepager": "Management One-Pager",
    "prfaq": "PR-FAQ",
}
INCLUSION_RULES = ("always", "fileMatch", "manual")


def sanitize_feature_name(name: str) -> str:
    return re.sub(r"[^a-z0-9-]", "-", name.lower()).strip("-") or "feature"


def _render_body(document) -> str:
    if isinstance(document, str):
        return document
    if isinstance(document, dict) and "markdown" in document:
        markdown = document["markdown"]
        if isinstance(markdown, dict):
            return "\n\n".join(markdown.values())
        return markdown
    return "```json\n" + json.dumps(document, indent=2, default=str) + "\n```"


class SteeringWriter:
    """Renders and persists steering files under ``steering_dir``."""

    def __init__(self, steering_dir: Path):
        self.steering_dir = Path(steering_dir)

    def render(self, doc_type: str, document, feature_name: str,
               inclusion_rule: str = "manual") -> dict:
        if doc_type not in DOCUMENT_TYPES:
            raise ValueError(f"Unknown document type: {doc_type}")
        if inclusion_rule not in INCLUSION_RULES:
            inclusion_rule = "manual"

        filename = f"{sanitize_feature_name(feature_name)}-{doc_type.replace('_', '-')}.md"
        front_matter = {
            "inclusion": inclusion_rule,
            "generated_by": "pm-pipeline",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "document_type": doc_type,
            "feature_name": feature_name,
        }
        header = "\n".join(f"{k}: {v}" for k, v in front_matter.items())
        content = (
            f"---\n{header}\n---\n\n"
            f"# {feature_name}: {DOCUMENT_TYPES[doc_type]}\n\n"
            f"{_render_body(document)}\n"
        )
        return {
            "filename": filename,
            "front_matter": front_matter,
            "content": content,
            "full_path": str(self.steering_dir / filename),
        }

    async def write_documents(self, documents: dict, options: Optional[dict] = None) -> dict:
        """Write one steering file per produced document.

        A failure on one document is recorded and the rest still run.
        """
        options = options or {}
        if not documents or not options.get("create_steering_files"):
            return {
                "created": False,
                "results": [],
                "summary": "Steering file creation not requested or no documents available",
            }

        feature_name = options.get("feature_name") or "feature"
        overwrite = bool(options.get("overwrite_existing"))
        rule = options.get("inclusion_rule", "manual")
        results = []

        for doc_type, document in documents.items():
            if doc_type not in DOCUMENT_TYPES:
                continue
            try:
                rendered = self.render(doc_type, document, feature_name, rule)
                path = Path(rendered["full_path"])
                if path.exists() and not overwrite:
                    results.append({"document_type": doc_type, "created": False,
                                    "path": str(path), "message": "File exists; overwrite_existing not set"})
                    continue
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(rendered["content"], encoding="utf-8")
                results.append({"document_type": doc_type, "created": True, "path": str(path)})
            except (OSError, ValueError) as e:
                logger.warning(f"Steering file for {doc_type} failed: {e}")
                results.append({"document_type": doc_type, "created": False, "message": str(e)})

        created = sum(1 for r in results if r["created"])
        return {
            "created": created > 0,
            "results": results,
            "summary": (
                f"Successfully created {created} steering file(s) from PM documents"
                if created else "No steering files were created"
            ),
        }

# pm_pipeline/stages/document_generator.py
"""PM document generation: requirements through PR-FAQ.

Each generator accepts the upstream document either as the dict another
generator returned or as free text, and returns a dict. Documents meant for
humans also carry a ``markdown`` rendering.
"""

import json
import re
from datetime import date, timedelta
from typing import Any, Optional

FAQ_QUESTIONS = [
    "Who is the customer?",
    "What problem are we solving?",
    "Why now?",
    "What does success look like?",
    "How does it work?",
    "What does it cost to build and run?",
    "What are the biggest risks?",
    "What are we not doing?",
    "How will we measure adoption?",
    "What happens if it fails?",
]
LAUNCH_TASKS = [
    ("Finalize requirements sign-off", "PM", 28),
    ("Complete implementation of must-have scope", "Engineering", 14),
    ("Run quota and cost verification", "Engineering", 10),
    ("Prepare customer documentation", "PM", 7),
    ("Launch readiness review", "Leadership", 2),
]
STOPWORDS = {
    "the", "and", "for", "with", "that", "this", "from", "into", "want",
    "need", "should", "will", "can", "have", "are", "our", "their", "users",
}


def _coerce(document: Any) -> dict:
    """Accept a generator dict, a JSON string, or plain text."""
    if isinstance(document, dict):
        return document
    if isinstance(document, str):
        try:
            parsed = json.loads(document)
        except ValueError:
            return {"text": document}
        return parsed if isinstance(parsed, dict) else {"text": document}
    return {}


def _goal_of(document: dict) -> str:
    return document.get("business_goal") or document.get("text", "")[:200] or "the requested feature"


def _topic(text: str) -> str:
    words = [w for w in re.findall(r"[a-zA-Z]+", text.lower()) if len(w) > 3 and w not in STOPWORDS]
    return " ".join(words[:3]).title() or "New Capability"


class DocumentGenerator:
    """Generates the five PM documents."""

    async def generate_requirements(self, intent: str, context: Optional[dict] = None) -> dict:
        context = context or {}
        goal = context.get("business_goal") or intent.strip().rstrip(".")
        constraints = list(context.get("constraints", []))
        if context.get("budget"):
            constraints.append(f"Budget cap of ${context['budget']}")
        if context.get("timeline"):
            constraints.append(f"Timeline: {context['timeline']}")

        functional = [
            f"The system shall support: {clause.strip()}"
            for clause in re.split(r",| and |;", intent)
            if len(clause.strip()) > 3
        ][:6]

        must = functional[:2]
        should = functional[2:4]
        could = functional[4:]

        return {
            "business_goal": goal,
            "user_needs": {
                "jobs": context.get("user_needs") or [f"Accomplish: {goal}"],
                "pains": ["Current process is manual or slow", "Unclear cost of delivery"],
                "gains": ["Faster outcomes", "Predictable quota spend"],
            },
            "functional_requirements": functional,
            "constraints_risks": constraints or ["Quota budget must be respected"],
            "priority": {
                "must": must,
                "should": should,
                "could": could,
                "wont": ["Features outside the stated goal"],
            },
            "right_time_verdict": {
                "decision": "do_now" if len(functional) <= 4 else "do_later",
                "reasoning": (
                    "Scope is small enough to deliver in one iteration"
                    if len(functional) <= 4 else
                    "Scope is broad; ship the must-haves first and defer the rest"
                ),
            },
        }

    async def generate_design_options(self, requirements: Any) -> dict:
        req = _coerce(requirements)
        goal = _goal_of(req)
        must = req.get("priority", {}).get("must", [])

        options = {
            "conservative": {
                "name": "Conservative",
                "summary": f"Deliver only the must-have scope for {goal}",
                "effort": "low",
                "impact": "medium",
            },
            "balanced": {
                "name": "Balanced",
                "summary": "Must-haves plus the highest-value should-haves with caching and batching",
                "effort": "medium",
                "impact": "high",
            },
            "bold": {
                "name": "Bold",
                "summary": "Zero-based redesign of the experience around the core job",
                "effort": "high",
                "impact": "high",
            },
        }
        return {
            "problem_framing": f"How might we {goal.lower()} within quota limits?",
            "far_out_option": {
                "name": "Fully automated",
                "description": "Remove the manual steps entirely",
                "why_not_now": "Requires capabilities beyond the current budget",
            },
            "options": options,
            "impact_effort_matrix": {
                "high_impact_low_effort": [o["name"] for o in options.values()
                                           if o["impact"] == "high" and o["effort"] == "low"],
                "high_impact_high_effort": [o["name"] for o in options.values()
                                            if o["impact"] == "high" and o["effort"] != "low"],
                "low_impact_low_effort": [o["name"] for o in options.values()
                                          if o["impact"] != "high" and o["effort"] == "low"],
            },
            "right_time_recommendation": (
                "Balanced now; revisit Bold after launch metrics"
                if must else "Conservative until requirements firm up"
            ),
        }

    async def generate_task_plan(self, design: Any, limits: Optional[dict] = None) -> dict:
        doc = _coerce(design)
        limits = limits or {}
        recommended = "Balanced" if "Balanced now" in doc.get("right_time_recommendation", "") else "Conservative"

        def task(task_id: str, name: str, effort: str, impact: str, priority: str) -> dict:
            return {
                "id": task_id,
                "name": name,
                "description": f"{name} ({recommended} option)",
                "acceptance_criteria": [f"{name} is complete and reviewed"],
                "effort": effort,
                "impact": impact,
                "priority": priority,
            }

        return {
            "guardrails_check": {
                "limits": {
                    "max_vibes": limits.get("max_vibes"),
                    "max_specs": limits.get("max_specs"),
                    "budget_usd": limits.get("budget_usd"),
                },
                "thresholds": {"warning_percent": 80, "stop_percent": 100},
                "owner": "PM",
            },
            "immediate_wins": [
                task("T-1", "Enable result caching", "low", "high", "P0"),
                task("T-2", "Batch repeated operations", "low", "medium", "P0"),
            ],
            "short_term": [
                task("T-3", "Implement must-have requirements", "medium", "high", "P1"),
                task("T-4", "Add quota monitoring", "medium", "medium", "P1"),
            ],
            "long_term": [
                task("T-5", "Evaluate zero-based redesign", "high", "high", "P2"),
            ],
        }

    async def generate_management_onepager(self, requirements: Any, design: Any,
                                           tasks: Any = None,
                                           roi_inputs: Optional[dict] = None) -> dict:
        req = _coerce(requirements)
        des = _coerce(design)
        plan = _coerce(tasks) if tasks is not None else {}
        roi_inputs = roi_inputs or {}
        goal = _goal_of(req)

        options = des.get("options", {})
        onepager = {
            "answer": f"Proceed with the {self._recommended(des)} option for {goal}.",
            "because": [
                "Clear user need with measurable outcome",
                "Costs are bounded by quota guardrails",
                "Incremental delivery limits risk",
            ],
            "what_scope_today": req.get("priority", {}).get("must", []) or [goal],
            "risks_and_mitigations": [
                {"risk": r, "mitigation": "Track against guardrails weekly"}
                for r in req.get("constraints_risks", [])[:3]
            ],
            "options": [
                {"name": o.get("name"), "summary": o.get("summary"), "effort": o.get("effort")}
                for o in options.values()
            ],
            "roi_snapshot": {
                "cost_naive": roi_inputs.get("cost_naive"),
                "cost_balanced": roi_inputs.get("cost_balanced"),
                "cost_bold": roi_inputs.get("cost_bold"),
            },
            "right_time_recommendation": des.get("right_time_recommendation", "Proceed now"),
        }
        if plan.get("immediate_wins"):
            onepager["because"].append(f"{len(plan['immediate_wins'])} immediate wins identified")

        onepager["markdown"] = self.format_onepager(onepager)
        return onepager

    async def generate_prfaq(self, requirements: Any, design: Any,
                             target_date: Optional[str] = None) -> dict:
        req = _coerce(requirements)
        des = _coerce(design)
        goal = _goal_of(req)
        launch = self._launch_date(target_date)
        headline = f"Introducing {_topic(goal)}"

        press_release = {
            "date": launch.isoformat(),
            "headline": headline,
            "subheadline": f"A faster way to {goal.lower()}",
            "content": (
                f"Today we launch {_topic(goal)}. {des.get('problem_framing', '')} "
                "Customers get the outcome they need while costs stay predictable."
            ).strip(),
            "customer_quote": '"This saves my team hours every week." - Early access customer',
            "call_to_action": "Try it today from the product dashboard.",
        }
        faq = [
            {"question": q, "answer": self._faq_answer(i, goal, req, des)}
            for i, q in enumerate(FAQ_QUESTIONS)
        ]
        checklist = [
            {
                "task": name,
                "owner": owner,
                "due_date": (launch - timedelta(days=days_before)).isoformat(),
                "status": "not_started",
            }
            for name, owner, days_before in LAUNCH_TASKS
        ]

        return {
            "press_release": press_release,
            "faq": faq,
            "launch_checklist": checklist,
            "markdown": {
                "press_release": self.format_press_release(press_release),
                "faq": self.format_faq(faq),
                "launch_checklist": self.format_launch_checklist(checklist),
            },
        }

    # ─────────────────────────────────────────────────────────────
    # Markdown rendering
    # ─────────────────────────────────────────────────────────────

    def format_onepager(self, onepager: dict) -> str:
        lines = ["# Management One-Pager", "", "## Answer", onepager["answer"], "", "## Because"]
        lines += [f"- {reason}" for reason in onepager["because"]]
        lines += ["", "## What (Scope Today)"]
        lines += [f"- {item}" for item in onepager["what_scope_today"]]
        lines += ["", "## Risks & Mitigations"]
        lines += [f"- {r['risk']}: {r['mitigation']}" for r in onepager["risks_and_mitigations"]]
        lines += ["", "## Options"]
        lines += [f"- **{o['name']}**: {o['summary']} (effort: {o['effort']})" for o in onepager["options"]]
        lines += ["", "## ROI Snapshot"]
        for label, value in onepager["roi_snapshot"].items():
            lines.append(f"- {label.replace('_', ' ').title()}: {'n/a' if value is None else f'${value:.2f}'}")
        lines += ["", "## Right-Time Recommendation", onepager["right_time_recommendation"]]
        return "\n".join(lines)

    def format_press_release(self, press_release: dict) -> str:
        return "\n".join([
            f"# {press_release['headline']}",
            f"## {press_release['subheadline']}",
            "",
            f"**{press_release['date']}** - {press_release['content']}",
            "",
            press_release["customer_quote"],
            "",
            press_release["call_to_action"],
        ])

    def format_faq(self, faq: list[dict]) -> str:
        return "\n\n".join(
            f"**Q{i}: {item['question']}**\n{item['answer']}"
            for i, item in enumerate(faq, start=1)
        )

    def format_launch_checklist(self, checklist: list[dict]) -> str:
        return "\n".join(
            f"- [ ] {item['task']} (Owner: {item['owner']}, Due: {item['due_date']})"
            for item in checklist
        )

    def _recommended(self, design: dict) -> str:
        recommendation = design.get("right_time_recommendation", "")
        for name in ("Balanced", "Conservative", "Bold"):
            if recommendation.startswith(name):
                return name
        return "Balanced"

    def _launch_date(self, target_date: Optional[str]) -> date:
        if target_date:
            try:
                return date.fromisoformat(target_date[:10])
            except ValueError:
                pass
        return date.today() + timedelta(days=90)

    def _faq_answer(self, index: int, goal: str, req: dict, des: dict) -> str:
        answers = [
            "Teams who " + (req.get("user_needs", {}).get("jobs") or [goal])[0].lower(),
            goal,
            "Quota-efficient tooling makes this affordable today",
            "Users complete the core job faster with predictable cost",
            des.get("options", {}).get("balanced", {}).get("summary", "Incremental delivery of the core flow"),
            "See the ROI snapshot in the one-pager",
            "; ".join(req.get("constraints_risks", [])) or "Scope creep and quota overruns",
            "; ".join(req.get("priority", {}).get("wont", [])) or "Anything outside the core goal",
            "Weekly active usage and task completion rate",
            "We fall back to the conservative option and keep the learnings",
        ]
        return answers[index]

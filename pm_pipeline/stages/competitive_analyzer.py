# pm_pipeline/stages/competitive_analyzer.py
"""Competitor landscape and TAM/SAM/SOM sizing.

Figures are derived deterministically from the inputs; they are planning
placeholders, not market data.
"""

import hashlib
import re
from typing import Optional

COMPETITOR_ARCHETYPES = [
    ("Established Suite", "direct", "Broad feature coverage and brand trust", "Slow to adapt, expensive"),
    ("Focused Startup", "direct", "Modern UX and fast iteration", "Limited integrations"),
    ("Open Source Toolkit", "indirect", "Free and extensible", "High setup and maintenance cost"),
    ("Manual Workaround", "substitute", "No new tooling required", "Error-prone and slow"),
]
DEFAULT_MARKET_USD = 5_000_000_000
SAM_SHARE = 0.2
SOM_SHARE = 0.05


def _seed(text: str) -> int:
    return int(hashlib.sha256(text.encode("utf-8")).hexdigest()[:8], 16)


def _segment(feature_idea: str) -> str:
    words = [w for w in re.findall(r"[a-zA-Z]+", feature_idea.lower()) if len(w) > 4]
    return " ".join(words[:2]) or "general software"


class CompetitiveAnalyzer:
    """Produces landscape and sizing documents for a feature idea."""

    async def analyze_competitors(self, feature_idea: str, context: Optional[dict] = None) -> dict:
        context = context or {}
        seed = _seed(feature_idea)
        segment = _segment(feature_idea)

        competitors = []
        for index, (archetype, kind, strength, weakness) in enumerate(COMPETITOR_ARCHETYPES):
            share = 5 + (seed >> (index * 4)) % 30
            competitors.append({
                "name": f"{archetype} ({segment})",
                "type": kind,
                "market_share_percent": share if kind != "substitute" else None,
                "strengths": [strength],
                "weaknesses": [weakness],
            })

        named = context.get("competitors") or []
        for name in named:
            competitors.append({
                "name": name,
                "type": "direct",
                "market_share_percent": None,
                "strengths": ["Named by requester"],
                "weaknesses": ["Not yet assessed"],
            })

        return {
            "feature_idea": feature_idea,
            "market_segment": segment,
            "competitors": competitors,
            "positioning": {
                "differentiators": ["Quota-efficient by design", "Consulting-grade planning output"],
                "white_space": f"Cost-aware tooling for {segment}",
            },
            "recommendations": [
                "Differentiate on predictable cost",
                "Integrate with existing suites rather than replacing them",
            ],
        }

    async def calculate_market_sizing(self, feature_idea: str,
                                      market_context: Optional[dict] = None) -> dict:
        market_context = market_context or {}
        tam = float(market_context.get("total_market_usd") or DEFAULT_MARKET_USD)
        sam = tam * float(market_context.get("serviceable_share", SAM_SHARE))
        som = sam * float(market_context.get("obtainable_share", SOM_SHARE))
        return {
            "feature_idea": feature_idea,
            "market_segment": _segment(feature_idea),
            "tam": {"value_usd": round(tam, 2), "methodology": "top-down"},
            "sam": {"value_usd": round(sam, 2), "methodology": "segment share of TAM"},
            "som": {"value_usd": round(som, 2), "methodology": "obtainable share of SAM"},
            "assumptions": [
                f"Serviceable share {sam / tam:.0%} of total market" if tam else "No market data",
                f"Obtainable share {som / sam:.0%} of serviceable market" if sam else "No serviceable market",
            ],
            "confidence_level": "low" if "total_market_usd" not in market_context else "medium",
        }

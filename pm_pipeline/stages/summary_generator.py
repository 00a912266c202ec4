# pm_pipeline/stages/summary_generator.py
"""Executive summaries structured with the pyramid principle."""

from typing import Optional

from pm_pipeline.models import (
    ConsultingAnalysis,
    ConsultingSummary,
    ConsultingTechnique,
    Recommendation,
    ROIAnalysis,
)

MAX_RECOMMENDATIONS = 3


class SummaryGenerator:
    """Answer first, then the supporting reasons, then the evidence."""

    async def generate(self, analysis: ConsultingAnalysis,
                       techniques: Optional[list[ConsultingTechnique]] = None,
                       roi: Optional[ROIAnalysis] = None) -> ConsultingSummary:
        techniques = techniques or analysis.techniques_used
        evidence = self._evidence(analysis, roi)
        recommendations = [
            Recommendation(
                main_recommendation=text,
                supporting_reasons=self._reasons_for(text, analysis.key_findings),
                evidence=evidence[:2],
                expected_outcome=self._outcome(analysis, roi),
            )
            for text in self._recommendations(analysis, roi)[:MAX_RECOMMENDATIONS]
        ]

        return ConsultingSummary(
            executive_summary=self._executive_summary(analysis, roi),
            key_findings=list(analysis.key_findings),
            recommendations=recommendations,
            techniques_applied=[t.name for t in techniques],
            supporting_evidence=evidence,
        )

    def _executive_summary(self, analysis: ConsultingAnalysis, roi: Optional[ROIAnalysis]) -> str:
        summary = (
            f"Applying {len(analysis.techniques_used)} consulting technique(s) identifies "
            f"about {analysis.total_quota_savings}% quota savings at "
            f"{analysis.implementation_complexity} implementation complexity."
        )
        if roi and roi.best_option:
            summary += f" The {roi.best_option} option offers the best risk-adjusted return."
        return summary

    def _recommendations(self, analysis: ConsultingAnalysis, roi: Optional[ROIAnalysis]) -> list[str]:
        recs = []
        if roi and roi.best_option:
            recs.append(f"Proceed with the {roi.best_option} implementation plan")
        if analysis.total_quota_savings >= 20:
            recs.append("Prioritize the quota optimizations before adding features")
        if analysis.implementation_complexity == "high":
            recs.append("Deliver in phases to contain implementation risk")
        if analysis.zero_based_solution:
            recs.append("Evaluate the zero-based redesign for the next iteration")
        return recs or ["Start with the smallest valuable slice and measure quota usage"]

    def _reasons_for(self, recommendation: str, findings: list[str]) -> list[str]:
        words = {w for w in recommendation.lower().split() if len(w) > 4}
        related = [f for f in findings if words & set(f.lower().split())]
        return (related or findings)[:3]

    def _outcome(self, analysis: ConsultingAnalysis, roi: Optional[ROIAnalysis]) -> str:
        if roi and roi.best_option:
            best = roi.scenario(roi.best_option)
            if best is not None:
                return f"{best.savings_percentage}% lower quota cost"
        return f"{analysis.total_quota_savings}% lower quota cost"

    def _evidence(self, analysis: ConsultingAnalysis, roi: Optional[ROIAnalysis]) -> list[dict]:
        evidence = [
            {
                "type": "quantitative",
                "description": f"{t.name} relevance",
                "value": t.relevance_score,
                "source": "technique selection",
            }
            for t in analysis.techniques_used
        ]
        if roi:
            evidence.extend(
                {
                    "type": "quantitative",
                    "description": f"{s.name} scenario cost",
                    "value": s.forecast.estimated_cost,
                    "source": "quota forecast",
                }
                for s in roi.scenarios
            )
        return evidence

# pm_pipeline/stages/checks.py
"""Independent checks run alongside the main stages."""

from pm_pipeline.models import ParsedIntent

HIGH_OPERATION_COST = 10


async def validate_intent(parsed: ParsedIntent) -> dict:
    """Objective present and at least one operation."""
    issues = []
    if not parsed.business_objective.strip():
        issues.append("Missing business objective")
    if not parsed.operations_required:
        issues.append("No operations identified")
    return {"valid": not issues, "issues": issues}


async def assess_risks(parsed: ParsedIntent) -> list[dict]:
    risks = []
    for op in parsed.operations_required:
        if op.estimated_quota_cost > HIGH_OPERATION_COST:
            risks.append({
                "type": "high_quota_usage",
                "severity": "medium",
                "description": f"{op.description} costs {op.estimated_quota_cost} quota units",
            })
    for req in parsed.technical_requirements:
        if req.complexity == "high":
            risks.append({
                "type": "high_complexity",
                "severity": "low",
                "description": req.description,
            })
    return risks

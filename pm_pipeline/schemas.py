"""Tool input schemas - centralized validation for the MCP layer

These schemas:
- Validate tool arguments before they reach the orchestrator
- Provide clear error messages
- Document expected input formats

Deep semantic checks (intent length, trivial greetings) stay in
``pm_pipeline.validation`` so the pipeline reports them with stage ``intent``.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pm_pipeline.validation import MAX_COST_DOLLARS, MAX_INTENT_LENGTH, MAX_SPECS, MAX_USER_VOLUME, MAX_VIBES


class CostConstraints(BaseModel):
    """Budget ceilings for one pipeline run"""
    max_vibes: Optional[int] = Field(default=None, ge=0, le=MAX_VIBES)
    max_specs: Optional[int] = Field(default=None, ge=0, le=MAX_SPECS)
    max_cost_dollars: Optional[float] = Field(default=None, ge=0, le=MAX_COST_DOLLARS)


class SteeringOptions(BaseModel):
    create_steering_files: bool = False
    feature_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    inclusion_rule: Literal["always", "fileMatch", "manual"] = "manual"
    overwrite_existing: bool = False


class DocumentOptions(BaseModel):
    """Which PM documents to produce alongside the spec

    Design options are produced whenever a later document needs them.
    """
    requirements: bool = False
    design_options: bool = False
    task_plan: bool = False
    management_onepager: bool = False
    prfaq: bool = False
    target_date: Optional[str] = Field(
        default=None,
        pattern=r"^\d{4}-\d{2}-\d{2}$",
        description="Launch date for the PR-FAQ (YYYY-MM-DD)"
    )
    steering_options: Optional[SteeringOptions] = None


class ProcessIntentInput(BaseModel):
    """Schema for full pipeline runs

    Used by: process_intent tool
    """
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "intent": "Build a dashboard that tracks weekly active users and churn",
            "performance_sensitivity": "medium",
            "generate_pm_documents": {"requirements": True, "design_options": True}
        }
    })

    intent: str = Field(
        ...,
        max_length=MAX_INTENT_LENGTH,
        description="Free-text description of what to build"
    )
    expected_user_volume: Optional[int] = Field(default=None, ge=0, le=MAX_USER_VOLUME)
    cost_constraints: Optional[CostConstraints] = None
    performance_sensitivity: Optional[Literal["low", "medium", "high"]] = None
    generate_pm_documents: Optional[DocumentOptions] = None

    def to_params(self) -> dict:
        """Optional pipeline parameters, without unset fields"""
        return self.model_dump(exclude={"intent"}, exclude_none=True)


class IdeaInput(BaseModel):
    """Schema for quick idea validation

    Used by: validate_idea_quick tool
    """
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "idea": "Automate weekly churn reports for account managers",
            "context": {"urgency": "medium", "budget_range": "medium", "team_size": 3}
        }
    })

    idea: str = Field(..., min_length=1, max_length=MAX_INTENT_LENGTH)
    context: Optional[dict] = None

    @field_validator('idea')
    @classmethod
    def validate_idea(cls, v):
        """Ensure idea is not just whitespace"""
        if not v.strip():
            raise ValueError("Idea cannot be empty or whitespace only")
        return v.strip()


class FeatureIdeaInput(BaseModel):
    """Schema for competitive analysis and market sizing

    Used by: analyze_competitors, calculate_market_sizing tools
    """
    feature_idea: str = Field(..., min_length=3, max_length=MAX_INTENT_LENGTH)
    context: Optional[dict] = None

    @field_validator('feature_idea')
    @classmethod
    def validate_feature_idea(cls, v):
        if not v.strip():
            raise ValueError("Feature idea cannot be empty or whitespace only")
        return v.strip()

"""Pipeline state definitions and transitions."""

from enum import Enum


class PipelineState(Enum):
    """States a single pipeline invocation moves through."""

    VALIDATING = "validating"
    CACHE_CHECK = "cache_check"
    INTENT = "intent"
    PARALLEL_VALIDATION = "parallel_validation"
    ANALYSIS = "analysis"
    OPTIMIZATION = "optimization"
    FORECASTING = "forecasting"
    SUMMARY = "summary"
    SPEC = "spec"
    DOCUMENTS = "documents"
    STEERING_FILES = "steering_files"
    ASSEMBLING = "assembling"
    SUCCESS = "success"
    FAILED = "failed"


_STAGE_FAILURE = {PipelineState.FAILED}

# Valid state transitions
TRANSITIONS = {
    PipelineState.VALIDATING: {PipelineState.CACHE_CHECK, PipelineState.FAILED},
    PipelineState.CACHE_CHECK: {PipelineState.INTENT, PipelineState.SUCCESS},
    PipelineState.INTENT: {PipelineState.PARALLEL_VALIDATION} | _STAGE_FAILURE,
    PipelineState.PARALLEL_VALIDATION: {PipelineState.ANALYSIS} | _STAGE_FAILURE,
    PipelineState.ANALYSIS: {PipelineState.OPTIMIZATION} | _STAGE_FAILURE,
    PipelineState.OPTIMIZATION: {PipelineState.FORECASTING} | _STAGE_FAILURE,
    PipelineState.FORECASTING: {PipelineState.SUMMARY} | _STAGE_FAILURE,
    PipelineState.SUMMARY: {PipelineState.SPEC} | _STAGE_FAILURE,
    PipelineState.SPEC: {
        PipelineState.DOCUMENTS,
        PipelineState.ASSEMBLING,
        PipelineState.FAILED,
    },
    # Optional stages are best-effort and cannot fail the pipeline
    PipelineState.DOCUMENTS: {PipelineState.STEERING_FILES, PipelineState.ASSEMBLING},
    PipelineState.STEERING_FILES: {PipelineState.ASSEMBLING},
    PipelineState.ASSEMBLING: {PipelineState.SUCCESS},
    PipelineState.SUCCESS: set(),  # Terminal
    PipelineState.FAILED: set(),   # Terminal
}

TERMINAL_STATES = {
    PipelineState.SUCCESS,
    PipelineState.FAILED,
}

# Quota weight charged when a stage completes (real or fallback output)
STAGE_QUOTA_WEIGHTS = {
    PipelineState.INTENT: 1,
    PipelineState.ANALYSIS: 2,
    PipelineState.OPTIMIZATION: 1,
    PipelineState.FORECASTING: 2,
    PipelineState.SUMMARY: 1,
    PipelineState.SPEC: 1,
}
DOCUMENT_QUOTA_WEIGHT = 1


def can_transition(from_state: PipelineState, to_state: PipelineState) -> bool:
    """Check if a state transition is valid."""
    return to_state in TRANSITIONS.get(from_state, set())


def is_terminal_state(state: PipelineState) -> bool:
    """Check if a state is terminal (no further transitions possible)."""
    return state in TERMINAL_STATES

# tests/test_session_states.py
"""Tests for pipeline states and per-run sessions."""

import re

import pytest


def test_main_path_transitions():
    from pm_pipeline.pipeline.states import PipelineState, can_transition

    path = [
        PipelineState.VALIDATING,
        PipelineState.CACHE_CHECK,
        PipelineState.INTENT,
        PipelineState.PARALLEL_VALIDATION,
        PipelineState.ANALYSIS,
        PipelineState.OPTIMIZATION,
        PipelineState.FORECASTING,
        PipelineState.SUMMARY,
        PipelineState.SPEC,
        PipelineState.DOCUMENTS,
        PipelineState.STEERING_FILES,
        PipelineState.ASSEMBLING,
        PipelineState.SUCCESS,
    ]

    for current, following in zip(path, path[1:]):
        assert can_transition(current, following), f"{current} -> {following}"


def test_cache_hit_short_circuits():
    from pm_pipeline.pipeline.states import PipelineState, can_transition

    assert can_transition(PipelineState.CACHE_CHECK, PipelineState.SUCCESS)
    assert can_transition(PipelineState.SPEC, PipelineState.ASSEMBLING)


def test_optional_stages_cannot_fail():
    from pm_pipeline.pipeline.states import PipelineState, can_transition

    assert not can_transition(PipelineState.DOCUMENTS, PipelineState.FAILED)
    assert not can_transition(PipelineState.STEERING_FILES, PipelineState.FAILED)


def test_terminal_states():
    from pm_pipeline.pipeline.states import PipelineState, can_transition, is_terminal_state

    assert is_terminal_state(PipelineState.SUCCESS)
    assert is_terminal_state(PipelineState.FAILED)
    assert not is_terminal_state(PipelineState.SPEC)
    assert not can_transition(PipelineState.SUCCESS, PipelineState.VALIDATING)


def test_stage_weights_total():
    from pm_pipeline.pipeline.states import STAGE_QUOTA_WEIGHTS

    assert sum(STAGE_QUOTA_WEIGHTS.values()) == 8


def test_session_id_format():
    from pm_pipeline.pipeline.session import PipelineSession, new_session_id

    assert re.fullmatch(r"pipeline-\d+-[0-9a-f]{9}", new_session_id())
    assert PipelineSession().session_id != PipelineSession().session_id


def test_session_advance():
    from pm_pipeline.pipeline.session import InvalidTransitionError, PipelineSession
    from pm_pipeline.pipeline.states import PipelineState

    session = PipelineSession()

    assert session.advance(PipelineState.CACHE_CHECK) == PipelineState.VALIDATING
    assert session.state == PipelineState.CACHE_CHECK

    with pytest.raises(InvalidTransitionError):
        session.advance(PipelineState.SPEC)


def test_session_bookkeeping():
    from pm_pipeline.pipeline.session import PipelineSession

    session = PipelineSession()
    session.charge(2)
    session.charge(1)
    session.add_parallel(2)
    session.mark_degraded("intent")
    session.mark_degraded("intent")

    assert session.quota_used == 3
    assert session.parallel_operations_count == 2
    assert session.degraded_stages == ["intent"]
    assert session.elapsed_ms(session.start_time + 0.5) == pytest.approx(500)

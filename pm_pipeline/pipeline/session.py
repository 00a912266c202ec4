"""Per-invocation bookkeeping."""

import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from pm_pipeline.pipeline.states import PipelineState, can_transition


class InvalidTransitionError(RuntimeError):
    """Raised when a session is moved along an undefined edge."""


def new_session_id() -> str:
    """``pipeline-<epoch ms>-<9 random chars>``"""
    return f"pipeline-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


@dataclass
class PipelineSession:
    """Owned by exactly one orchestrator invocation; never shared."""

    session_id: str = field(default_factory=new_session_id)
    start_time: float = field(default_factory=time.perf_counter)
    quota_used: int = 0
    parallel_operations_count: int = 0
    state: PipelineState = PipelineState.VALIDATING
    degraded_stages: list[str] = field(default_factory=list)
    optimizations_applied: list[str] = field(default_factory=list)

    def charge(self, weight: int) -> None:
        self.quota_used += weight

    def add_parallel(self, count: int) -> None:
        self.parallel_operations_count += count

    def mark_degraded(self, stage: str) -> None:
        if stage not in self.degraded_stages:
            self.degraded_stages.append(stage)

    def advance(self, to_state: PipelineState) -> PipelineState:
        """Move to ``to_state``. Returns the previous state."""
        if not can_transition(self.state, to_state):
            raise InvalidTransitionError(f"{self.state.value} -> {to_state.value}")
        previous = self.state
        self.state = to_state
        return previous

    def elapsed_ms(self, now: Optional[float] = None) -> float:
        return ((now or time.perf_counter()) - self.start_time) * 1000

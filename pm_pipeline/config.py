# pm_pipeline/config.py
"""Configuration for the pipeline orchestrator."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass
class PipelineConfig:
    """Configuration for the orchestrator."""

    # Cache
    cache_max_size: int = 500
    cache_default_ttl_ms: int = 300_000    # 5 minutes
    cache_cleanup_interval_ms: int = 60_000
    pipeline_cache_ttl_ms: int = 300_000
    analysis_cache_ttl_ms: int = 600_000   # 10 minutes

    # Concurrency
    max_concurrency: int = 4
    warmup_batch_size: int = 2

    # Recovery
    intent_retries: int = 2
    retry_delay_ms: int = 500
    stage_timeout_seconds: Optional[float] = None

    # Output
    steering_dir: Path = Path(".kiro/steering")
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Create configuration from environment variables."""
        return cls(
            cache_max_size=int(os.environ.get("PM_CACHE_MAX_SIZE", 500)),
            cache_default_ttl_ms=int(os.environ.get("PM_CACHE_TTL_MS", 300_000)),
            cache_cleanup_interval_ms=int(os.environ.get("PM_CACHE_CLEANUP_MS", 60_000)),
            pipeline_cache_ttl_ms=int(os.environ.get("PM_PIPELINE_TTL_MS", 300_000)),
            analysis_cache_ttl_ms=int(os.environ.get("PM_ANALYSIS_TTL_MS", 600_000)),
            max_concurrency=int(os.environ.get("PM_MAX_CONCURRENCY", 4)),
            warmup_batch_size=int(os.environ.get("PM_WARMUP_BATCH_SIZE", 2)),
            intent_retries=int(os.environ.get("PM_INTENT_RETRIES", 2)),
            retry_delay_ms=int(os.environ.get("PM_RETRY_DELAY_MS", 500)),
            stage_timeout_seconds=_optional_float(os.environ.get("PM_STAGE_TIMEOUT_SECONDS")),
            steering_dir=Path(os.environ.get("PM_STEERING_DIR", ".kiro/steering")),
            log_level=os.environ.get("PM_LOG_LEVEL", "INFO").upper(),
        )

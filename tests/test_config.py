# tests/test_config.py
"""Tests for pipeline configuration."""

import pytest


def test_config_loads_defaults():
    from pathlib import Path
    from pm_pipeline.config import PipelineConfig

    config = PipelineConfig()

    assert config.cache_max_size == 500
    assert config.pipeline_cache_ttl_ms == 300_000
    assert config.analysis_cache_ttl_ms == 600_000
    assert config.max_concurrency == 4
    assert config.intent_retries == 2
    assert config.retry_delay_ms == 500
    assert config.stage_timeout_seconds is None
    assert config.steering_dir == Path(".kiro/steering")


def test_config_from_env(monkeypatch):
    from pm_pipeline.config import PipelineConfig

    monkeypatch.setenv("PM_CACHE_MAX_SIZE", "50")
    monkeypatch.setenv("PM_MAX_CONCURRENCY", "8")
    monkeypatch.setenv("PM_RETRY_DELAY_MS", "10")
    monkeypatch.setenv("PM_LOG_LEVEL", "debug")

    config = PipelineConfig.from_env()

    assert config.cache_max_size == 50
    assert config.max_concurrency == 8
    assert config.retry_delay_ms == 10
    assert config.log_level == "DEBUG"


def test_config_stage_timeout_from_env(monkeypatch):
    from pm_pipeline.config import PipelineConfig

    monkeypatch.setenv("PM_STAGE_TIMEOUT_SECONDS", "2.5")
    assert PipelineConfig.from_env().stage_timeout_seconds == 2.5


def test_config_stage_timeout_not_set_in_env(monkeypatch):
    from pm_pipeline.config import PipelineConfig

    monkeypatch.delenv("PM_STAGE_TIMEOUT_SECONDS", raising=False)
    assert PipelineConfig.from_env().stage_timeout_seconds is None


def test_config_steering_dir_from_env(monkeypatch):
    from pathlib import Path
    from pm_pipeline.config import PipelineConfig

    monkeypatch.setenv("PM_STEERING_DIR", "/tmp/steering")
    assert PipelineConfig.from_env().steering_dir == Path("/tmp/steering")

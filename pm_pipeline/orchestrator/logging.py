# pm_pipeline/orchestrator/logging.py
"""Structured logging for the pipeline orchestrator."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO", name: Optional[str] = None) -> logging.Logger:
    """
    Attach a stderr handler to ``name`` (default: the package logger).

    stdout is reserved for the MCP stdio transport.
    """
    logger = logging.getLogger(name or "pm_pipeline")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger


class PipelineLogger:
    """Structured JSON logger for pipeline events."""

    def __init__(self, name: str = "pm_pipeline.orchestrator"):
        self.logger = logging.getLogger(name)

    def _log(self, level: int, event: str, **kwargs):
        """Log a structured event."""
        data = {
            "event": event,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **kwargs
        }
        self.logger.log(level, json.dumps(data, default=str))

    def pipeline_started(self, session_id: str, intent_length: int, params: list[str]):
        self._log(
            logging.INFO,
            "pipeline_started",
            session_id=session_id,
            intent_length=intent_length,
            params=params
        )

    def cache_hit(self, session_id: str, key: str):
        self._log(logging.INFO, "cache_hit", session_id=session_id, key=key)

    def stage_started(self, session_id: str, stage: str):
        self._log(logging.INFO, "stage_started", session_id=session_id, stage=stage)

    def stage_completed(self, session_id: str, stage: str, duration_ms: float, **counts):
        """Log stage completion with summary counts."""
        self._log(
            logging.INFO,
            "stage_completed",
            session_id=session_id,
            stage=stage,
            duration_ms=round(duration_ms, 2),
            **counts
        )

    def retry_scheduled(self, session_id: str, stage: str, attempt: int, delay_ms: int, error: str):
        self._log(
            logging.WARNING,
            "retry_scheduled",
            session_id=session_id,
            stage=stage,
            attempt=attempt,
            delay_ms=delay_ms,
            error=error
        )

    def fallback_used(self, session_id: str, stage: str, error_type: str, message: str):
        """Log a recovered failure (degraded path)."""
        self._log(
            logging.WARNING,
            "fallback_used",
            session_id=session_id,
            stage=stage,
            error_type=error_type,
            message=message
        )

    def warning(self, session_id: str, message: str, **kwargs):
        self._log(logging.WARNING, "warning", session_id=session_id, message=message, **kwargs)

    def error(self, session_id: str, stage: str, error_type: str, message: str):
        """Log an unrecoverable error."""
        self._log(
            logging.ERROR,
            "error",
            session_id=session_id,
            stage=stage,
            error_type=error_type,
            message=message
        )

    def pipeline_completed(self, session_id: str, success: bool, duration_ms: float,
                           quota_used: int, degraded_stages: list[str]):
        self._log(
            logging.INFO,
            "pipeline_completed",
            session_id=session_id,
            success=success,
            duration_ms=round(duration_ms, 2),
            quota_used=quota_used,
            degraded_stages=degraded_stages
        )

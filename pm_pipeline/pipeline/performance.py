"""Performance telemetry for pipeline invocations."""

from collections import deque
from dataclasses import asdict, dataclass, replace
from typing import Optional

MAX_SAMPLES = 1000

# Thresholds
POOR_LATENCY_MS = 5000
ACCEPTABLE_LATENCY_MS = 3000
GOOD_LATENCY_MS = 1000
POOR_ERROR_RATE = 0.05
WARN_ERROR_RATE = 0.02
LOW_CACHE_HIT_RATE = 0.30
HIGH_MEMORY_BYTES = 100 * 1024 * 1024

STATUSES = ("excellent", "good", "acceptable", "poor")


@dataclass
class PerformanceMetrics:
    """Process-wide counters for one orchestrator."""

    execution_count: int = 0
    total_duration_ms: float = 0.0
    error_count: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    parallel_operations_total: int = 0

    @property
    def average_duration_ms(self) -> float:
        if self.execution_count == 0:
            return 0.0
        return self.total_duration_ms / self.execution_count

    @property
    def cache_hit_rate(self) -> float:
        lookups = self.cache_hits + self.cache_misses
        return self.cache_hits / lookups if lookups else 0.0

    @property
    def error_rate(self) -> float:
        if self.execution_count == 0:
            return 0.0
        return self.error_count / self.execution_count

    def to_dict(self) -> dict:
        data = asdict(self)
        data["average_duration_ms"] = round(self.average_duration_ms, 2)
        data["cache_hit_rate"] = round(self.cache_hit_rate, 4)
        data["error_rate"] = round(self.error_rate, 4)
        return data


class PerformanceMonitor:
    """Accumulates execution timings, cache hits and errors.

    Every mutation completes without awaiting, so interleaved pipeline runs
    on one event loop cannot tear the counters.
    """

    def __init__(self, max_samples: int = MAX_SAMPLES):
        self._metrics = PerformanceMetrics()
        self._samples: deque = deque(maxlen=max_samples)

    def record_execution(self, duration_ms: float, cache_hit: bool = False,
                         parallel_ops: int = 0) -> None:
        m = self._metrics
        m.execution_count += 1
        m.total_duration_ms += duration_ms
        m.parallel_operations_total += parallel_ops
        if cache_hit:
            m.cache_hits += 1
        else:
            m.cache_misses += 1
        self._samples.append(duration_ms)

    def record_error(self) -> None:
        self._metrics.error_count += 1

    def get_metrics(self) -> PerformanceMetrics:
        """Read-only snapshot of the counters."""
        return replace(self._metrics)

    def get_latency_percentiles(self) -> dict:
        """p50/p95/max over the most recent samples."""
        if not self._samples:
            return {"p50": 0.0, "p95": 0.0, "max": 0.0}

        ordered = sorted(self._samples)

        def pick(fraction: float) -> float:
            index = min(len(ordered) - 1, int(round(fraction * (len(ordered) - 1))))
            return round(ordered[index], 2)

        return {"p50": pick(0.5), "p95": pick(0.95), "max": round(ordered[-1], 2)}

    def get_performance_summary(self, memory_bytes: Optional[int] = None) -> dict:
        """Qualitative verdict from mean latency and error rate.

        Args:
            memory_bytes: Current cache footprint, if the caller tracks one
        """
        m = self._metrics
        average = m.average_duration_ms
        status = "excellent"
        recommendations = []

        if average > POOR_LATENCY_MS:
            status = "poor"
            recommendations.append("Consider optimizing slow operations or increasing parallelization")
        elif average > ACCEPTABLE_LATENCY_MS:
            status = "acceptable"
            recommendations.append("Monitor execution times and consider performance optimizations")
        elif average > GOOD_LATENCY_MS:
            status = "good"

        if m.execution_count and m.cache_hit_rate < LOW_CACHE_HIT_RATE:
            recommendations.append("Low cache hit rate - consider increasing cache TTL or improving cache keys")

        if m.error_rate > POOR_ERROR_RATE:
            status = "poor"
            recommendations.append("High error rate detected - investigate error causes")
        elif m.error_rate > WARN_ERROR_RATE:
            if status == "excellent":
                status = "good"
            recommendations.append("Monitor error rate and improve error handling")

        if memory_bytes is not None and memory_bytes > HIGH_MEMORY_BYTES:
            recommendations.append("High memory usage - consider cache cleanup or size limits")

        return {
            "status": status,
            "recommendations": recommendations,
            "metrics": m.to_dict(),
            "latency": self.get_latency_percentiles(),
        }

    def reset(self) -> None:
        self._metrics = PerformanceMetrics()
        self._samples.clear()

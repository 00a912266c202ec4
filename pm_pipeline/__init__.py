"""PM pipeline - intent to planning documents through a cached, fault-tolerant pipeline."""

__version__ = "0.1.0"

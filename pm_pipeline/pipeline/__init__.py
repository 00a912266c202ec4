"""Pipeline execution primitives: cache, keys, executor, telemetry, states."""

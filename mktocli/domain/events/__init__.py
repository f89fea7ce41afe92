"""Domain Event definitions.

Represents significant occurrences (throttled calls, failed batches, cache
hits) that are useful to trace when debugging a run.
"""

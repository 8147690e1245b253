"""Calendar Grid - month grid range, event caching and per-day aggregation."""

__version__ = "0.1.0"

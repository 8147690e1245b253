"""Month grid core: range derivation, range-keyed caching and overlap aggregation."""

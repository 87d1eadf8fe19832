"""CSV reading and normalization."""

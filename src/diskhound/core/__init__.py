"""Traversal, aggregation and reporting engine."""

"""Normalization, aggregation and the lookup pipeline."""

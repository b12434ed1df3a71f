"""Observability helpers for source map builds."""

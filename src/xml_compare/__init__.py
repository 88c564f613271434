"""Semantic XML comparison with ignore rules, batch execution and authenticated fetch."""

__version__ = "0.1.0"

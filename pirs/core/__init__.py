"""
Core modules for pirs.

This package contains command extraction, classification,
token estimation, aggregation and report formatting.
"""

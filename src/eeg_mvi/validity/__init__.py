"""Validity scoring, band relevance ranking and the engine entry points."""

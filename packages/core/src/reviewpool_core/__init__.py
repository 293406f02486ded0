"""Reviewer assignment and pull request lifecycle engine."""

"""Findings, their identity and their rendering."""

from .identity import FindingIdGenerator
from .models import Finding, FindingLocation, Severity, count_severities

__all__ = [
    "Finding",
    "FindingIdGenerator",
    "FindingLocation",
    "Severity",
    "count_severities",
]

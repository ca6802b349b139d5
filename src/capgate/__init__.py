"""
capgate - module boundary enforcement for multi-app Python code bases.

Apps and components may only talk to each other through declared
capabilities. capgate scans the source tree for direct cross-app symbol
references and other structural defects, resolves the capability graph to
per-app health, and repairs crossings by generating bridge contracts.
"""

__version__ = "0.4.0"

from .report.models import Finding, FindingLocation, Severity
from .verifier import Verifier

__all__ = [
    "Finding",
    "FindingLocation",
    "Severity",
    "Verifier",
]

"""Crossing fixer: bridges in place of direct cross-app references."""

from .fixer import CrossingFixer, FixOutcome
from .planner import CrossingPlanner, parse_entity_fqn, render_plan

__all__ = [
    "CrossingFixer",
    "CrossingPlanner",
    "FixOutcome",
    "parse_entity_fqn",
    "render_plan",
]

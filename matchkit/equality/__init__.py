"""Equality layer - cycle-safe same-value comparison plans."""

from __future__ import annotations

from matchkit.equality.plan import EqualityEntry, EqualityPlan, SupertypeCheck
from matchkit.equality.planner import EqualityPlanner, build_equality_plan

__all__ = [
    "EqualityPlan",
    "EqualityEntry",
    "SupertypeCheck",
    "EqualityPlanner",
    "build_equality_plan",
]

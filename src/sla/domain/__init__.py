"""
SLA Domain Layer
================

Domain layer for SLA tracking.

Contains:
- Entities: IssueSnapshot, SLAClock, SLAStatus, DeveloperPerformance
- Value Objects: SLARule, BusinessHours, SLASettings
- Domain Services: RuleRegistry, SLACalculator, DeveloperPerformanceAggregator

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from sla.domain.entities import (
    IssueSnapshot,
    SLAClock,
    SLAStatus,
    DeveloperIdentity,
    DeveloperPerformance,
    TeamAverages,
)
from sla.domain.value_objects import (
    SLARule,
    RuleSet,
    BusinessHours,
    SLASettings,
    RuleRegistry,
    DEFAULT_SLA_RULES,
    DEFAULT_HOLIDAYS,
)
from sla.domain.calculator import SLACalculator
from sla.domain.performance import DeveloperPerformanceAggregator, IssueSLAPair

__all__ = [
    # Entities
    "IssueSnapshot",
    "SLAClock",
    "SLAStatus",
    "DeveloperIdentity",
    "DeveloperPerformance",
    "TeamAverages",
    # Value Objects
    "SLARule",
    "RuleSet",
    "BusinessHours",
    "SLASettings",
    "DEFAULT_SLA_RULES",
    "DEFAULT_HOLIDAYS",
    # Domain Services
    "RuleRegistry",
    "SLACalculator",
    "DeveloperPerformanceAggregator",
    "IssueSLAPair",
]

"""
SLA Tracking Module
===================

Bounded context for Service Level Agreement compliance of tracker issues.

Responsibilities:
- Map tracker priority labels to canonical levels and their SLA rules
- Compute first-response and resolution status per issue
- Aggregate developer workload and compliance, plus team averages
- Detect transitions into at-risk/breached states for notifiers
- Hold the configurable settings (rules, business hours, holidays, project)
"""

__version__ = "1.0.0"

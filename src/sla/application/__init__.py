"""
SLA Application Layer
======================

Application layer for SLA tracking.

Contains:
- Services: Batch evaluation, dashboard summary, developer performance, transition detection
- DTOs: Data transfer objects for API serialization and tracker issue mapping

This layer depends on the domain layer and the settings provider interface,
but not on concrete infrastructure implementations.
"""

from sla.application.dto import (
    IssueSnapshotDTO,
    JiraIssueDTO,
    DeveloperDTO,
    EvaluateRequest,
    JiraEvaluateRequest,
    PerformanceRequest,
    RuleUpdateRequest,
    BusinessHoursUpdateRequest,
    HolidayRequest,
    ProjectKeyRequest,
    SLAClockResponse,
    SLAStatusResponse,
    DashboardSummary,
    EvaluateResponse,
    DeveloperPerformanceResponse,
    TeamAveragesResponse,
    PerformanceResponse,
)
from sla.application.services import (
    SLAService,
    SLATransition,
    SLATransitionDetector,
    ISLASettingsProvider,
)

__all__ = [
    # DTOs
    "IssueSnapshotDTO",
    "JiraIssueDTO",
    "DeveloperDTO",
    "EvaluateRequest",
    "JiraEvaluateRequest",
    "PerformanceRequest",
    "RuleUpdateRequest",
    "BusinessHoursUpdateRequest",
    "HolidayRequest",
    "ProjectKeyRequest",
    "SLAClockResponse",
    "SLAStatusResponse",
    "DashboardSummary",
    "EvaluateResponse",
    "DeveloperPerformanceResponse",
    "TeamAveragesResponse",
    "PerformanceResponse",
    # Services
    "SLAService",
    "SLATransition",
    "SLATransitionDetector",
    # Settings Interface
    "ISLASettingsProvider",
]

"""
SLA Domain Entities
====================

Pure Python domain objects for SLA tracking.

Following Domain-Driven Design principles, these objects contain
business logic and are free of infrastructure concerns. All of them are
immutable: every evaluation pass builds fresh instances.
"""

from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Optional

from config import Priority, SLAState, StatusCategory, RESOLVED_STATUS_NAMES
from core.exceptions import InvalidIssueDataException


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Interpret naive datetimes as UTC; leave aware ones untouched."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class IssueSnapshot:
    """
    Immutable view of a tracker issue at evaluation time.

    ``first_comment_at`` and ``resolved_at`` are expected to be on or after
    ``created_at``; that is not checked here.
    """

    key: str
    priority_name: Optional[str]
    created_at: datetime
    status_category: StatusCategory = StatusCategory.TODO
    status_name: Optional[str] = None
    first_comment_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    assignee_id: Optional[str] = None
    assignee_name: Optional[str] = None

    def __post_init__(self):
        """Reject snapshots the SLA clocks cannot be computed for."""
        if not self.key:
            raise InvalidIssueDataException(None, "issue key is required")
        if not isinstance(self.created_at, datetime):
            raise InvalidIssueDataException(self.key, "created_at timestamp is required")

        for name in ("created_at", "first_comment_at", "resolved_at", "updated_at"):
            object.__setattr__(self, name, ensure_utc(getattr(self, name)))

        if not isinstance(self.status_category, StatusCategory):
            try:
                object.__setattr__(self, "status_category", StatusCategory(self.status_category))
            except ValueError:
                raise InvalidIssueDataException(
                    self.key, f"unknown status category {self.status_category!r}"
                ) from None

    @property
    def is_resolved(self) -> bool:
        """Done category or a terminal status name, whichever the source got right."""
        if self.status_category == StatusCategory.DONE:
            return True
        return (self.status_name or "").strip().lower() in RESOLVED_STATUS_NAMES

    @property
    def has_first_comment(self) -> bool:
        return self.first_comment_at is not None


@dataclass(frozen=True)
class SLAClock:
    """One SLA leg (first response or resolution) at evaluation time."""

    deadline_hours: float
    created_at: datetime
    event_at: Optional[datetime]
    has_event: bool
    elapsed_minutes: int
    remaining_minutes: float
    percentage_used: float
    status: SLAState

    @property
    def deadline_at(self) -> datetime:
        """Wall-clock instant the leg is due."""
        return self.created_at + timedelta(hours=self.deadline_hours)

    def to_dict(self) -> dict:
        return {
            "deadline_hours": self.deadline_hours,
            "deadline_at": self.deadline_at.isoformat(),
            "event_at": self.event_at.isoformat() if self.event_at else None,
            "has_event": self.has_event,
            "elapsed_minutes": self.elapsed_minutes,
            "remaining_minutes": self.remaining_minutes,
            "percentage_used": self.percentage_used,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class SLAStatus:
    """
    Computed SLA state of one issue.

    Value object recomputed on every evaluation pass; never patched in place.
    """

    issue_key: str
    priority_raw: Optional[str]
    priority: Priority
    created_at: datetime
    first_response: SLAClock
    resolution: SLAClock
    overall_status: SLAState

    # First response
    @property
    def first_response_deadline(self) -> float:
        return self.first_response.deadline_hours

    @property
    def response_at(self) -> Optional[datetime]:
        return self.first_response.event_at

    @property
    def has_response(self) -> bool:
        return self.first_response.has_event

    @property
    def first_response_elapsed_minutes(self) -> int:
        return self.first_response.elapsed_minutes

    @property
    def first_response_remaining_minutes(self) -> float:
        return self.first_response.remaining_minutes

    @property
    def first_response_percentage_used(self) -> float:
        return self.first_response.percentage_used

    @property
    def first_response_status(self) -> SLAState:
        return self.first_response.status

    # Resolution
    @property
    def resolution_deadline(self) -> float:
        return self.resolution.deadline_hours

    @property
    def resolved_at(self) -> Optional[datetime]:
        return self.resolution.event_at

    @property
    def is_resolved(self) -> bool:
        return self.resolution.has_event

    @property
    def resolution_elapsed_minutes(self) -> int:
        return self.resolution.elapsed_minutes

    @property
    def resolution_remaining_minutes(self) -> float:
        return self.resolution.remaining_minutes

    @property
    def resolution_percentage_used(self) -> float:
        return self.resolution.percentage_used

    @property
    def resolution_status(self) -> SLAState:
        return self.resolution.status

    # Overall
    @property
    def is_at_risk(self) -> bool:
        return self.overall_status == SLAState.AT_RISK

    @property
    def is_breached(self) -> bool:
        return self.overall_status == SLAState.BREACHED

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "issue_key": self.issue_key,
            "priority_raw": self.priority_raw,
            "priority": self.priority.value,
            "created_at": self.created_at.isoformat(),
            "first_response": self.first_response.to_dict(),
            "resolution": self.resolution.to_dict(),
            "overall_status": self.overall_status.value,
            "is_at_risk": self.is_at_risk,
            "is_breached": self.is_breached,
        }


@dataclass(frozen=True)
class DeveloperIdentity:
    """An assignee as known to the tracker."""

    account_id: str
    display_name: str
    avatar_url: Optional[str] = None


@dataclass(frozen=True)
class DeveloperPerformance:
    """Workload and historical SLA performance of one assignee."""

    account_id: str
    display_name: str
    avatar_url: Optional[str]

    # Current workload
    total_active_issues: int
    critical_issues: int
    high_issues: int
    medium_issues: int
    low_issues: int
    at_risk_issues: int
    breached_issues: int

    # Historical performance
    total_resolved_issues: int
    sla_compliance_rate: float  # percentage
    first_response_compliance: float  # percentage
    average_first_response_time: float  # minutes
    average_resolution_time: float  # hours

    # Period (e.g. last 30 days)
    resolved_this_period: int
    breached_this_period: int
    compliance_rate_this_period: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class TeamAverages:
    """Arithmetic means across developer performances."""

    avg_compliance_rate: float = 0.0
    avg_response_time: float = 0.0
    avg_resolution_time: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)

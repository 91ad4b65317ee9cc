"""
SLA Application DTOs
=====================

Data Transfer Objects for the SLA API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses, and map the tracker's native issue shape
onto domain snapshots.
"""

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from config import STATUS_CATEGORY_KEYS, StatusCategory
from sla.domain import (
    DeveloperIdentity,
    DeveloperPerformance,
    IssueSnapshot,
    SLAClock,
    SLAStatus,
    TeamAverages,
)


# ========== Type Aliases for Literals ==========
PriorityStr = Literal["Critical", "High", "Medium", "Low"]
SLAStateStr = Literal["on-track", "at-risk", "breached", "met"]
StatusCategoryStr = Literal["todo", "in-progress", "done"]


# ========== Issue input ==========

class IssueSnapshotDTO(BaseModel):
    """Flat issue snapshot as supplied by an issue source."""
    key: str = Field(..., min_length=1, description="Issue key, e.g. SD-42")
    priority_name: Optional[str] = Field(None, description="Raw tracker priority label")
    created_at: datetime = Field(..., description="Issue creation timestamp")
    first_comment_at: Optional[datetime] = Field(None, description="Earliest comment timestamp")
    resolved_at: Optional[datetime] = Field(None, description="Resolution timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")
    status_name: Optional[str] = Field(None, description="Raw tracker status name")
    status_category: StatusCategoryStr = Field(default="todo", description="Status category")
    assignee_id: Optional[str] = None
    assignee_name: Optional[str] = None

    def to_domain(self) -> IssueSnapshot:
        """Convert to domain snapshot."""
        return IssueSnapshot(
            key=self.key,
            priority_name=self.priority_name,
            created_at=self.created_at,
            status_category=StatusCategory(self.status_category),
            status_name=self.status_name,
            first_comment_at=self.first_comment_at,
            resolved_at=self.resolved_at,
            updated_at=self.updated_at,
            assignee_id=self.assignee_id,
            assignee_name=self.assignee_name,
        )


# ========== Native tracker (Jira) issue shape ==========

class _JiraModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class JiraPriority(_JiraModel):
    name: str


class JiraStatusCategory(_JiraModel):
    key: str
    name: Optional[str] = None


class JiraStatus(_JiraModel):
    name: str
    status_category: Optional[JiraStatusCategory] = Field(None, alias="statusCategory")


class JiraUser(_JiraModel):
    account_id: str = Field(..., alias="accountId")
    display_name: str = Field(..., alias="displayName")
    avatar_urls: Dict[str, str] = Field(default_factory=dict, alias="avatarUrls")


class JiraComment(_JiraModel):
    created: datetime


class JiraCommentPage(_JiraModel):
    comments: List[JiraComment] = Field(default_factory=list)


class JiraIssueFields(_JiraModel):
    priority: Optional[JiraPriority] = None
    status: JiraStatus
    assignee: Optional[JiraUser] = None
    created: datetime
    updated: Optional[datetime] = None
    resolutiondate: Optional[datetime] = None
    comment: JiraCommentPage = Field(default_factory=JiraCommentPage)


class JiraIssueDTO(_JiraModel):
    """Subset of the tracker's issue JSON that SLA tracking reads."""
    key: str
    fields: JiraIssueFields

    @property
    def status_category(self) -> StatusCategory:
        category = self.fields.status.status_category
        if category is None:
            return StatusCategory.TODO
        return STATUS_CATEGORY_KEYS.get(category.key.lower(), StatusCategory.TODO)

    def to_snapshot(self) -> IssueSnapshot:
        """Map onto a domain snapshot; the earliest comment is the first response."""
        fields = self.fields
        comment_times = [c.created for c in fields.comment.comments]
        return IssueSnapshot(
            key=self.key,
            priority_name=fields.priority.name if fields.priority else None,
            created_at=fields.created,
            status_category=self.status_category,
            status_name=fields.status.name,
            first_comment_at=min(comment_times) if comment_times else None,
            resolved_at=fields.resolutiondate,
            updated_at=fields.updated,
            assignee_id=fields.assignee.account_id if fields.assignee else None,
            assignee_name=fields.assignee.display_name if fields.assignee else None,
        )

    def to_identity(self) -> Optional[DeveloperIdentity]:
        assignee = self.fields.assignee
        if assignee is None:
            return None
        return DeveloperIdentity(
            account_id=assignee.account_id,
            display_name=assignee.display_name,
            avatar_url=assignee.avatar_urls.get("48x48"),
        )


# ========== Request DTOs ==========

class DeveloperDTO(BaseModel):
    account_id: str = Field(..., min_length=1)
    display_name: str
    avatar_url: Optional[str] = None

    def to_domain(self) -> DeveloperIdentity:
        return DeveloperIdentity(
            account_id=self.account_id,
            display_name=self.display_name,
            avatar_url=self.avatar_url,
        )


class EvaluateRequest(BaseModel):
    """Request model for batch SLA evaluation."""
    issues: List[IssueSnapshotDTO] = Field(..., description="Issues to evaluate")
    now: Optional[datetime] = Field(None, description="Evaluation instant (defaults to server time)")


class JiraEvaluateRequest(BaseModel):
    """Batch evaluation over issues in the tracker's native JSON shape."""
    issues: List[JiraIssueDTO] = Field(..., description="Issues as returned by the tracker search API")
    now: Optional[datetime] = Field(None, description="Evaluation instant (defaults to server time)")


class PerformanceRequest(BaseModel):
    """Request model for developer performance."""
    issues: List[IssueSnapshotDTO]
    roster: Optional[List[DeveloperDTO]] = Field(
        None,
        description="Developers to report on (defaults to the issues' assignees)"
    )
    now: Optional[datetime] = None
    period_days: Optional[int] = Field(None, ge=1, description="Length of the 'this period' window")


class RuleUpdateRequest(BaseModel):
    """Partial update of one priority's SLA rule."""
    first_response_hours: Optional[float] = Field(None, gt=0)
    resolution_hours: Optional[float] = Field(None, gt=0)
    resolution_with_dependencies_hours: Optional[float] = Field(None, gt=0)
    business_hours_only: Optional[bool] = None


class BusinessHoursUpdateRequest(BaseModel):
    timezone: Optional[str] = None
    start_hour: Optional[int] = Field(None, ge=0, le=23)
    end_hour: Optional[int] = Field(None, ge=1, le=24)
    weekdays: Optional[List[int]] = None


class HolidayRequest(BaseModel):
    holiday: date = Field(..., description="ISO date, e.g. 2025-12-25")


class ProjectKeyRequest(BaseModel):
    project_key: str = Field(..., min_length=1)


# ========== Response DTOs ==========

class SLAClockResponse(BaseModel):
    """Response model for one SLA clock."""
    deadline_hours: float
    deadline_at: datetime
    event_at: Optional[datetime] = None
    has_event: bool
    elapsed_minutes: int
    remaining_minutes: float
    percentage_used: float
    status: SLAStateStr

    @classmethod
    def from_domain(cls, clock: SLAClock) -> "SLAClockResponse":
        return cls(
            deadline_hours=clock.deadline_hours,
            deadline_at=clock.deadline_at,
            event_at=clock.event_at,
            has_event=clock.has_event,
            elapsed_minutes=clock.elapsed_minutes,
            remaining_minutes=clock.remaining_minutes,
            percentage_used=clock.percentage_used,
            status=clock.status.value,
        )


class SLAStatusResponse(BaseModel):
    """Response model for the SLA status of one issue."""
    issue_key: str
    priority_raw: Optional[str] = None
    priority: PriorityStr
    created_at: datetime
    first_response: SLAClockResponse
    resolution: SLAClockResponse
    overall_status: SLAStateStr
    is_at_risk: bool
    is_breached: bool

    @classmethod
    def from_domain(cls, sla: SLAStatus) -> "SLAStatusResponse":
        return cls(
            issue_key=sla.issue_key,
            priority_raw=sla.priority_raw,
            priority=sla.priority.value,
            created_at=sla.created_at,
            first_response=SLAClockResponse.from_domain(sla.first_response),
            resolution=SLAClockResponse.from_domain(sla.resolution),
            overall_status=sla.overall_status.value,
            is_at_risk=sla.is_at_risk,
            is_breached=sla.is_breached,
        )


class DashboardSummary(BaseModel):
    """Summary statistics for a dashboard render."""
    total_issues: int = 0
    breached_count: int = 0
    at_risk_count: int = 0
    on_track_count: int = 0
    met_count: int = 0
    pending_response_count: int = Field(0, description="Unresolved issues without a first response")
    breach_rate: float = Field(0.0, description="Percentage of issues breached")


class EvaluateResponse(BaseModel):
    evaluated_at: datetime
    statuses: List[SLAStatusResponse]
    summary: DashboardSummary


class DeveloperPerformanceResponse(BaseModel):
    account_id: str
    display_name: str
    avatar_url: Optional[str] = None
    total_active_issues: int
    critical_issues: int
    high_issues: int
    medium_issues: int
    low_issues: int
    at_risk_issues: int
    breached_issues: int
    total_resolved_issues: int
    sla_compliance_rate: float
    first_response_compliance: float
    average_first_response_time: float = Field(..., description="Minutes")
    average_resolution_time: float = Field(..., description="Hours")
    resolved_this_period: int
    breached_this_period: int
    compliance_rate_this_period: float

    @classmethod
    def from_domain(cls, performance: DeveloperPerformance) -> "DeveloperPerformanceResponse":
        return cls(**performance.to_dict())


class TeamAveragesResponse(BaseModel):
    avg_compliance_rate: float
    avg_response_time: float
    avg_resolution_time: float

    @classmethod
    def from_domain(cls, averages: TeamAverages) -> "TeamAveragesResponse":
        return cls(**averages.to_dict())


class PerformanceResponse(BaseModel):
    evaluated_at: datetime
    developers: List[DeveloperPerformanceResponse]
    team_averages: TeamAveragesResponse

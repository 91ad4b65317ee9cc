"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain services and the settings provider.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (settings provider), not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from config import AlertType, SLAState, SLAType, AT_RISK_THRESHOLD_PERCENT, BREACH_THRESHOLD_PERCENT
from shared.infrastructure.logging import get_logger, log_latency
from sla.application.dto import DashboardSummary
from sla.domain import (
    DeveloperIdentity,
    DeveloperPerformance,
    DeveloperPerformanceAggregator,
    IssueSLAPair,
    IssueSnapshot,
    SLACalculator,
    SLASettings,
    SLAStatus,
    TeamAverages,
)
from sla.domain.entities import ensure_utc

logger = get_logger(__name__)


# ========== Settings Interface (Dependency Inversion) ==========

class ISLASettingsProvider(ABC):
    """Interface for SLA settings access."""

    @abstractmethod
    def get_settings(self) -> SLASettings:
        """Get the current SLA settings snapshot."""


# ========== Application Services ==========

class SLAService:
    """
    Service for batch SLA evaluation and dashboard statistics.

    Reads the settings snapshot and the clock once per call so that every
    issue in a batch is judged against the same rules and instant.
    """

    def __init__(self, settings_provider: ISLASettingsProvider):
        self._settings_provider = settings_provider

    @staticmethod
    def _now(now: Optional[datetime]) -> datetime:
        return ensure_utc(now) if now is not None else datetime.now(timezone.utc)

    def evaluate(
        self,
        issues: Iterable[IssueSnapshot],
        now: Optional[datetime] = None
    ) -> List[SLAStatus]:
        """
        Calculate SLA status for a batch of issues.

        Args:
            issues: Issue snapshots
            now: Evaluation instant (server time when omitted)

        Returns:
            One SLAStatus per issue, in input order
        """
        issues = list(issues)
        rules = self._settings_provider.get_settings().rules
        now = self._now(now)

        with log_latency(logger, "sla_evaluation", issue_count=len(issues)):
            return SLACalculator.calculate_batch(issues, rules, now)

    def evaluate_pairs(
        self,
        issues: Iterable[IssueSnapshot],
        now: Optional[datetime] = None
    ) -> List[IssueSLAPair]:
        issues = list(issues)
        return list(zip(issues, self.evaluate(issues, now)))

    @staticmethod
    def summarize(statuses: Sequence[SLAStatus]) -> DashboardSummary:
        """Counts by overall state plus unresolved issues still awaiting a response."""
        counts = {state: 0 for state in SLAState}
        for sla in statuses:
            counts[sla.overall_status] += 1

        total = len(statuses)
        return DashboardSummary(
            total_issues=total,
            breached_count=counts[SLAState.BREACHED],
            at_risk_count=counts[SLAState.AT_RISK],
            on_track_count=counts[SLAState.ON_TRACK],
            met_count=counts[SLAState.MET],
            pending_response_count=sum(
                1 for sla in statuses if not sla.has_response and not sla.is_resolved
            ),
            breach_rate=(counts[SLAState.BREACHED] / total * 100) if total > 0 else 0.0,
        )

    def developer_performance(
        self,
        issues: Iterable[IssueSnapshot],
        roster: Optional[Iterable[DeveloperIdentity]] = None,
        now: Optional[datetime] = None,
        period_days: Optional[int] = None
    ) -> Tuple[List[DeveloperPerformance], TeamAverages]:
        """
        Per-developer performance and team averages for a batch of issues.

        The roster defaults to the distinct assignees of ``issues``.
        """
        issues = list(issues)
        now = self._now(now)
        pairs = self.evaluate_pairs(issues, now)

        if roster is None:
            roster = DeveloperPerformanceAggregator.roster_from_issues(issues)
        period_start = now - timedelta(days=period_days) if period_days else None

        performances = DeveloperPerformanceAggregator.aggregate(pairs, roster, period_start)
        averages = DeveloperPerformanceAggregator.team_averages(performances)

        logger.info(
            "Developer performance aggregated",
            extra={"developer_count": len(performances), "issue_count": len(issues)}
        )
        return performances, averages


# ========== Transition Detection ==========

@dataclass(frozen=True)
class SLATransition:
    """
    An issue entering an at-risk or breached state.

    ``clock`` is None for the overall status, ``SLAType.RESPONSE`` for the
    first-response leg.
    """
    issue_key: str
    alert_type: AlertType
    clock: Optional[SLAType]
    percentage_used: float

    @property
    def message(self) -> str:
        pct = f"{self.percentage_used:.0f}% time used"
        if self.clock == SLAType.RESPONSE:
            if self.alert_type == AlertType.BREACH:
                return f"{self.issue_key} has not received a first response within the SLA deadline"
            return f"{self.issue_key} needs a first response soon ({pct})"
        if self.alert_type == AlertType.BREACH:
            return f"{self.issue_key} has breached its SLA deadline ({pct})"
        return f"{self.issue_key} is approaching its SLA deadline ({pct})"


class SLATransitionDetector:
    """
    Compares two successive statuses of one issue.

    Holds no history: the caller keeps the previous status. A missing
    previous status means every current alert condition is new.
    """

    @staticmethod
    def detect(
        previous: Optional[SLAStatus],
        current: SLAStatus
    ) -> List[SLATransition]:
        transitions = []

        if current.is_at_risk and (previous is None or not previous.is_at_risk):
            transitions.append(SLATransition(
                current.issue_key, AlertType.WARNING, None, current.resolution_percentage_used
            ))

        if current.is_breached and (previous is None or not previous.is_breached):
            transitions.append(SLATransition(
                current.issue_key, AlertType.BREACH, None, current.resolution_percentage_used
            ))

        if not current.has_response:
            pct = current.first_response_percentage_used
            prev_pct = previous.first_response_percentage_used if previous else None

            if AT_RISK_THRESHOLD_PERCENT <= pct < BREACH_THRESHOLD_PERCENT:
                if prev_pct is None or prev_pct < AT_RISK_THRESHOLD_PERCENT:
                    transitions.append(SLATransition(
                        current.issue_key, AlertType.WARNING, SLAType.RESPONSE, pct
                    ))

            if pct >= BREACH_THRESHOLD_PERCENT:
                if prev_pct is None or prev_pct < BREACH_THRESHOLD_PERCENT:
                    transitions.append(SLATransition(
                        current.issue_key, AlertType.BREACH, SLAType.RESPONSE, pct
                    ))

        if transitions:
            logger.info(
                "SLA transitions detected",
                extra={
                    "issue_key": current.issue_key,
                    "alert_types": [t.alert_type.value for t in transitions],
                }
            )
        return transitions

    @staticmethod
    def detect_batch(
        previous: Iterable[SLAStatus],
        current: Iterable[SLAStatus]
    ) -> List[SLATransition]:
        """Match statuses by issue key and detect transitions for each."""
        by_key = {sla.issue_key: sla for sla in previous}
        transitions = []
        for sla in current:
            transitions.extend(SLATransitionDetector.detect(by_key.get(sla.issue_key), sla))
        return transitions

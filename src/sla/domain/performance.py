"""
Developer Performance
=====================

Folds evaluated issues into per-assignee workload and compliance figures.

Everything here is total: empty inputs give zeroed results, never NaN.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from config import Priority, SLAState, BREACH_THRESHOLD_PERCENT, FALLBACK_PRIORITY
from sla.domain.entities import (
    DeveloperIdentity,
    DeveloperPerformance,
    IssueSnapshot,
    SLAStatus,
    TeamAverages,
    ensure_utc,
)
from sla.domain.value_objects import RuleRegistry

IssueSLAPair = Tuple[IssueSnapshot, SLAStatus]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _rate(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def _canonical_priority(sla: SLAStatus) -> Priority:
    """Level of the raw label itself, not of the rule that happened to apply."""
    return RuleRegistry.normalize(sla.priority_raw) or FALLBACK_PRIORITY


class DeveloperPerformanceAggregator:
    """Stateless aggregation over (issue, SLA status) pairs."""

    @staticmethod
    def roster_from_issues(issues: Iterable[IssueSnapshot]) -> List[DeveloperIdentity]:
        """Distinct assignees in first-seen order."""
        seen = {}
        for issue in issues:
            if issue.assignee_id and issue.assignee_id not in seen:
                seen[issue.assignee_id] = DeveloperIdentity(
                    account_id=issue.assignee_id,
                    display_name=issue.assignee_name or issue.assignee_id,
                )
        return list(seen.values())

    @staticmethod
    def for_developer(
        developer: DeveloperIdentity,
        pairs: Sequence[IssueSLAPair],
        period_start: Optional[datetime] = None
    ) -> DeveloperPerformance:
        """Performance of one developer over the pairs assigned to them."""
        mine = [(issue, sla) for issue, sla in pairs if issue.assignee_id == developer.account_id]
        active = [sla for _, sla in mine if not sla.is_resolved]
        resolved = [sla for _, sla in mine if sla.is_resolved]
        responded = [sla for _, sla in mine if sla.has_response]

        def count_priority(priority: Priority) -> int:
            return sum(1 for sla in active if _canonical_priority(sla) == priority)

        met = sum(1 for sla in resolved if sla.resolution_status == SLAState.MET)
        responded_in_time = sum(
            1 for sla in responded
            if sla.first_response_percentage_used <= BREACH_THRESHOLD_PERCENT
        )

        if period_start is None:
            in_period = resolved
        else:
            period_start = ensure_utc(period_start)
            in_period = [sla for sla in resolved if sla.resolved_at and sla.resolved_at >= period_start]
        met_in_period = sum(1 for sla in in_period if sla.resolution_status == SLAState.MET)

        return DeveloperPerformance(
            account_id=developer.account_id,
            display_name=developer.display_name,
            avatar_url=developer.avatar_url,
            total_active_issues=len(active),
            critical_issues=count_priority(Priority.CRITICAL),
            high_issues=count_priority(Priority.HIGH),
            medium_issues=count_priority(Priority.MEDIUM),
            low_issues=count_priority(Priority.LOW),
            at_risk_issues=sum(1 for sla in active if sla.is_at_risk),
            breached_issues=sum(1 for sla in active if sla.is_breached),
            total_resolved_issues=len(resolved),
            sla_compliance_rate=_rate(met, len(resolved)),
            first_response_compliance=_rate(responded_in_time, len(responded)),
            average_first_response_time=_mean([sla.first_response_elapsed_minutes for sla in responded]),
            average_resolution_time=_mean([sla.resolution_elapsed_minutes for sla in resolved]) / 60,
            resolved_this_period=len(in_period),
            breached_this_period=len(in_period) - met_in_period,
            compliance_rate_this_period=_rate(met_in_period, len(in_period)),
        )

    @staticmethod
    def aggregate(
        pairs: Iterable[IssueSLAPair],
        roster: Iterable[DeveloperIdentity],
        period_start: Optional[datetime] = None
    ) -> List[DeveloperPerformance]:
        """
        Per-developer performance for every roster member.

        Pairs assigned to someone outside the roster (or to nobody) are
        ignored.

        Args:
            pairs: (issue, SLA status) pairs from one evaluation pass
            roster: Developers to report on, in output order
            period_start: Start of the "this period" window; all resolved
                issues count when omitted

        Returns:
            One DeveloperPerformance per roster member
        """
        pairs = list(pairs)
        return [
            DeveloperPerformanceAggregator.for_developer(developer, pairs, period_start)
            for developer in roster
        ]

    @staticmethod
    def team_averages(performances: Sequence[DeveloperPerformance]) -> TeamAverages:
        """Mean compliance, response and resolution time across developers."""
        if not performances:
            return TeamAverages()
        return TeamAverages(
            avg_compliance_rate=_mean([p.sla_compliance_rate for p in performances]),
            avg_response_time=_mean([p.average_first_response_time for p in performances]),
            avg_resolution_time=_mean([p.average_resolution_time for p in performances]),
        )

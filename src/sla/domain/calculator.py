"""
SLA Calculator
==============

Pure functions mapping an issue snapshot and a rule set to its SLA status.

No I/O and no hidden clock reads: ``now`` is either passed in or read once
per call (once per batch for ``calculate_batch``).
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from config import (
    SLAState,
    AT_RISK_THRESHOLD_PERCENT,
    BREACH_THRESHOLD_PERCENT,
)
from sla.domain.entities import IssueSnapshot, SLAClock, SLAStatus, ensure_utc
from sla.domain.value_objects import RuleRegistry, RuleSet, SLARule


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class - all SLA calculation logic in one place.
    """

    @staticmethod
    def elapsed_minutes(start: datetime, end: datetime) -> int:
        """Whole minutes between two instants, truncated toward zero."""
        return int((end - start).total_seconds() / 60)

    @staticmethod
    def percentage_used(elapsed_minutes: float, deadline_minutes: float) -> float:
        return elapsed_minutes / deadline_minutes * 100

    @staticmethod
    def running_status(percentage_used: float) -> SLAState:
        """Status of a clock whose event has not happened yet."""
        if percentage_used >= BREACH_THRESHOLD_PERCENT:
            return SLAState.BREACHED
        if percentage_used >= AT_RISK_THRESHOLD_PERCENT:
            return SLAState.AT_RISK
        return SLAState.ON_TRACK

    @staticmethod
    def worse_of(first: SLAState, second: SLAState) -> SLAState:
        """Higher-severity state; ``first`` wins ties."""
        return second if second.severity > first.severity else first

    @staticmethod
    def first_response_clock(
        issue: IssueSnapshot,
        rule: SLARule,
        now: datetime
    ) -> SLAClock:
        """
        First-response leg.

        Any recorded response counts as met, however late it came; the
        lateness stays visible only through ``percentage_used``.
        """
        has_response = issue.first_comment_at is not None
        until = issue.first_comment_at if has_response else now

        elapsed = SLACalculator.elapsed_minutes(issue.created_at, until)
        deadline_minutes = rule.first_response_minutes
        pct = SLACalculator.percentage_used(elapsed, deadline_minutes)

        status = SLAState.MET if has_response else SLACalculator.running_status(pct)

        return SLAClock(
            deadline_hours=rule.first_response_hours,
            created_at=issue.created_at,
            event_at=issue.first_comment_at,
            has_event=has_response,
            elapsed_minutes=elapsed,
            remaining_minutes=deadline_minutes - elapsed,
            percentage_used=pct,
            status=status,
        )

    @staticmethod
    def resolution_clock(
        issue: IssueSnapshot,
        rule: SLARule,
        now: datetime
    ) -> SLAClock:
        """
        Resolution leg.

        Unlike first response, a completed resolution is re-checked against
        the deadline: met only when ``percentage_used <= 100``.
        """
        is_resolved = issue.is_resolved
        if is_resolved:
            resolved_at = issue.resolved_at or issue.updated_at or now
        else:
            resolved_at = None
        until = resolved_at if is_resolved else now

        elapsed = SLACalculator.elapsed_minutes(issue.created_at, until)
        deadline_minutes = rule.resolution_minutes
        pct = SLACalculator.percentage_used(elapsed, deadline_minutes)

        if is_resolved:
            status = SLAState.MET if pct <= BREACH_THRESHOLD_PERCENT else SLAState.BREACHED
        else:
            status = SLACalculator.running_status(pct)

        return SLAClock(
            deadline_hours=rule.resolution_hours,
            created_at=issue.created_at,
            event_at=resolved_at,
            has_event=is_resolved,
            elapsed_minutes=elapsed,
            remaining_minutes=deadline_minutes - elapsed,
            percentage_used=pct,
            status=status,
        )

    @staticmethod
    def calculate(
        issue: IssueSnapshot,
        rules: Optional[RuleSet] = None,
        now: Optional[datetime] = None
    ) -> SLAStatus:
        """
        Calculate the SLA status of one issue.

        Args:
            issue: Issue snapshot to evaluate
            rules: Rule set keyed by canonical priority (defaults to built-in rules)
            now: Evaluation instant; read from the UTC clock when omitted

        Returns:
            SLAStatus for the issue at ``now``
        """
        now = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
        rule = RuleRegistry.resolve(issue.priority_name, rules)

        first_response = SLACalculator.first_response_clock(issue, rule, now)
        resolution = SLACalculator.resolution_clock(issue, rule, now)

        return SLAStatus(
            issue_key=issue.key,
            priority_raw=issue.priority_name,
            priority=rule.priority,
            created_at=issue.created_at,
            first_response=first_response,
            resolution=resolution,
            overall_status=SLACalculator.worse_of(first_response.status, resolution.status),
        )

    @staticmethod
    def calculate_batch(
        issues: Iterable[IssueSnapshot],
        rules: Optional[RuleSet] = None,
        now: Optional[datetime] = None
    ) -> List[SLAStatus]:
        """Evaluate many issues against a single captured ``now``."""
        now = ensure_utc(now) if now is not None else datetime.now(timezone.utc)
        return [SLACalculator.calculate(issue, rules, now) for issue in issues]

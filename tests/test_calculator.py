from datetime import datetime, timedelta

import pytest

from config import Priority, SLAState, StatusCategory
from core.exceptions import InvalidIssueDataException
from sla.domain import DEFAULT_SLA_RULES, IssueSnapshot, SLACalculator, SLARule


def test_critical_without_response_after_three_hours_is_breached(make_issue, now):
    issue = make_issue(priority="Critical", age=timedelta(hours=3))

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.priority == Priority.CRITICAL
    assert sla.has_response is False
    assert sla.first_response_status == SLAState.BREACHED
    assert sla.first_response_percentage_used > 100
    assert sla.first_response_remaining_minutes == -60


def test_critical_within_response_window_is_on_track(make_issue, now):
    sla = SLACalculator.calculate(make_issue(priority="Critical", age=timedelta(hours=1)), now=now)

    assert sla.first_response_status == SLAState.ON_TRACK
    assert sla.first_response_percentage_used < 75
    assert sla.first_response_remaining_minutes == 60
    assert sla.is_breached is False


def test_critical_at_75_percent_is_at_risk(make_issue, now):
    sla = SLACalculator.calculate(make_issue(priority="Critical", age=timedelta(minutes=90)), now=now)

    assert sla.first_response_percentage_used == 75
    assert sla.first_response_status == SLAState.AT_RISK
    assert sla.is_at_risk is True


def test_unanswered_at_exact_deadline_is_breached(make_issue, now):
    sla = SLACalculator.calculate(make_issue(priority="Critical", age=timedelta(hours=2)), now=now)

    assert sla.first_response_percentage_used == 100
    assert sla.first_response_status == SLAState.BREACHED


def test_high_resolution_half_used_is_on_track(make_issue, now):
    sla = SLACalculator.calculate(make_issue(priority="High", age=timedelta(hours=12)), now=now)

    assert sla.resolution_deadline == DEFAULT_SLA_RULES[Priority.HIGH].resolution_hours == 24
    assert sla.is_resolved is False
    assert sla.resolution_percentage_used == pytest.approx(50)
    assert sla.resolution_status == SLAState.ON_TRACK


def test_critical_resolved_after_deadline_is_breached(make_issue, now):
    issue = make_issue(priority="Critical", age=timedelta(hours=10), resolved_after=timedelta(hours=10))

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.is_resolved is True
    assert sla.resolved_at == now
    assert sla.resolution_status == SLAState.BREACHED
    assert sla.resolution_percentage_used > 100


def test_resolved_exactly_at_deadline_is_met(make_issue, now):
    issue = make_issue(priority="Critical", age=timedelta(hours=12), resolved_after=timedelta(hours=8))

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.resolution_percentage_used == 100
    assert sla.resolution_status == SLAState.MET


def test_unknown_priority_uses_medium_deadlines(make_issue, now):
    sla = SLACalculator.calculate(make_issue(priority="Blocker"), now=now)

    assert sla.priority_raw == "Blocker"
    assert sla.priority == Priority.MEDIUM
    assert sla.resolution_deadline == DEFAULT_SLA_RULES[Priority.MEDIUM].resolution_hours
    assert sla.first_response_deadline == DEFAULT_SLA_RULES[Priority.MEDIUM].first_response_hours


def test_late_first_response_still_counts_as_met(make_issue, now):
    # Any response is "met" on the first-response leg; only the percentage shows it was late.
    issue = make_issue(priority="Critical", age=timedelta(hours=5), response_after=timedelta(hours=3))

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.first_response_status == SLAState.MET
    assert sla.first_response_percentage_used == 150
    assert sla.first_response_elapsed_minutes == 180


@pytest.mark.parametrize("minutes", [90, 100, 119])
def test_first_response_between_75_and_100_percent_is_at_risk(make_issue, now, minutes):
    sla = SLACalculator.calculate(make_issue(priority="Critical", age=timedelta(minutes=minutes)), now=now)

    assert 75 <= sla.first_response_percentage_used < 100
    assert sla.first_response_status == SLAState.AT_RISK


@pytest.mark.parametrize("hours", [18, 20, 23.9])
def test_resolution_between_75_and_100_percent_is_at_risk(make_issue, now, hours):
    issue = make_issue(priority="High", age=timedelta(hours=hours), response_after=timedelta(minutes=5))

    sla = SLACalculator.calculate(issue, now=now)

    assert 75 <= sla.resolution_percentage_used < 100
    assert sla.resolution_status == SLAState.AT_RISK
    assert sla.overall_status == SLAState.AT_RISK


def test_overall_keeps_breached_first_response_over_on_track_resolution(make_issue, now):
    sla = SLACalculator.calculate(make_issue(priority="Critical", age=timedelta(hours=3)), now=now)

    assert sla.resolution_status == SLAState.ON_TRACK
    assert sla.overall_status == SLAState.BREACHED
    assert sla.is_breached is True
    assert sla.is_at_risk is False


def test_overall_is_met_when_both_legs_met(make_issue, now):
    issue = make_issue(
        priority="Medium",
        age=timedelta(hours=30),
        response_after=timedelta(hours=1),
        resolved_after=timedelta(hours=20),
    )

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.first_response_status == SLAState.MET
    assert sla.resolution_status == SLAState.MET
    assert sla.overall_status == SLAState.MET


def test_overall_prefers_met_over_on_track(make_issue, now):
    issue = make_issue(priority="Low", age=timedelta(hours=2), response_after=timedelta(minutes=30))

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.resolution_status == SLAState.ON_TRACK
    assert sla.overall_status == SLAState.MET


def test_terminal_status_name_counts_as_resolved(make_issue, now):
    issue = make_issue(
        priority="High",
        age=timedelta(hours=4),
        resolved_after=timedelta(hours=2),
        status_category=StatusCategory.IN_PROGRESS,
        status_name="Closed",
    )

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.is_resolved is True
    assert sla.resolution_elapsed_minutes == 120


def test_resolution_date_on_reopened_issue_is_ignored(make_issue, now):
    issue = make_issue(
        priority="High",
        age=timedelta(hours=6),
        resolved_after=timedelta(hours=1),
        status_category=StatusCategory.TODO,
        status_name="Reopened",
    )

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.is_resolved is False
    assert sla.resolved_at is None
    assert sla.resolution_elapsed_minutes == 360


def test_resolved_without_resolution_date_uses_updated_at(make_issue, now):
    issue = make_issue(
        priority="High",
        age=timedelta(hours=6),
        status_category=StatusCategory.DONE,
        updated_at=now - timedelta(hours=2),
    )

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.is_resolved is True
    assert sla.resolved_at == now - timedelta(hours=2)
    assert sla.resolution_elapsed_minutes == 240


def test_elapsed_minutes_are_truncated(make_issue, now):
    sla = SLACalculator.calculate(
        make_issue(priority="Critical", age=timedelta(minutes=89, seconds=59)), now=now
    )

    assert sla.first_response_elapsed_minutes == 89
    assert sla.first_response_status == SLAState.ON_TRACK


def test_deadlines_are_anchored_on_creation(make_issue, now):
    issue = make_issue(priority="Critical", age=timedelta(hours=1))

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.first_response.deadline_at == issue.created_at + timedelta(hours=2)
    assert sla.resolution.deadline_at == issue.created_at + timedelta(hours=8)


def test_calculation_is_deterministic(make_issue, now):
    issue = make_issue(priority="High", age=timedelta(hours=7), response_after=timedelta(hours=1))

    assert SLACalculator.calculate(issue, now=now) == SLACalculator.calculate(issue, now=now)


def test_custom_rules_are_applied(make_issue, now):
    rules = dict(DEFAULT_SLA_RULES)
    rules[Priority.HIGH] = SLARule(
        priority=Priority.HIGH,
        first_response_hours=1,
        resolution_hours=4,
        resolution_with_dependencies_hours=8,
    )

    sla = SLACalculator.calculate(make_issue(priority="High", age=timedelta(hours=3)), rules, now)

    assert sla.first_response_status == SLAState.BREACHED
    assert sla.resolution_status == SLAState.AT_RISK


def test_batch_uses_one_evaluation_instant(make_issue, now):
    issues = [make_issue(key=f"SD-{i}", priority="Low", age=timedelta(hours=3)) for i in range(3)]

    statuses = SLACalculator.calculate_batch(issues, now=now)

    assert [s.issue_key for s in statuses] == ["SD-0", "SD-1", "SD-2"]
    assert {s.first_response_elapsed_minutes for s in statuses} == {180}


def test_naive_timestamps_are_treated_as_utc(now):
    issue = IssueSnapshot(
        key="SD-9",
        priority_name="Critical",
        created_at=datetime(2025, 3, 3, 11, 0),
    )

    sla = SLACalculator.calculate(issue, now=now)

    assert sla.first_response_elapsed_minutes == 60


def test_snapshot_without_created_at_is_rejected():
    with pytest.raises(InvalidIssueDataException) as excinfo:
        IssueSnapshot(key="SD-3", priority_name="High", created_at=None)

    assert excinfo.value.issue_key == "SD-3"


def test_snapshot_without_key_is_rejected(now):
    with pytest.raises(InvalidIssueDataException):
        IssueSnapshot(key="", priority_name="High", created_at=now)


def test_status_to_dict_is_serialisable(make_issue, now):
    data = SLACalculator.calculate(make_issue(priority="Critical", age=timedelta(hours=3)), now=now).to_dict()

    assert data["overall_status"] == "breached"
    assert data["first_response"]["status"] == "breached"
    assert data["resolution"]["event_at"] is None
    assert data["is_breached"] is True

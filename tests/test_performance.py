from datetime import timedelta

import pytest

from config import Priority
from sla.domain import (
    DEFAULT_SLA_RULES,
    DeveloperIdentity,
    DeveloperPerformanceAggregator,
    SLACalculator,
    TeamAverages,
)

ANA = DeveloperIdentity(account_id="acc-1", display_name="Ana Reyes")
BEN = DeveloperIdentity(account_id="acc-2", display_name="Ben Cruz")


def _pairs(issues, now):
    return list(zip(issues, SLACalculator.calculate_batch(issues, now=now)))


def test_workload_and_compliance(developer_issues, now):
    perf = DeveloperPerformanceAggregator.for_developer(ANA, _pairs(developer_issues, now))

    assert perf.total_active_issues == 2
    assert (perf.critical_issues, perf.high_issues, perf.medium_issues, perf.low_issues) == (1, 1, 0, 0)
    assert perf.at_risk_issues == 1
    assert perf.breached_issues == 1
    assert perf.total_resolved_issues == 2
    assert perf.sla_compliance_rate == 50


def test_response_and_resolution_averages(developer_issues, now):
    perf = DeveloperPerformanceAggregator.for_developer(ANA, _pairs(developer_issues, now))

    assert perf.average_first_response_time == 260
    assert perf.first_response_compliance == pytest.approx(200 / 3)
    assert perf.average_resolution_time == 85


def test_all_resolved_issues_count_without_period(developer_issues, now):
    perf = DeveloperPerformanceAggregator.for_developer(ANA, _pairs(developer_issues, now))

    assert (perf.resolved_this_period, perf.breached_this_period) == (2, 1)
    assert perf.compliance_rate_this_period == 50


@pytest.mark.parametrize(
    "days, expected",
    [
        (30, (2, 1, 50)),
        (1, (1, 0, 100)),
    ],
)
def test_period_window_filters_by_resolution_time(developer_issues, now, days, expected):
    perf = DeveloperPerformanceAggregator.for_developer(
        ANA, _pairs(developer_issues, now), period_start=now - timedelta(days=days)
    )

    assert (perf.resolved_this_period, perf.breached_this_period, perf.compliance_rate_this_period) == expected


def test_developer_without_issues_gets_zeros(developer_issues, now):
    perf = DeveloperPerformanceAggregator.for_developer(BEN, _pairs(developer_issues, now))

    assert perf.display_name == "Ben Cruz"
    assert perf.total_active_issues == 0
    assert perf.total_resolved_issues == 0
    assert perf.sla_compliance_rate == 0
    assert perf.first_response_compliance == 0
    assert perf.average_first_response_time == 0
    assert perf.average_resolution_time == 0
    assert perf.compliance_rate_this_period == 0


def test_aggregate_keeps_roster_order_and_team_averages(developer_issues, now):
    performances = DeveloperPerformanceAggregator.aggregate(_pairs(developer_issues, now), [BEN, ANA])

    assert [p.account_id for p in performances] == ["acc-2", "acc-1"]

    averages = DeveloperPerformanceAggregator.team_averages(performances)
    assert averages.avg_compliance_rate == 25
    assert averages.avg_response_time == 130
    assert averages.avg_resolution_time == 42.5


def test_unassigned_and_unknown_assignees_are_ignored(make_issue, now):
    issues = [
        make_issue(key="SD-7", age=timedelta(hours=1)),
        make_issue(key="SD-8", age=timedelta(hours=1), assignee_id="acc-9"),
    ]

    performances = DeveloperPerformanceAggregator.aggregate(_pairs(issues, now), [ANA])

    assert performances[0].total_active_issues == 0


def test_empty_inputs():
    assert DeveloperPerformanceAggregator.aggregate([], []) == []
    assert DeveloperPerformanceAggregator.team_averages([]) == TeamAverages()


def test_unknown_priority_counts_as_medium_workload(make_issue, now):
    issues = [make_issue(priority="Blocker", assignee_id="acc-1")]

    perf = DeveloperPerformanceAggregator.for_developer(ANA, _pairs(issues, now))

    assert perf.medium_issues == 1


def test_roster_from_issues_is_first_seen_order(make_issue):
    issues = [
        make_issue(key="SD-1", assignee_id="acc-2", assignee_name="Ben Cruz"),
        make_issue(key="SD-2"),
        make_issue(key="SD-3", assignee_id="acc-1"),
        make_issue(key="SD-4", assignee_id="acc-2", assignee_name="Ben Cruz"),
    ]

    roster = DeveloperPerformanceAggregator.roster_from_issues(issues)

    assert roster == [
        DeveloperIdentity(account_id="acc-2", display_name="Ben Cruz"),
        DeveloperIdentity(account_id="acc-1", display_name="acc-1"),
    ]


def test_workload_counts_label_level_when_rule_set_lacks_it(make_issue, now):
    medium_only = {Priority.MEDIUM: DEFAULT_SLA_RULES[Priority.MEDIUM]}
    issues = [make_issue(priority="Lowest", assignee_id="acc-1")]
    pairs = list(zip(issues, SLACalculator.calculate_batch(issues, medium_only, now)))

    perf = DeveloperPerformanceAggregator.for_developer(ANA, pairs)

    assert pairs[0][1].priority == Priority.MEDIUM
    assert (perf.low_issues, perf.medium_issues) == (1, 0)

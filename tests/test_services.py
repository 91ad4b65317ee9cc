from datetime import timedelta

from config import AlertType, SLAState, SLAType
from sla.application import SLAService, SLATransitionDetector
from sla.domain import DeveloperIdentity, SLACalculator


def test_evaluate_uses_store_rules(store, make_issue, now):
    issue = make_issue(priority="Critical", age=timedelta(hours=3))
    service = SLAService(store)

    assert service.evaluate([issue], now)[0].first_response_status == SLAState.BREACHED

    store.update_rule("Critical", first_response_hours=4)

    assert service.evaluate([issue], now)[0].first_response_status == SLAState.AT_RISK


def test_summary_counts(store, developer_issues, now):
    service = SLAService(store)

    summary = service.summarize(service.evaluate(developer_issues, now))

    assert summary.total_issues == 4
    assert summary.breached_count == 2
    assert summary.at_risk_count == 1
    assert summary.met_count == 1
    assert summary.on_track_count == 0
    assert summary.pending_response_count == 1
    assert summary.breach_rate == 50


def test_summary_of_nothing():
    summary = SLAService.summarize([])

    assert summary.total_issues == 0
    assert summary.breach_rate == 0


def test_developer_performance_defaults_roster_to_assignees(store, developer_issues, now):
    performances, averages = SLAService(store).developer_performance(developer_issues, now=now)

    assert [p.account_id for p in performances] == ["acc-1"]
    assert performances[0].display_name == "Ana Reyes"
    assert averages.avg_compliance_rate == 50


def test_developer_performance_with_period(store, developer_issues, now):
    roster = [DeveloperIdentity(account_id="acc-1", display_name="Ana Reyes")]

    performances, _ = SLAService(store).developer_performance(
        developer_issues, roster=roster, now=now, period_days=1
    )

    assert performances[0].resolved_this_period == 1
    assert performances[0].compliance_rate_this_period == 100


def _status_at(issue, instant):
    return SLACalculator.calculate(issue, now=instant)


def test_first_evaluation_reports_current_breaches(make_issue, now):
    current = _status_at(make_issue(priority="Critical", age=timedelta(hours=3)), now)

    transitions = SLATransitionDetector.detect(None, current)

    assert [(t.alert_type, t.clock) for t in transitions] == [
        (AlertType.BREACH, None),
        (AlertType.BREACH, SLAType.RESPONSE),
    ]


def test_crossing_into_breach(make_issue, now):
    issue = make_issue(priority="Critical", age=timedelta(hours=3))
    previous = _status_at(issue, now - timedelta(minutes=80))

    transitions = SLATransitionDetector.detect(previous, _status_at(issue, now))

    assert previous.overall_status == SLAState.AT_RISK
    assert {t.alert_type for t in transitions} == {AlertType.BREACH}
    assert len(transitions) == 2


def test_crossing_into_at_risk(make_issue, now):
    issue = make_issue(priority="Critical", age=timedelta(minutes=100))
    previous = _status_at(issue, now - timedelta(minutes=20))

    transitions = SLATransitionDetector.detect(previous, _status_at(issue, now))

    assert [(t.alert_type, t.clock) for t in transitions] == [
        (AlertType.WARNING, None),
        (AlertType.WARNING, SLAType.RESPONSE),
    ]


def test_unchanged_state_reports_nothing(make_issue, now):
    status = _status_at(make_issue(priority="Critical", age=timedelta(hours=3)), now)

    assert SLATransitionDetector.detect(status, status) == []


def test_detect_batch_matches_by_key(make_issue, now):
    breached = make_issue(key="SD-1", priority="Critical", age=timedelta(hours=3))
    fresh = make_issue(key="SD-2", priority="Low", age=timedelta(minutes=10))
    previous = [_status_at(breached, now)]
    current = [_status_at(breached, now), _status_at(fresh, now)]

    assert SLATransitionDetector.detect_batch(previous, current) == []

    late = make_issue(key="SD-3", priority="Critical", age=timedelta(hours=5))
    transitions = SLATransitionDetector.detect_batch(previous, current + [_status_at(late, now)])

    assert {t.issue_key for t in transitions} == {"SD-3"}


def test_transition_messages(make_issue, now):
    current = _status_at(make_issue(key="SD-5", priority="Critical", age=timedelta(hours=3)), now)

    overall, response = SLATransitionDetector.detect(None, current)

    assert overall.message == "SD-5 has breached its SLA deadline (38% time used)"
    assert response.message == "SD-5 has not received a first response within the SLA deadline"

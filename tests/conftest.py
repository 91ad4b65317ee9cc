from datetime import datetime, timedelta, timezone

import pytest

from config import StatusCategory
from sla.domain import IssueSnapshot
from sla.infrastructure import SLASettingsStore

NOW = datetime(2025, 3, 3, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_issue():
    """Factory for snapshots created ``age`` before NOW."""

    def _make(
        key="SD-1",
        priority="High",
        age=timedelta(hours=1),
        response_after=None,
        resolved_after=None,
        status_category=None,
        **overrides,
    ):
        created = NOW - age
        if status_category is None:
            status_category = StatusCategory.DONE if resolved_after is not None else StatusCategory.IN_PROGRESS
        fields = dict(
            key=key,
            priority_name=priority,
            created_at=created,
            status_category=status_category,
            first_comment_at=created + response_after if response_after is not None else None,
            resolved_at=created + resolved_after if resolved_after is not None else None,
        )
        fields.update(overrides)
        return IssueSnapshot(**fields)

    return _make


@pytest.fixture
def store():
    return SLASettingsStore()


@pytest.fixture
def developer_issues(make_issue):
    """Four issues for acc-1: breached, at risk, resolved in time, resolved late."""
    owner = dict(assignee_id="acc-1", assignee_name="Ana Reyes")
    return [
        make_issue(key="SD-1", priority="Critical", age=timedelta(hours=3), **owner),
        make_issue(
            key="SD-2", priority="High", age=timedelta(hours=20),
            response_after=timedelta(hours=1), **owner
        ),
        make_issue(
            key="SD-3", priority="Medium", age=timedelta(hours=30),
            response_after=timedelta(hours=2), resolved_after=timedelta(hours=20), **owner
        ),
        make_issue(
            key="SD-4", priority="Low", age=timedelta(hours=200),
            response_after=timedelta(hours=10), resolved_after=timedelta(hours=150), **owner
        ),
    ]

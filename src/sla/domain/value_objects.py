"""
SLA Value Objects
==================

Immutable value objects for SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

from datetime import date
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from config import PRIORITY_MAPPING, FALLBACK_PRIORITY, Priority, settings
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class SLAValueObject(BaseModel):
    """Frozen base model serialised with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SLARule(SLAValueObject):
    """
    Response/resolution deadlines for one priority level.

    ``resolution_with_dependencies_hours`` and ``business_hours_only`` are
    carried for display and configuration only; elapsed time is always
    measured on the wall clock.
    """
    priority: Priority
    first_response_hours: float = Field(gt=0, description="Hours until first response is due")
    resolution_hours: float = Field(gt=0, description="Hours until resolution is due")
    resolution_with_dependencies_hours: float = Field(
        gt=0,
        description="Extended resolution deadline when blocked on dependencies"
    )
    business_hours_only: bool = False

    @property
    def first_response_minutes(self) -> float:
        return self.first_response_hours * 60

    @property
    def resolution_minutes(self) -> float:
        return self.resolution_hours * 60


RuleSet = Mapping[Priority, SLARule]


DEFAULT_SLA_RULES: Dict[Priority, SLARule] = {
    Priority.CRITICAL: SLARule(
        priority=Priority.CRITICAL,
        first_response_hours=2,
        resolution_hours=8,
        resolution_with_dependencies_hours=24,
        business_hours_only=False,  # 24/7
    ),
    Priority.HIGH: SLARule(
        priority=Priority.HIGH,
        first_response_hours=2,
        resolution_hours=24,
        resolution_with_dependencies_hours=48,
        business_hours_only=False,
    ),
    Priority.MEDIUM: SLARule(
        priority=Priority.MEDIUM,
        first_response_hours=4,
        resolution_hours=48,
        resolution_with_dependencies_hours=72,
        business_hours_only=True,
    ),
    Priority.LOW: SLARule(
        priority=Priority.LOW,
        first_response_hours=8,
        resolution_hours=120,  # 5 days
        resolution_with_dependencies_hours=240,  # 10 days
        business_hours_only=True,
    ),
}


class BusinessHours(SLAValueObject):
    """Working-hours window. Weekdays use 0 = Sunday ... 6 = Saturday."""
    timezone: str = "Asia/Manila"
    start_hour: int = Field(default=8, ge=0, le=23)
    end_hour: int = Field(default=18, ge=1, le=24)
    weekdays: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])

    @field_validator("weekdays")
    @classmethod
    def validate_weekdays(cls, v: List[int]) -> List[int]:
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("weekdays must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))

    @model_validator(mode="after")
    def validate_window(self) -> "BusinessHours":
        if self.start_hour >= self.end_hour:
            raise ValueError("start_hour must be before end_hour")
        return self


# Philippine public holidays 2025
DEFAULT_HOLIDAYS: List[date] = [
    date(2025, 1, 1),    # New Year
    date(2025, 4, 9),    # Araw ng Kagitingan
    date(2025, 4, 17),   # Maundy Thursday
    date(2025, 4, 18),   # Good Friday
    date(2025, 5, 1),    # Labor Day
    date(2025, 6, 12),   # Independence Day
    date(2025, 8, 25),   # Ninoy Aquino Day
    date(2025, 8, 31),   # National Heroes Day
    date(2025, 11, 30),  # Bonifacio Day
    date(2025, 12, 25),  # Christmas
    date(2025, 12, 30),  # Rizal Day
    date(2025, 12, 31),  # New Year's Eve
]


class SLASettings(SLAValueObject):
    """
    Active SLA configuration: rules, business hours, holidays and project.

    Passed by value into the calculator and aggregator. Updates produce a
    new instance (see ``SLASettingsStore``).
    """
    rules: Dict[Priority, SLARule] = Field(default_factory=lambda: dict(DEFAULT_SLA_RULES))
    business_hours: BusinessHours = Field(default_factory=BusinessHours)
    holidays: List[date] = Field(default_factory=lambda: list(DEFAULT_HOLIDAYS))
    project_key: str = Field(default_factory=lambda: settings.jira_project_key)

    @field_validator("holidays")
    @classmethod
    def sort_holidays(cls, v: List[date]) -> List[date]:
        return sorted(set(v))

    @field_validator("project_key")
    @classmethod
    def normalize_project_key(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("project_key cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_rule_keys(self) -> "SLASettings":
        for priority, rule in self.rules.items():
            if rule.priority != priority:
                raise ValueError(
                    f"rule stored under {priority.value} declares priority {rule.priority.value}"
                )
        return self


class RuleRegistry:
    """
    Maps tracker priority labels to canonical levels and their SLA rules.

    Stateless; the rule set is always supplied by the caller.
    """

    @staticmethod
    def normalize(priority_label: Optional[str]) -> Optional[Priority]:
        """
        Map a raw tracker priority label to a canonical level.

        Returns None for empty or unrecognised labels.
        """
        if not priority_label:
            return None
        return PRIORITY_MAPPING.get(priority_label.strip().lower())

    @staticmethod
    def resolve(
        priority_label: Optional[str],
        rules: Optional[RuleSet] = None
    ) -> SLARule:
        """
        Resolve the SLA rule for a raw priority label.

        Unrecognised labels and levels missing from ``rules`` fall back to
        the Medium rule with a warning; this never raises.
        """
        rule_set = DEFAULT_SLA_RULES if rules is None else rules
        priority = RuleRegistry.normalize(priority_label)

        if priority is not None and priority in rule_set:
            return rule_set[priority]

        logger.warning(
            "No SLA rule for priority, falling back to Medium",
            extra={
                "priority_label": priority_label,
                "canonical_priority": priority.value if priority else None,
            }
        )
        if FALLBACK_PRIORITY in rule_set:
            return rule_set[FALLBACK_PRIORITY]
        return DEFAULT_SLA_RULES[FALLBACK_PRIORITY]

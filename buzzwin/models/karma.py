"""Karma models for gamification"""
from enum import Enum
from typing import Any
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from buzzwin.exceptions import InvalidKarmaActionError


class KarmaAction(str, Enum):
    """Actions that earn karma"""
    IMPACT_MOMENT_CREATED = "impact_moment_created"
    IMPACT_MOMENT_WITH_MOOD = "impact_moment_with_mood"
    IMPACT_MOMENT_FROM_RITUAL = "impact_moment_from_ritual"
    RITUAL_COMPLETED_QUIET = "ritual_completed_quiet"
    RITUAL_COMPLETED_SHARED = "ritual_completed_shared"
    COMMENT_CREATED = "comment_created"
    RIPPLE_RECEIVED = "ripple_received"
    JOINED_YOU_RECEIVED = "joined_you_received"
    JOINED_YOU_CREATED = "joined_you_created"
    STREAK_MILESTONE_7 = "streak_milestone_7"
    STREAK_MILESTONE_30 = "streak_milestone_30"
    IMPACT_MILESTONE_100 = "impact_milestone_100"
    IMPACT_MILESTONE_500 = "impact_milestone_500"


class KarmaCategory(str, Enum):
    """Breakdown buckets; values double as the users.karma_<value> column suffix"""
    IMPACT_MOMENTS = "impact_moments"
    RITUALS = "rituals"
    ENGAGEMENT = "engagement"
    CHAINS = "chains"
    MILESTONES = "milestones"


KARMA_POINTS: dict[KarmaAction, int] = {
    KarmaAction.IMPACT_MOMENT_CREATED: 10,
    KarmaAction.IMPACT_MOMENT_WITH_MOOD: 15,
    KarmaAction.IMPACT_MOMENT_FROM_RITUAL: 12,
    KarmaAction.RITUAL_COMPLETED_QUIET: 5,
    KarmaAction.RITUAL_COMPLETED_SHARED: 10,
    KarmaAction.COMMENT_CREATED: 3,
    KarmaAction.RIPPLE_RECEIVED: 2,
    KarmaAction.JOINED_YOU_RECEIVED: 15,
    KarmaAction.JOINED_YOU_CREATED: 10,
    KarmaAction.STREAK_MILESTONE_7: 25,
    KarmaAction.STREAK_MILESTONE_30: 100,
    KarmaAction.IMPACT_MILESTONE_100: 50,
    KarmaAction.IMPACT_MILESTONE_500: 250,
}

KARMA_CATEGORIES: dict[KarmaAction, KarmaCategory] = {
    KarmaAction.IMPACT_MOMENT_CREATED: KarmaCategory.IMPACT_MOMENTS,
    KarmaAction.IMPACT_MOMENT_WITH_MOOD: KarmaCategory.IMPACT_MOMENTS,
    KarmaAction.IMPACT_MOMENT_FROM_RITUAL: KarmaCategory.IMPACT_MOMENTS,
    KarmaAction.RITUAL_COMPLETED_QUIET: KarmaCategory.RITUALS,
    KarmaAction.RITUAL_COMPLETED_SHARED: KarmaCategory.RITUALS,
    KarmaAction.COMMENT_CREATED: KarmaCategory.ENGAGEMENT,
    KarmaAction.RIPPLE_RECEIVED: KarmaCategory.ENGAGEMENT,
    KarmaAction.JOINED_YOU_RECEIVED: KarmaCategory.CHAINS,
    KarmaAction.JOINED_YOU_CREATED: KarmaCategory.CHAINS,
    KarmaAction.STREAK_MILESTONE_7: KarmaCategory.MILESTONES,
    KarmaAction.STREAK_MILESTONE_30: KarmaCategory.MILESTONES,
    KarmaAction.IMPACT_MILESTONE_100: KarmaCategory.MILESTONES,
    KarmaAction.IMPACT_MILESTONE_500: KarmaCategory.MILESTONES,
}


def parse_karma_action(value: Any) -> KarmaAction:
    """Return the KarmaAction for value, or raise InvalidKarmaActionError"""
    if isinstance(value, KarmaAction):
        return value
    try:
        return KarmaAction(value)
    except ValueError:
        raise InvalidKarmaActionError(value) from None


def get_karma_points(action: KarmaAction) -> int:
    return KARMA_POINTS[action]


def get_karma_category(action: KarmaAction) -> KarmaCategory:
    return KARMA_CATEGORIES[action]


class KarmaBreakdown(BaseModel):
    """Karma per category; serialised with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    impact_moments: int = Field(default=0, ge=0)
    rituals: int = Field(default=0, ge=0)
    engagement: int = Field(default=0, ge=0)
    chains: int = Field(default=0, ge=0)
    milestones: int = Field(default=0, ge=0)

    def total(self) -> int:
        return self.impact_moments + self.rituals + self.engagement + self.chains + self.milestones


class KarmaState(BaseModel):
    """A user's karma total and breakdown"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    karma_points: int = Field(default=0, ge=0)
    karma_breakdown: KarmaBreakdown = Field(default_factory=KarmaBreakdown)

    @classmethod
    def from_row(cls, row: dict) -> "KarmaState":
        """Build from a users row (karma_points + karma_<category> columns)"""
        breakdown = KarmaBreakdown(**{
            category.value: row.get(f"karma_{category.value}") or 0
            for category in KarmaCategory
        })
        return cls(karma_points=row.get("karma_points") or 0, karma_breakdown=breakdown)

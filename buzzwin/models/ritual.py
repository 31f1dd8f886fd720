"""Ritual models"""
from enum import Enum
from typing import Literal, Optional
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ImpactTag(str, Enum):
    """Life areas a ritual contributes to"""
    MIND = "mind"
    BODY = "body"
    RELATIONSHIPS = "relationships"
    NATURE = "nature"
    COMMUNITY = "community"


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys, populated by either name"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _day_key(value):
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


class RitualDefinition(CamelModel):
    """Ritual catalogue entry"""
    id: Optional[str] = None
    title: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    effort_level: str = "low"
    scope: str = "global"  # global, personalized
    suggested_time_of_day: str = "anytime"  # morning, afternoon, evening, anytime
    duration_estimate: str = ""
    prefill_template: str = ""
    icon: Optional[str] = None
    created_at: Optional[datetime] = None
    usage_count: int = 0
    completion_rate: float = 0
    joined_by_users: list[str] = Field(default_factory=list)


class RitualCompletion(CamelModel):
    """One completion of a ritual by a user on a calendar day"""
    id: Optional[str] = None
    ritual_id: str
    user_id: str
    completed_at: Optional[datetime] = None
    completed_quietly: bool
    shared_as_moment_id: Optional[str] = None
    date: str  # YYYY-MM-DD

    @field_validator("date", mode="before")
    @classmethod
    def normalise_date(cls, value):
        return _day_key(value)

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value) if value is not None else None


class UserRitualState(CamelModel):
    """Denormalised ritual counters stored per user"""
    user_id: str
    enabled: bool = True
    current_streak: int = 0
    longest_streak: int = 0
    total_completed: int = 0
    completed_this_week: int = 0
    completed_this_month: int = 0
    last_completed_date: Optional[str] = None
    onboarding_completed: bool = False

    @field_validator("last_completed_date", mode="before")
    @classmethod
    def normalise_date(cls, value):
        return _day_key(value)


class TagCount(CamelModel):
    tag: str
    count: int


class Milestone(CamelModel):
    milestone: int
    achieved: bool
    achieved_at: Optional[str] = None


class StreakRun(CamelModel):
    start_date: str
    end_date: str
    length: int


class RitualStats(CamelModel):
    """Derived ritual metrics; recomputable from completions at any time"""
    current_streak: int = 0
    longest_streak: int = 0
    total_completed: int = 0
    completed_this_week: int = 0
    completed_this_month: int = 0
    completed_days: int = 0
    most_active_tags: list[TagCount] = Field(default_factory=list)
    shared_count: int = 0
    quiet_count: int = 0
    average_completions_per_day: float = 0
    completion_rate: float = 0
    best_day: Optional[str] = None
    streak_milestones: list[Milestone] = Field(default_factory=list)
    completion_milestones: list[Milestone] = Field(default_factory=list)
    recent_streaks: list[StreakRun] = Field(default_factory=list)
    completion_trend: Literal["increasing", "decreasing", "stable"] = "stable"
    last_completed_date: Optional[str] = None


class LeaderboardEntry(CamelModel):
    user_id: str
    username: str = ""
    name: str = ""
    photo_url: str = Field(default="", alias="photoURL")
    karma_points: int = 0
    level: int = 1
    total_completed: int = 0
    current_streak: int = 0
    rank: int

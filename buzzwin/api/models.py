"""Pydantic models for API request/response validation"""
from typing import Optional, List
from pydantic import Field, field_validator
from datetime import datetime

from buzzwin.models.karma import KarmaBreakdown
from buzzwin.models.ritual import (
    CamelModel,
    LeaderboardEntry,
    RitualCompletion,
    RitualDefinition,
    RitualStats,
)


class CreateUserRequest(CamelModel):
    """Request to create a user"""
    user_id: Optional[str] = Field(default=None, description="User identifier")
    username: str = ""
    name: str = ""


class CreateUserResponse(CamelModel):
    user_id: str
    created: bool


class AwardKarmaRequest(CamelModel):
    """Request to award karma; action is validated against KarmaAction"""
    user_id: Optional[str] = Field(default=None, description="User identifier")
    action: Optional[str] = Field(default=None, description="Karma action")


class KarmaResponse(CamelModel):
    """Karma total and breakdown"""
    success: bool = True
    karma_points: int
    karma_breakdown: KarmaBreakdown


class KarmaTransaction(CamelModel):
    id: str
    action: str
    category: str
    points: int
    awarded_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value)


class KarmaHistoryResponse(CamelModel):
    user_id: str
    transactions: List[KarmaTransaction]


class LevelResponse(CamelModel):
    """Level and progress derived from karma"""
    level: int
    karma_points: int
    progress: float = Field(..., ge=0, le=100)
    karma_remaining: int
    karma_for_next_level: int


class RitualStatsResponse(CamelModel):
    stats: RitualStats


class CompleteRitualRequest(CamelModel):
    """Request to complete a ritual today"""
    user_id: Optional[str] = None
    ritual_id: Optional[str] = None
    completed_quietly: Optional[bool] = None
    shared_as_moment_id: Optional[str] = None


class CompleteRitualResponse(CamelModel):
    success: bool = True
    completion: RitualCompletion
    updated_streak: int


class RitualListResponse(CamelModel):
    rituals: List[RitualDefinition]


class LeaderboardResponse(CamelModel):
    entries: List[LeaderboardEntry]
    user_rank: Optional[int] = None


class HealthCheckResponse(CamelModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    database: str = Field(..., description="Database connection status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(CamelModel):
    """Error response model"""
    success: bool = False
    error: str = Field(..., description="Error message")
    error_type: Optional[str] = None
    request_id: Optional[str] = None

"""Global test fixtures and utilities for buzzwin tests"""
import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from buzzwin import config
from buzzwin.models.ritual import RitualCompletion, RitualDefinition


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_db_cursor():
    """Mock database cursor with standard query results"""
    cursor = AsyncMock()
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock()
    return cursor


@pytest.fixture
def mock_db_connection(mock_db_cursor):
    """Mock connection whose cursor() works as an async context manager"""
    conn = MagicMock()
    conn.cursor.return_value.__aenter__.return_value = mock_db_cursor
    conn.commit = AsyncMock()
    conn.rollback = AsyncMock()
    return conn


# ============================================================================
# User & Auth Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "u_123456789"


@pytest.fixture
def test_api_key():
    """Standard test API key"""
    return "test_api_key_12345"


@pytest.fixture
def auth_headers(monkeypatch, test_api_key):
    """Authorization header for a configured API key"""
    monkeypatch.setattr(config, "API_KEYS", [test_api_key])
    return {"Authorization": f"Bearer {test_api_key}"}


def karma_row(user_id="u_123456789", **buckets):
    """A users row as returned by the karma queries"""
    row = {
        "user_id": user_id,
        "karma_impact_moments": 0,
        "karma_rituals": 0,
        "karma_engagement": 0,
        "karma_chains": 0,
        "karma_milestones": 0,
    }
    row.update({f"karma_{name}": points for name, points in buckets.items()})
    row["karma_points"] = sum(v for k, v in row.items() if k.startswith("karma_"))
    return row


@pytest.fixture
def make_karma_row():
    return karma_row


# ============================================================================
# Ritual Fixtures
# ============================================================================

@pytest.fixture
def today():
    """Fixed 'today' (a Wednesday) so day arithmetic is deterministic"""
    return date(2024, 1, 10)


def completion(day, ritual_id="r1", quiet=True, moment_id=None, user_id="u_123456789"):
    """Build a RitualCompletion for a YYYY-MM-DD day key"""
    return RitualCompletion(
        id=f"{ritual_id}-{day}",
        ritual_id=ritual_id,
        user_id=user_id,
        completed_quietly=quiet,
        shared_as_moment_id=moment_id,
        date=day,
    )


@pytest.fixture
def make_completion():
    return completion


@pytest.fixture
def ritual_catalog():
    """Small ritual catalogue"""
    return [
        RitualDefinition(
            id="r1",
            title="Morning Gratitude",
            description="Write down three things you are grateful for",
            tags=["mind"],
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            usage_count=40,
            completion_rate=0.5,
            joined_by_users=["a", "b"],
        ),
        RitualDefinition(
            id="r2",
            title="Call a Friend",
            description="Reach out to someone you care about",
            tags=["relationships", "mind"],
            created_at=datetime(2024, 1, 5, tzinfo=timezone.utc),
            usage_count=10,
            completion_rate=0.9,
            joined_by_users=["a", "b", "c"],
        ),
        RitualDefinition(
            id="r3",
            title="bike to work",
            description="Leave the car at home",
            tags=["body", "nature"],
            created_at=datetime(2023, 12, 1, tzinfo=timezone.utc),
            usage_count=70,
            completion_rate=0,
            joined_by_users=[],
        ),
    ]

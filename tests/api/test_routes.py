"""Tests for the engagement API endpoints (buzzwin/api/routes.py)"""
import pytest
import httpx
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock, patch

from buzzwin import config
from buzzwin.api.middleware import limiter
from buzzwin.api.server import create_api_application
from buzzwin.exceptions import (
    DuplicateCompletionError,
    InvalidKarmaActionError,
    UserNotFoundError,
    ValidationError,
)
from buzzwin.models.karma import KarmaBreakdown, KarmaState
from buzzwin.models.ritual import LeaderboardEntry, RitualCompletion, RitualDefinition, RitualStats


@pytest.fixture(autouse=True)
def disable_rate_limiting():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def ritual_service():
    service = Mock()
    service.get_ritual_stats = AsyncMock(return_value=RitualStats())
    service.complete_ritual = AsyncMock()
    service.list_rituals = AsyncMock(return_value=[])
    service.get_leaderboard = AsyncMock(return_value={"entries": [], "user_rank": None})
    return service


@pytest.fixture
def app(ritual_service):
    app = create_api_application()
    app.state.container = Mock(ritual_service=ritual_service)
    return app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def karma_state(**buckets):
    breakdown = KarmaBreakdown(**buckets)
    return KarmaState(karma_points=breakdown.total(), karma_breakdown=breakdown)


# ============================================================================
# Authentication Tests
# ============================================================================

@pytest.mark.asyncio
async def test_missing_api_key_rejected(client, auth_headers):
    response = await client.get("/api/v1/karma/u_1")

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_invalid_api_key_rejected(client, auth_headers):
    response = await client.get("/api/v1/karma/u_1", headers={"Authorization": "Bearer wrong"})

    assert response.status_code == 401
    data = response.json()
    assert data["success"] is False
    assert data["errorType"] == "AuthenticationError"


@pytest.mark.asyncio
async def test_no_configured_keys_is_unavailable(client, monkeypatch):
    monkeypatch.setattr(config, "API_KEYS", [])

    response = await client.get("/api/v1/karma/u_1", headers={"Authorization": "Bearer anything"})

    assert response.status_code == 503
    assert response.json()["errorType"] == "ConfigurationError"


# ============================================================================
# Karma Endpoint Tests
# ============================================================================

@pytest.mark.asyncio
async def test_award_karma(client, auth_headers):
    """Test awarding karma returns the new total and camelCase breakdown"""
    award = AsyncMock(return_value=karma_state(rituals=5))

    with patch('buzzwin.api.routes.award_karma', award):
        response = await client.post(
            "/api/v1/karma/award",
            json={"userId": "u_1", "action": "ritual_completed_quiet"},
            headers=auth_headers
        )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["karmaPoints"] == 5
    assert data["karmaBreakdown"] == {
        "impactMoments": 0,
        "rituals": 5,
        "engagement": 0,
        "chains": 0,
        "milestones": 0,
    }
    award.assert_called_once_with("u_1", "ritual_completed_quiet")


@pytest.mark.asyncio
async def test_award_karma_missing_action(client, auth_headers):
    award = AsyncMock()

    with patch('buzzwin.api.routes.award_karma', award):
        response = await client.post("/api/v1/karma/award", json={"userId": "u_1"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False
    award.assert_not_called()


@pytest.mark.asyncio
async def test_award_karma_invalid_action(client, auth_headers):
    award = AsyncMock(side_effect=InvalidKarmaActionError("dance"))

    with patch('buzzwin.api.routes.award_karma', award):
        response = await client.post(
            "/api/v1/karma/award",
            json={"userId": "u_1", "action": "dance"},
            headers=auth_headers
        )

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Invalid karma action"
    assert data["errorType"] == "InvalidKarmaActionError"
    assert data["requestId"]


@pytest.mark.asyncio
async def test_award_karma_missing_user_id(client, auth_headers):
    award = AsyncMock(side_effect=ValidationError("User ID is required", field="userId"))

    with patch('buzzwin.api.routes.award_karma', award):
        response = await client.post(
            "/api/v1/karma/award",
            json={"action": "comment_created"},
            headers=auth_headers
        )

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("body,field", [
    ({"userId": "u_1", "action": 123}, "action"),
    ({"userId": 42, "action": "comment_created"}, "userId"),
])
async def test_award_karma_wrong_field_type(client, auth_headers, body, field):
    """Test a wrongly typed field is a 400 in the usual error envelope"""
    award = AsyncMock()

    with patch('buzzwin.api.routes.award_karma', award):
        response = await client.post("/api/v1/karma/award", json=body, headers=auth_headers)

    assert response.status_code == 400
    data = response.json()
    assert data["success"] is False
    assert data["errorType"] == "ValidationError"
    assert data["error"].startswith(f"{field}:")
    assert data["requestId"]
    award.assert_not_called()


@pytest.mark.asyncio
async def test_malformed_json_body_is_400(client, auth_headers):
    response = await client.post(
        "/api/v1/karma/award",
        content=b"{not json",
        headers={**auth_headers, "Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["errorType"] == "ValidationError"


@pytest.mark.asyncio
async def test_get_karma(client, auth_headers):
    with patch('buzzwin.api.routes.get_user_karma', AsyncMock(return_value=karma_state(chains=15, engagement=3))):
        response = await client.get("/api/v1/karma/u_1", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["karmaPoints"] == 18


@pytest.mark.asyncio
async def test_get_karma_unknown_user(client, auth_headers):
    with patch('buzzwin.api.routes.get_user_karma', AsyncMock(side_effect=UserNotFoundError("ghost"))):
        response = await client.get("/api/v1/karma/ghost", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "User ghost not found"


@pytest.mark.asyncio
async def test_get_karma_history(client, auth_headers):
    rows = [{
        "id": "6f1c1d9e-8c1b-4a43-9a57-1b1f3a0b6c2d",
        "user_id": "u_1",
        "action": "comment_created",
        "category": "engagement",
        "points": 3,
        "awarded_at": datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc),
    }]
    history = AsyncMock(return_value=rows)

    with patch('buzzwin.api.routes.get_karma_history', history):
        response = await client.get("/api/v1/karma/u_1/history?limit=5", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["userId"] == "u_1"
    assert data["transactions"][0]["points"] == 3
    assert "awardedAt" in data["transactions"][0]
    history.assert_called_once_with("u_1", limit=5)


# ============================================================================
# Level Endpoint Tests
# ============================================================================

@pytest.mark.asyncio
async def test_get_level(client, auth_headers):
    with patch('buzzwin.api.routes.get_user_karma', AsyncMock(return_value=karma_state(milestones=1100))):
        response = await client.get("/api/v1/users/u_1/level", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "level": 11,
        "karmaPoints": 1100,
        "progress": 50.0,
        "karmaRemaining": 100,
        "karmaForNextLevel": 1200,
    }


# ============================================================================
# Ritual Endpoint Tests
# ============================================================================

@pytest.mark.asyncio
async def test_get_ritual_stats(client, auth_headers, ritual_service):
    ritual_service.get_ritual_stats.return_value = RitualStats(current_streak=4, total_completed=9)

    response = await client.get("/api/v1/users/u_1/ritual-stats", headers=auth_headers)

    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["currentStreak"] == 4
    assert stats["totalCompleted"] == 9
    assert stats["completionTrend"] == "stable"


@pytest.mark.asyncio
async def test_complete_ritual(client, auth_headers, ritual_service):
    completion = RitualCompletion(
        id="c1", ritual_id="r1", user_id="u_1", completed_quietly=True, date="2024-01-10"
    )
    ritual_service.complete_ritual.return_value = {
        "completion": completion,
        "updated_streak": 3,
        "karma": karma_state(rituals=5),
    }

    response = await client.post(
        "/api/v1/rituals/complete",
        json={"userId": "u_1", "ritualId": "r1", "completedQuietly": True},
        headers=auth_headers
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["updatedStreak"] == 3
    assert data["completion"]["date"] == "2024-01-10"
    ritual_service.complete_ritual.assert_called_once_with(
        user_id="u_1", ritual_id="r1", completed_quietly=True, shared_as_moment_id=None
    )


@pytest.mark.asyncio
async def test_complete_ritual_duplicate(client, auth_headers, ritual_service):
    ritual_service.complete_ritual.side_effect = DuplicateCompletionError("r1", "2024-01-10")

    response = await client.post(
        "/api/v1/rituals/complete",
        json={"userId": "u_1", "ritualId": "r1", "completedQuietly": True},
        headers=auth_headers
    )

    assert response.status_code == 400
    assert response.json()["errorType"] == "DuplicateCompletionError"


@pytest.mark.asyncio
async def test_list_rituals(client, auth_headers, ritual_service):
    ritual_service.list_rituals.return_value = [RitualDefinition(id="r1", title="Gratitude")]

    response = await client.get("/api/v1/rituals?q=grat&sort=newest", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["rituals"][0]["title"] == "Gratitude"
    ritual_service.list_rituals.assert_called_once_with("grat", "newest")


@pytest.mark.asyncio
async def test_leaderboard(client, auth_headers, ritual_service):
    ritual_service.get_leaderboard.return_value = {
        "entries": [LeaderboardEntry(
            user_id="a",
            photo_url="https://img.example/a.png",
            karma_points=1250,
            level=12,
            total_completed=40,
            current_streak=6,
            rank=1
        )],
        "user_rank": 1,
    }

    response = await client.get("/api/v1/leaderboard?limit=5&userId=a", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["userRank"] == 1
    entry = data["entries"][0]
    assert entry["karmaPoints"] == 1250
    assert entry["photoURL"] == "https://img.example/a.png"
    assert entry["totalCompleted"] == 40
    assert entry["currentStreak"] == 6
    ritual_service.get_leaderboard.assert_called_once_with(limit=5, user_id="a")


# ============================================================================
# User & Health Endpoint Tests
# ============================================================================

@pytest.mark.asyncio
async def test_create_user(client, auth_headers):
    create = AsyncMock(return_value=True)

    with patch('buzzwin.api.routes.queries.create_user', create):
        response = await client.post(
            "/api/v1/users",
            json={"userId": "u_new", "username": "newbie"},
            headers=auth_headers
        )

    assert response.status_code == 201
    assert response.json() == {"userId": "u_new", "created": True}
    create.assert_called_once_with("u_new", "newbie", "")


@pytest.mark.asyncio
async def test_create_existing_user_is_idempotent(client, auth_headers):
    with patch('buzzwin.api.routes.queries.create_user', AsyncMock(return_value=False)):
        response = await client.post("/api/v1/users", json={"userId": "u_1"}, headers=auth_headers)

    assert response.status_code == 201
    assert response.json()["created"] is False


@pytest.mark.asyncio
async def test_health_check_without_database(client):
    """Test health reports degraded when the pool is not initialised"""
    response = await client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["database"] == "disconnected"


@pytest.mark.asyncio
async def test_unexpected_error_is_500(client, auth_headers):
    with patch('buzzwin.api.routes.get_user_karma', AsyncMock(side_effect=RuntimeError("boom"))):
        response = await client.get("/api/v1/karma/u_1", headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}

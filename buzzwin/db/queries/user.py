"""User database queries"""
import logging
from typing import Optional
from buzzwin.db.connection import db

logger = logging.getLogger(__name__)

USER_KARMA_COLUMNS = """
    user_id, karma_points, karma_impact_moments, karma_rituals,
    karma_engagement, karma_chains, karma_milestones, last_karma_update
"""


async def create_user(user_id: str, username: str = "", name: str = "") -> bool:
    """
    Create user with zeroed karma (idempotent).

    Returns:
        True if the user was created, False if it already existed
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO users (user_id, username, name)
                VALUES (%s, %s, %s)
                ON CONFLICT (user_id) DO NOTHING
                RETURNING user_id
                """,
                (user_id, username, name)
            )
            result = await cur.fetchone()
            await conn.commit()

    if result:
        logger.info(f"Created user: {user_id}")
    return result is not None


async def user_exists(user_id: str) -> bool:
    """Check if user exists"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT 1 FROM users WHERE user_id = %s",
                (user_id,)
            )
            return await cur.fetchone() is not None


async def get_user_karma_row(user_id: str) -> Optional[dict]:
    """Get karma columns for a user, or None if the user does not exist"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {USER_KARMA_COLUMNS} FROM users WHERE user_id = %s",
                (user_id,)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def get_top_users_by_karma(limit: int) -> list[dict]:
    """Users ordered by karma (highest first), ties broken by user_id, with ritual counters"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT u.user_id, u.username, u.name, u.photo_url, u.karma_points,
                       COALESCE(s.total_completed, 0) AS total_completed,
                       COALESCE(s.current_streak, 0) AS current_streak
                FROM users u
                LEFT JOIN user_ritual_state s ON s.user_id = u.user_id
                ORDER BY u.karma_points DESC, u.user_id ASC
                LIMIT %s
                """,
                (limit,)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def get_user_karma_rank(user_id: str) -> Optional[int]:
    """1-based position of a user in the karma ordering, None if absent"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT position FROM (
                    SELECT user_id,
                           ROW_NUMBER() OVER (ORDER BY karma_points DESC, user_id ASC) AS position
                    FROM users
                ) ranked
                WHERE user_id = %s
                """,
                (user_id,)
            )
            row = await cur.fetchone()
            return int(row["position"]) if row else None

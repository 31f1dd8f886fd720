"""Ritual database queries

Functions that write take an optional conn. Without one they open a pooled
connection and commit; with one they leave committing to the caller.
"""
import logging
from datetime import date
from typing import Optional
import psycopg
from buzzwin.db.connection import db

logger = logging.getLogger(__name__)

COMPLETION_COLUMNS = """
    id, ritual_id, user_id, completed_at, completed_quietly,
    shared_as_moment_id, completion_date AS date
"""


async def get_ritual_definitions() -> list[dict]:
    """Get the whole ritual catalogue"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, title, description, tags, effort_level, scope,
                       suggested_time_of_day, duration_estimate, prefill_template,
                       icon, created_at, usage_count, completion_rate, joined_by_users
                FROM rituals
                """
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def get_ritual_completions(
    user_id: str,
    conn: Optional[psycopg.AsyncConnection] = None
) -> list[dict]:
    """Get every completion for a user, newest day first"""
    async with db.connection(conn) as active:
        async with active.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {COMPLETION_COLUMNS}
                FROM ritual_completions
                WHERE user_id = %s
                ORDER BY completion_date DESC, completed_at DESC
                """,
                (user_id,)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


async def create_ritual_completion(
    user_id: str,
    ritual_id: str,
    completed_quietly: bool,
    completion_date: date,
    shared_as_moment_id: Optional[str] = None,
    conn: Optional[psycopg.AsyncConnection] = None
) -> Optional[dict]:
    """
    Store a ritual completion.

    Returns:
        The stored completion, or None if this ritual was already
        completed by the user on completion_date
    """
    async with db.connection(conn) as active:
        async with active.cursor() as cur:
            await cur.execute(
                f"""
                INSERT INTO ritual_completions
                    (user_id, ritual_id, completed_quietly, shared_as_moment_id, completion_date)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (user_id, ritual_id, completion_date) DO NOTHING
                RETURNING {COMPLETION_COLUMNS}
                """,
                (user_id, ritual_id, completed_quietly, shared_as_moment_id, completion_date)
            )
            row = await cur.fetchone()
        if conn is None:
            await active.commit()
        return dict(row) if row else None


async def get_user_ritual_state(
    user_id: str,
    conn: Optional[psycopg.AsyncConnection] = None
) -> Optional[dict]:
    """Get stored ritual counters for user"""
    async with db.connection(conn) as active:
        async with active.cursor() as cur:
            await cur.execute(
                """
                SELECT user_id, enabled, current_streak, longest_streak, total_completed,
                       completed_this_week, completed_this_month, last_completed_date,
                       onboarding_completed
                FROM user_ritual_state
                WHERE user_id = %s
                """,
                (user_id,)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def upsert_user_ritual_state(
    user_id: str,
    state: dict,
    conn: Optional[psycopg.AsyncConnection] = None
) -> None:
    """
    Create or update stored ritual counters

    Args:
        user_id: User ID
        state: Dict with current_streak, longest_streak, total_completed,
               completed_this_week, completed_this_month, last_completed_date
        conn: Connection of an open transaction to run in
    """
    async with db.connection(conn) as active:
        async with active.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO user_ritual_state (
                    user_id, current_streak, longest_streak, total_completed,
                    completed_this_week, completed_this_month, last_completed_date
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (user_id) DO UPDATE SET
                    current_streak = EXCLUDED.current_streak,
                    longest_streak = GREATEST(user_ritual_state.longest_streak, EXCLUDED.longest_streak),
                    total_completed = EXCLUDED.total_completed,
                    completed_this_week = EXCLUDED.completed_this_week,
                    completed_this_month = EXCLUDED.completed_this_month,
                    last_completed_date = EXCLUDED.last_completed_date,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    user_id,
                    state["current_streak"],
                    state["longest_streak"],
                    state["total_completed"],
                    state["completed_this_week"],
                    state["completed_this_month"],
                    state["last_completed_date"],
                )
            )
        if conn is None:
            await active.commit()

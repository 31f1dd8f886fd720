"""Karma database queries"""
import logging
from typing import Optional
from psycopg import sql
from buzzwin.db.connection import db
from buzzwin.db.queries.user import USER_KARMA_COLUMNS

logger = logging.getLogger(__name__)


async def increment_user_karma(
    user_id: str,
    action: str,
    category: str,
    points: int
) -> Optional[dict]:
    """
    Atomically add points to a user's total and to one breakdown bucket,
    and record the award in the karma ledger.

    The total and the bucket are incremented in the same UPDATE, so concurrent
    awards for the same user never lose an increment and the breakdown always
    sums to the total.

    Args:
        user_id: User ID
        action: Karma action value
        category: Breakdown bucket (column suffix of users.karma_<category>)
        points: Points to add

    Returns:
        Updated karma row, or None if the user does not exist (nothing written)
    """
    bucket = sql.Identifier(f"karma_{category}")
    update = sql.SQL(
        """
        UPDATE users
        SET karma_points = karma_points + %s,
            {bucket} = {bucket} + %s,
            last_karma_update = CURRENT_TIMESTAMP,
            updated_at = CURRENT_TIMESTAMP
        WHERE user_id = %s
        RETURNING {columns}
        """
    ).format(bucket=bucket, columns=sql.SQL(USER_KARMA_COLUMNS))

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(update, (points, points, user_id))
            row = await cur.fetchone()

            if not row:
                await conn.rollback()
                return None

            await cur.execute(
                """
                INSERT INTO karma_transactions (user_id, action, category, points)
                VALUES (%s, %s, %s, %s)
                """,
                (user_id, action, category, points)
            )
            await conn.commit()
            return dict(row)


async def get_karma_transactions(user_id: str, limit: int = 50) -> list[dict]:
    """
    Get recent karma awards for user

    Returns:
        List of transactions ordered by awarded_at DESC
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, user_id, action, category, points, awarded_at
                FROM karma_transactions
                WHERE user_id = %s
                ORDER BY awarded_at DESC
                LIMIT %s
                """,
                (user_id, limit)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]

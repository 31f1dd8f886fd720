"""
RitualService - Ritual Business Logic

Composes the calculators in buzzwin.gamification with the query layer:
- Ritual completion (store, recount, award karma)
- Ritual stats for the stats page
- Catalogue search and sorting
- Karma leaderboard
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import psycopg

from buzzwin.config import LEADERBOARD_MAX_LIMIT, RITUAL_CATALOG_TTL_SECONDS
from buzzwin.db import queries
from buzzwin.exceptions import (
    DuplicateCompletionError,
    UserNotFoundError,
    ValidationError,
    wrap_external_exception,
)
from buzzwin.gamification.karma_system import award_karma_safely
from buzzwin.gamification.level_system import level_for_karma
from buzzwin.gamification.ritual_filtering import filter_and_sort_rituals
from buzzwin.gamification.streak_system import calculate_stats, empty_stats
from buzzwin.models.karma import KarmaAction
from buzzwin.models.ritual import (
    LeaderboardEntry,
    RitualCompletion,
    RitualDefinition,
    RitualStats,
    UserRitualState,
)
from buzzwin.utils.cache import CachedLoader
from buzzwin.utils.datetime_helpers import today_in_timezone, to_day_key

logger = logging.getLogger(__name__)

STREAK_MILESTONE_ACTIONS = {
    7: KarmaAction.STREAK_MILESTONE_7,
    30: KarmaAction.STREAK_MILESTONE_30,
}


class RitualService:
    """
    Service for ritual completion, stats and leaderboard.

    Responsibilities:
    - Recording completions (one per ritual per user per day)
    - Keeping the stored ritual counters in step with completions
    - Best-effort karma for completions and streak milestones
    - Stats that degrade to zeros instead of failing
    """

    def __init__(self, db_connection, catalog_ttl: float = RITUAL_CATALOG_TTL_SECONDS):
        """
        Initialize RitualService.

        Args:
            db_connection: Database connection instance
            catalog_ttl: Seconds the ritual catalogue stays cached
        """
        self.db = db_connection
        self.catalog = CachedLoader(
            loader=self._load_ritual_definitions,
            ttl=catalog_ttl,
            name="ritual_catalog",
        )
        logger.debug("RitualService initialized")

    async def _load_ritual_definitions(self) -> List[RitualDefinition]:
        rows = await queries.get_ritual_definitions()
        return [RitualDefinition(**row) for row in rows]

    async def get_ritual_definitions(self) -> List[RitualDefinition]:
        """Ritual catalogue (cached)"""
        return await self.catalog.get()

    async def _load_history(self, user_id: str, conn=None):
        completions = [
            RitualCompletion(**row)
            for row in await queries.get_ritual_completions(user_id, conn=conn)
        ]
        state_row = await queries.get_user_ritual_state(user_id, conn=conn)
        user_state = UserRitualState(**state_row) if state_row else None
        return completions, user_state

    async def complete_ritual(
        self,
        user_id: str,
        ritual_id: str,
        completed_quietly: bool,
        shared_as_moment_id: Optional[str] = None,
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Record a ritual completion for today.

        Args:
            user_id: User ID
            ritual_id: Ritual ID
            completed_quietly: True if not shared as an impact moment
            shared_as_moment_id: Impact moment the completion was shared as
            today: Override for the current day (defaults to the configured zone)

        Returns:
            {
                'completion': RitualCompletion,
                'updated_streak': int,
                'karma': Optional[KarmaState]  # None if the award failed
            }

        Raises:
            ValidationError: bad input
            UserNotFoundError: user does not exist
            DuplicateCompletionError: ritual already completed today
        """
        if not user_id or not isinstance(user_id, str):
            raise ValidationError("User ID is required", field="userId", value=user_id)
        if not ritual_id or not isinstance(ritual_id, str):
            raise ValidationError("Ritual ID is required", field="ritualId", value=ritual_id)
        if not isinstance(completed_quietly, bool):
            raise ValidationError(
                "completedQuietly must be a boolean",
                field="completedQuietly",
                value=completed_quietly
            )

        today = today or today_in_timezone()
        today_key = to_day_key(today)

        try:
            if not await queries.user_exists(user_id):
                raise UserNotFoundError(user_id, operation="complete_ritual")

            # Completion and counters are stored together or not at all
            async with self.db.transaction() as conn:
                row = await queries.create_ritual_completion(
                    user_id,
                    ritual_id,
                    completed_quietly,
                    today,
                    shared_as_moment_id=shared_as_moment_id,
                    conn=conn
                )
                if row is None:
                    raise DuplicateCompletionError(ritual_id, today_key, user_id=user_id)
                completion = RitualCompletion(**row)

                completions, user_state = await self._load_history(user_id, conn=conn)
                stats = calculate_stats(completions, user_state, None, today)

                await queries.upsert_user_ritual_state(user_id, {
                    "current_streak": stats.current_streak,
                    "longest_streak": stats.longest_streak,
                    "total_completed": stats.total_completed,
                    "completed_this_week": stats.completed_this_week,
                    "completed_this_month": stats.completed_this_month,
                    "last_completed_date": today,
                }, conn=conn)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation="complete_ritual",
                user_id=user_id,
                context={"ritual_id": ritual_id}
            )

        logger.info(
            f"User {user_id} completed ritual {ritual_id} on {today_key} "
            f"({'quiet' if completed_quietly else 'shared'}). Streak: {stats.current_streak}"
        )

        # Karma never blocks the completion itself
        action = (
            KarmaAction.RITUAL_COMPLETED_QUIET if completed_quietly
            else KarmaAction.RITUAL_COMPLETED_SHARED
        )
        karma = await award_karma_safely(user_id, action)

        # Only the first completion of the day can move the streak onto a milestone
        first_today = sum(1 for c in completions if c.date == today_key) == 1
        milestone_action = STREAK_MILESTONE_ACTIONS.get(stats.current_streak)
        if first_today and milestone_action:
            logger.info(f"User {user_id} reached a {stats.current_streak}-day ritual streak")
            karma = await award_karma_safely(user_id, milestone_action) or karma

        return {
            "completion": completion,
            "updated_streak": stats.current_streak,
            "karma": karma,
        }

    async def get_ritual_stats(self, user_id: str, today: Optional[date] = None) -> RitualStats:
        """
        Ritual stats for a user.

        Never raises: any failure is logged and an all-zero RitualStats
        is returned so the stats page still renders.
        """
        try:
            today = today or today_in_timezone()
            completions, user_state = await self._load_history(user_id)
            ritual_definitions = await self.get_ritual_definitions()
            return calculate_stats(completions, user_state, ritual_definitions, today)
        except Exception as e:
            logger.error(f"Error calculating ritual stats for user {user_id}: {e}", exc_info=True)
            return empty_stats()

    async def list_rituals(self, search_query: str = "", sort_by: str = "") -> List[RitualDefinition]:
        """Search and sort the ritual catalogue"""
        try:
            rituals = await self.get_ritual_definitions()
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="list_rituals")
        return filter_and_sort_rituals(rituals, search_query, sort_by)

    async def get_leaderboard(
        self,
        limit: int = 10,
        user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Top users by karma.

        Returns:
            {
                'entries': List[LeaderboardEntry],
                'user_rank': Optional[int]  # rank of user_id, if given and present
            }
        """
        limit = max(1, min(limit, LEADERBOARD_MAX_LIMIT))

        try:
            rows = await queries.get_top_users_by_karma(limit)
            entries = [
                LeaderboardEntry(
                    user_id=row["user_id"],
                    username=row.get("username") or "",
                    name=row.get("name") or "",
                    photo_url=row.get("photo_url") or "",
                    karma_points=row.get("karma_points") or 0,
                    level=level_for_karma(row.get("karma_points") or 0),
                    total_completed=row.get("total_completed") or 0,
                    current_streak=row.get("current_streak") or 0,
                    rank=position,
                )
                for position, row in enumerate(rows, start=1)
            ]

            user_rank = None
            if user_id:
                user_rank = next((e.rank for e in entries if e.user_id == user_id), None)
                if user_rank is None:
                    user_rank = await queries.get_user_karma_rank(user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_leaderboard", user_id=user_id)

        return {"entries": entries, "user_rank": user_rank}

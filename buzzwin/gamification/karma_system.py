"""
Karma System

Awards fixed karma values for user actions and keeps a per-user total plus a
five-bucket breakdown (impact moments, rituals, engagement, chains, milestones).

Karma Award Rules:
- Impact moments: 10 (plain), 15 (with mood), 12 (from ritual)
- Ritual completion: 5 (quiet), 10 (shared)
- Engagement: 3 per comment written, 2 per ripple received
- Chains: 15 when someone joins you, 10 when you join someone
- Milestones: 25 (7-day streak), 100 (30-day streak),
  50 (100 impact moments), 250 (500 impact moments)

Karma is additive only; nothing here decrements a bucket.
"""

from typing import Any, Dict, List, Optional, Sequence
import logging

import psycopg

from buzzwin.db import queries
from buzzwin.exceptions import (
    BuzzwinError,
    UserNotFoundError,
    ValidationError,
    wrap_external_exception,
)
from buzzwin.models.karma import (
    KarmaAction,
    KarmaState,
    get_karma_category,
    get_karma_points,
    parse_karma_action,
)

logger = logging.getLogger(__name__)


def _require_user_id(user_id: Any) -> str:
    if not user_id or not isinstance(user_id, str):
        raise ValidationError("User ID is required", field="userId", value=user_id)
    return user_id


async def award_karma(user_id: str, action: KarmaAction | str) -> KarmaState:
    """
    Award karma to user for an action

    The action is validated before anything is written, so an invalid action
    never leaves a partial update behind.

    Args:
        user_id: User ID
        action: KarmaAction member or its string value

    Returns:
        Updated KarmaState

    Raises:
        ValidationError: user_id missing or not a string
        InvalidKarmaActionError: action is not a known KarmaAction
        UserNotFoundError: user does not exist
        DatabaseError: storage failure
    """
    user_id = _require_user_id(user_id)
    action = parse_karma_action(action)

    points = get_karma_points(action)
    category = get_karma_category(action)

    try:
        row = await queries.increment_user_karma(user_id, action.value, category.value, points)
    except psycopg.Error as e:
        raise wrap_external_exception(
            e,
            operation="award_karma",
            user_id=user_id,
            context={"action": action.value}
        )

    if row is None:
        raise UserNotFoundError(user_id, operation="award_karma")

    state = KarmaState.from_row(row)

    logger.info(
        f"Awarded {points} karma to user {user_id} for {action.value} ({category.value}). "
        f"Total: {state.karma_points}"
    )

    return state


async def award_karma_to_multiple(
    user_ids: Sequence[str],
    action: KarmaAction | str
) -> List[Dict[str, Any]]:
    """
    Award the same action to several users (e.g. everyone in a chain)

    Each award is independent; a failure for one user is reported in its
    result entry and does not affect the others.

    Returns:
        [{'user_id': str, 'success': bool, 'error': Optional[str]}, ...]
    """
    results = []
    for user_id in user_ids:
        try:
            await award_karma(user_id, action)
            results.append({"user_id": user_id, "success": True, "error": None})
        except BuzzwinError as e:
            results.append({"user_id": user_id, "success": False, "error": e.message})
    return results


async def award_karma_safely(
    user_id: str,
    action: KarmaAction | str
) -> Optional[KarmaState]:
    """
    Best-effort award for side effects of another action

    Used where the primary action (completing a ritual, posting a comment)
    must succeed even when karma cannot be awarded. Failures are logged and
    None is returned.
    """
    try:
        return await award_karma(user_id, action)
    except BuzzwinError as e:
        logger.warning(
            f"Karma award skipped for user {user_id} ({action}): {e.message}"
        )
        return None


async def get_user_karma(user_id: str) -> KarmaState:
    """
    Get user's current karma and breakdown

    Raises:
        ValidationError: user_id missing or not a string
        UserNotFoundError: user does not exist
    """
    user_id = _require_user_id(user_id)

    try:
        row = await queries.get_user_karma_row(user_id)
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="get_user_karma", user_id=user_id)

    if row is None:
        raise UserNotFoundError(user_id, operation="get_user_karma")

    return KarmaState.from_row(row)


async def get_karma_history(user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
    """
    Get recent karma awards for user, newest first

    Raises:
        UserNotFoundError: user does not exist
    """
    user_id = _require_user_id(user_id)

    try:
        if not await queries.user_exists(user_id):
            raise UserNotFoundError(user_id, operation="get_karma_history")
        return await queries.get_karma_transactions(user_id, limit=limit)
    except psycopg.Error as e:
        raise wrap_external_exception(e, operation="get_karma_history", user_id=user_id)

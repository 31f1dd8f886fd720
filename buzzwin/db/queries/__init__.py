"""
Database queries - re-exported so callers can use 'from buzzwin.db import queries'.

Module organization:
- user.py: Users, karma columns, leaderboard ordering
- karma.py: Atomic karma increments and the karma ledger
- rituals.py: Ritual catalogue, completions, per-user ritual state
"""

from buzzwin.db.queries.user import (
    create_user,
    user_exists,
    get_user_karma_row,
    get_top_users_by_karma,
    get_user_karma_rank,
)

from buzzwin.db.queries.karma import (
    increment_user_karma,
    get_karma_transactions,
)

from buzzwin.db.queries.rituals import (
    get_ritual_definitions,
    get_ritual_completions,
    create_ritual_completion,
    get_user_ritual_state,
    upsert_user_ritual_state,
)

__all__ = [
    "create_user",
    "user_exists",
    "get_user_karma_row",
    "get_top_users_by_karma",
    "get_user_karma_rank",
    "increment_user_karma",
    "get_karma_transactions",
    "get_ritual_definitions",
    "get_ritual_completions",
    "create_ritual_completion",
    "get_user_ritual_state",
    "upsert_user_ritual_state",
]

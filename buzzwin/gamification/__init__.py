"""
Engagement scoring for Buzzwin

- Karma awards and breakdown (karma_system)
- Levels derived from karma (level_system)
- Ritual streaks and stats (streak_system)
- Ritual catalogue search and sorting (ritual_filtering)
"""

from buzzwin.gamification.karma_system import (
    award_karma,
    award_karma_safely,
    award_karma_to_multiple,
    get_user_karma,
    get_karma_history,
)
from buzzwin.gamification.level_system import (
    level_for_karma,
    karma_for_level,
    karma_for_next_level,
    progress_to_next_level,
    karma_remaining_for_next_level,
    get_level_info,
)
from buzzwin.gamification.streak_system import (
    calculate_streak,
    calculate_longest_streak,
    calculate_stats,
    empty_stats,
)

__all__ = [
    "award_karma",
    "award_karma_safely",
    "award_karma_to_multiple",
    "get_user_karma",
    "get_karma_history",
    "level_for_karma",
    "karma_for_level",
    "karma_for_next_level",
    "progress_to_next_level",
    "karma_remaining_for_next_level",
    "get_level_info",
    "calculate_streak",
    "calculate_longest_streak",
    "calculate_stats",
    "empty_stats",
]

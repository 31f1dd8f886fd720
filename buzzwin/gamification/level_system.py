"""
Karma Leveling System

Converts a karma total into a level and progress toward the next level.

Leveling Curve:
- Levels 1-10: 100 karma per level (level 10 starts at 900 karma)
- Level 11+: level 11 starts at 1000 karma, and each later threshold is the
  previous one times 1.2, floored (1000, 1200, 1440, 1728, 2073, ...)

The multiplier is an exact Fraction so thresholds stay exact integers
at any size.

The floored thresholds have no closed form, so both directions walk the same
sequence. Thresholds are memoised in THRESHOLDS as they are discovered.
"""

import logging
import math
from fractions import Fraction
from typing import Dict, List

logger = logging.getLogger(__name__)

LINEAR_LEVEL_CAP = 10
KARMA_PER_LINEAR_LEVEL = 100
GEOMETRIC_BASE_KARMA = 1000
GEOMETRIC_MULTIPLIER = Fraction(6, 5)

# THRESHOLDS[i] is the karma needed for level LINEAR_LEVEL_CAP + 1 + i
THRESHOLDS: List[int] = [GEOMETRIC_BASE_KARMA]


def _next_threshold(threshold: int) -> int:
    return math.floor(threshold * GEOMETRIC_MULTIPLIER)


def _threshold(index: int) -> int:
    """Karma needed for level LINEAR_LEVEL_CAP + 1 + index"""
    while len(THRESHOLDS) <= index:
        THRESHOLDS.append(_next_threshold(THRESHOLDS[-1]))
    return THRESHOLDS[index]


def level_for_karma(karma: float) -> int:
    """
    Calculate level from karma points

    Negative input and NaN are treated as level 1. Non-integer input is
    accepted; comparisons are made against the integer thresholds, so
    arbitrarily large integers work too.
    """
    if isinstance(karma, float):
        if math.isnan(karma):
            return 1
        if math.isinf(karma) and karma > 0:
            raise ValueError("karma must be finite")
    if karma < 0:
        return 1

    if karma < GEOMETRIC_BASE_KARMA:
        return math.floor(karma / KARMA_PER_LINEAR_LEVEL) + 1

    level = LINEAR_LEVEL_CAP
    index = 0
    while karma >= _threshold(index):
        level += 1
        index += 1
    return level


def karma_for_level(level: int) -> int:
    """
    Karma needed to reach a level

    level_for_karma(karma_for_level(level)) == level for every level >= 1.
    """
    if level <= 0:
        return 0
    if level <= LINEAR_LEVEL_CAP:
        return (level - 1) * KARMA_PER_LINEAR_LEVEL
    return _threshold(level - LINEAR_LEVEL_CAP - 1)


def karma_for_next_level(karma: float) -> int:
    """Karma threshold of the level after the one karma sits in"""
    return karma_for_level(level_for_karma(karma) + 1)


def progress_to_next_level(karma: float) -> float:
    """
    Progress percentage toward the next level, clamped to [0, 100]

    0 exactly at a level threshold.
    """
    current_level = level_for_karma(karma)
    current_level_karma = karma_for_level(current_level)
    next_level_karma = karma_for_level(current_level + 1)

    karma_in_level = karma - current_level_karma
    karma_span = next_level_karma - current_level_karma

    if karma_span == 0:
        return 100.0

    return min(100.0, max(0.0, karma_in_level / karma_span * 100))


def karma_remaining_for_next_level(karma: float) -> int:
    """Karma still needed to reach the next level (never negative)"""
    return max(0, math.ceil(karma_for_next_level(karma) - karma))


def get_level_info(karma: int) -> Dict[str, float]:
    """
    Level summary for a karma total

    Returns:
        {
            'level': int,
            'karma_points': int,
            'progress': float (0-100),
            'karma_remaining': int,
            'karma_for_next_level': int
        }
    """
    return {
        "level": level_for_karma(karma),
        "karma_points": karma,
        "progress": progress_to_next_level(karma),
        "karma_remaining": karma_remaining_for_next_level(karma),
        "karma_for_next_level": karma_for_next_level(karma),
    }

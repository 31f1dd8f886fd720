"""Unit tests for the karma level curve (buzzwin/gamification/level_system.py)"""
import math
import pytest

from buzzwin.gamification.level_system import (
    level_for_karma,
    karma_for_level,
    karma_for_next_level,
    progress_to_next_level,
    karma_remaining_for_next_level,
    get_level_info,
)


# ============================================================================
# Level Calculation Tests
# ============================================================================

@pytest.mark.parametrize("karma,expected_level", [
    (0, 1),
    (50, 1),
    (99, 1),
    (100, 2),
    (250, 3),
    (899, 9),
    (900, 10),
    (999, 10),
    (1000, 11),
    (1199, 11),
    (1200, 12),
    (1439, 12),
    (1440, 13),
    (1728, 14),
    (2073, 15),
])
def test_level_for_karma(karma, expected_level):
    """Test linear levels below 1000 karma and the 1.2x curve above"""
    assert level_for_karma(karma) == expected_level


def test_level_for_negative_karma():
    """Test negative karma is level 1"""
    assert level_for_karma(-1) == 1
    assert level_for_karma(-500) == 1


def test_level_for_fractional_karma():
    """Test non-integer karma compares against integer thresholds"""
    assert level_for_karma(99.9) == 1
    assert level_for_karma(1199.5) == 11


def test_level_for_infinite_karma_raises():
    """Test infinite karma is rejected instead of looping"""
    with pytest.raises(ValueError):
        level_for_karma(math.inf)


def test_level_for_nan_and_negative_infinity():
    assert level_for_karma(math.nan) == 1
    assert level_for_karma(-math.inf) == 1


def test_level_for_huge_integer_karma():
    """Test integers beyond float range still get an exact level"""
    huge = 10 ** 400

    level = level_for_karma(huge)

    assert level > 5000
    assert karma_for_level(level) <= huge < karma_for_level(level + 1)
    assert 0.0 <= progress_to_next_level(huge) <= 100.0


def test_level_is_monotonic():
    """Test level never decreases as karma grows"""
    previous = level_for_karma(0)
    for karma in range(0, 20000, 7):
        level = level_for_karma(karma)
        assert level >= previous
        previous = level


# ============================================================================
# Inverse (karma for level) Tests
# ============================================================================

@pytest.mark.parametrize("level,expected_karma", [
    (1, 0),
    (2, 100),
    (10, 900),
    (11, 1000),
    (12, 1200),
    (13, 1440),
    (14, 1728),
])
def test_karma_for_level(level, expected_karma):
    assert karma_for_level(level) == expected_karma


def test_karma_for_level_zero_or_negative():
    assert karma_for_level(0) == 0
    assert karma_for_level(-3) == 0


@pytest.mark.parametrize("level", range(1, 40))
def test_level_karma_round_trip(level):
    """Test the threshold of a level maps back to that level"""
    threshold = karma_for_level(level)
    assert level_for_karma(threshold) == level
    if threshold > 0:
        assert level_for_karma(threshold - 1) == level - 1


def test_karma_for_next_level():
    assert karma_for_next_level(0) == 100
    assert karma_for_next_level(950) == 1000
    assert karma_for_next_level(1000) == 1200


# ============================================================================
# Progress Tests
# ============================================================================

@pytest.mark.parametrize("karma", [0, 100, 900, 1000, 1200, 1440])
def test_progress_is_zero_at_threshold(karma):
    """Test progress is 0 exactly at a level threshold"""
    assert progress_to_next_level(karma) == 0


def test_progress_midway():
    assert progress_to_next_level(50) == 50.0
    assert progress_to_next_level(1100) == 50.0


def test_progress_stays_in_bounds():
    """Test progress is always within [0, 100)"""
    for karma in range(0, 5000, 13):
        progress = progress_to_next_level(karma)
        assert 0 <= progress < 100


def test_karma_remaining_for_next_level():
    assert karma_remaining_for_next_level(0) == 100
    assert karma_remaining_for_next_level(999) == 1
    assert karma_remaining_for_next_level(1000) == 200
    assert karma_remaining_for_next_level(1150.5) == 50


def test_get_level_info():
    """Test level summary fields"""
    info = get_level_info(1100)

    assert info == {
        "level": 11,
        "karma_points": 1100,
        "progress": 50.0,
        "karma_remaining": 100,
        "karma_for_next_level": 1200,
    }

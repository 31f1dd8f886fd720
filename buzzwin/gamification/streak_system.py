"""
Ritual Streak & Stats Calculator

Derives streaks and completion statistics from a user's ritual completions.
Everything here is a pure function of its inputs: the same completions,
stored state, catalogue and `today` always give the same result.

Metrics:
- Current streak: consecutive days ending today, or yesterday if nothing
  has been completed yet today
- Longest streak: longest run of consecutive days over the whole history
- This week / this month: completions in the current ISO week (Monday start)
  and the current calendar month
- Most active tags: top 3 impact tags over completed rituals
- Shared vs quiet completions
- Trend, best weekday, milestones and recent streak runs
"""

from collections import Counter
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence
import logging

from buzzwin.models.ritual import (
    ImpactTag,
    Milestone,
    RitualCompletion,
    RitualDefinition,
    RitualStats,
    StreakRun,
    TagCount,
    UserRitualState,
)
from buzzwin.utils.datetime_helpers import (
    day_key_days_ago,
    parse_day_key,
    start_of_month,
    start_of_week,
    to_day_key,
)

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (7, 14, 30, 60, 100)
COMPLETION_MILESTONES = (10, 25, 50, 100, 250, 500)
MOST_ACTIVE_TAG_LIMIT = 3
RECENT_STREAK_LIMIT = 5

# Ties for best day go to the earliest day in this order
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def _unique_days(completions: Iterable[RitualCompletion]) -> List[date]:
    """Distinct completion days, newest first. Malformed day keys are skipped."""
    days = set()
    for completion in completions:
        try:
            days.add(parse_day_key(completion.date))
        except ValueError:
            logger.warning(
                f"Skipping completion {completion.id} with malformed date '{completion.date}'"
            )
    return sorted(days, reverse=True)


def _runs(days_newest_first: Sequence[date]) -> List[List[date]]:
    """Split days into runs of consecutive days, newest run first"""
    runs: List[List[date]] = []
    for day in days_newest_first:
        if runs and runs[-1][-1] - day == timedelta(days=1):
            runs[-1].append(day)
        else:
            runs.append([day])
    return runs


def calculate_streak(completions: Sequence[RitualCompletion], today: date) -> int:
    """
    Current streak in days

    The streak is alive if the latest completion is today or yesterday;
    otherwise it is 0. Completions dated after today are ignored.
    """
    days = [day for day in _unique_days(completions) if day <= today]
    if not days:
        return 0

    yesterday = today - timedelta(days=1)
    if days[0] not in (today, yesterday):
        return 0

    return len(_runs(days)[0])


def calculate_longest_streak(completions: Sequence[RitualCompletion]) -> int:
    """Longest run of consecutive completion days in the whole history"""
    runs = _runs(_unique_days(completions))
    return max((len(run) for run in runs), default=0)


def get_recent_streaks(completions: Sequence[RitualCompletion]) -> List[StreakRun]:
    """Most recent runs of two or more consecutive days, newest first"""
    streaks = []
    for run in _runs(_unique_days(completions)):
        if len(run) < 2:
            continue
        streaks.append(StreakRun(
            start_date=to_day_key(run[-1]),
            end_date=to_day_key(run[0]),
            length=len(run),
        ))
        if len(streaks) == RECENT_STREAK_LIMIT:
            break
    return streaks


def calculate_completion_trend(completions: Sequence[RitualCompletion], today: date) -> str:
    """
    Compare the last 7 days (excluding today) with the 7 days before

    Returns 'increasing' above +10%, 'decreasing' below -10%, else 'stable'.
    Fewer than 7 completions in total is always 'stable'.
    """
    if len(completions) < 7:
        return "stable"

    today_key = to_day_key(today)
    week_ago = day_key_days_ago(today, 7)
    two_weeks_ago = day_key_days_ago(today, 14)

    last_week = sum(1 for c in completions if week_ago <= c.date < today_key)
    previous_week = sum(1 for c in completions if two_weeks_ago <= c.date < week_ago)

    if last_week > previous_week * 1.1:
        return "increasing"
    if last_week < previous_week * 0.9:
        return "decreasing"
    return "stable"


def get_best_day(completions: Sequence[RitualCompletion]) -> Optional[str]:
    """Weekday name with the most completions, None without completions"""
    counts = Counter()
    for completion in completions:
        try:
            day = parse_day_key(completion.date)
        except ValueError:
            continue
        # date.weekday() is Monday=0; shift so Sunday=0
        counts[WEEKDAY_NAMES[(day.weekday() + 1) % 7]] += 1

    if not counts:
        return None

    return max(WEEKDAY_NAMES, key=lambda name: counts[name])


def count_tags(
    completions: Sequence[RitualCompletion],
    ritual_definitions: Optional[Sequence[RitualDefinition]]
) -> Counter:
    """
    Count impact tags over completed rituals

    Completions whose ritual is not in the catalogue contribute nothing.
    """
    counts = Counter({tag.value: 0 for tag in ImpactTag})
    if not ritual_definitions:
        return counts

    rituals_by_id = {ritual.id: ritual for ritual in ritual_definitions if ritual.id}
    for completion in completions:
        ritual = rituals_by_id.get(completion.ritual_id)
        if ritual is None:
            continue
        for tag in ritual.tags:
            counts[tag] += 1
    return counts


def _most_active_tags(tag_counts: Counter) -> List[TagCount]:
    # sorted() is stable, so equal counts keep ImpactTag order
    ranked = sorted(
        (TagCount(tag=tag, count=count) for tag, count in tag_counts.items() if count > 0),
        key=lambda entry: entry.count,
        reverse=True,
    )
    return ranked[:MOST_ACTIVE_TAG_LIMIT]


def empty_stats() -> RitualStats:
    """Stats for a user with no usable history (every counter zero)"""
    return RitualStats()


def calculate_stats(
    completions: Sequence[RitualCompletion],
    user_state: Optional[UserRitualState],
    ritual_definitions: Optional[Sequence[RitualDefinition]],
    today: date,
) -> RitualStats:
    """
    Calculate ritual stats from completions

    Args:
        completions: All of the user's completions
        user_state: Stored counters (only longest_streak is used, as a floor)
        ritual_definitions: Ritual catalogue used for tag counting
        today: The current day in the day-boundary time zone

    Returns:
        RitualStats
    """
    week_start = start_of_week(today)
    week_start_key = to_day_key(week_start)
    week_end_key = to_day_key(week_start + timedelta(days=6))
    month_prefix = to_day_key(start_of_month(today))[:7]

    completed_this_week = sum(1 for c in completions if week_start_key <= c.date <= week_end_key)
    completed_this_month = sum(1 for c in completions if c.date[:7] == month_prefix)

    days = _unique_days(completions)

    shared_count = sum(1 for c in completions if not c.completed_quietly and c.shared_as_moment_id)
    quiet_count = sum(1 for c in completions if c.completed_quietly)

    current_streak = calculate_streak(completions, today)
    longest_streak = max(
        user_state.longest_streak if user_state else 0,
        current_streak,
        calculate_longest_streak(completions),
    )

    first_day = days[-1] if days else today
    total_days = max(1, (today - first_day).days + 1)

    return RitualStats(
        current_streak=current_streak,
        longest_streak=longest_streak,
        total_completed=len(completions),
        completed_this_week=completed_this_week,
        completed_this_month=completed_this_month,
        completed_days=len(days),
        most_active_tags=_most_active_tags(count_tags(completions, ritual_definitions)),
        shared_count=shared_count,
        quiet_count=quiet_count,
        average_completions_per_day=round(len(completions) / total_days, 2),
        completion_rate=round(len(days) / total_days * 100, 1),
        best_day=get_best_day(completions),
        streak_milestones=[
            Milestone(milestone=m, achieved=longest_streak >= m) for m in STREAK_MILESTONES
        ],
        completion_milestones=[
            Milestone(milestone=m, achieved=len(completions) >= m) for m in COMPLETION_MILESTONES
        ],
        recent_streaks=get_recent_streaks(completions),
        completion_trend=calculate_completion_trend(completions, today),
        last_completed_date=to_day_key(days[0]) if days else None,
    )

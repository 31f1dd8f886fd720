"""Ritual catalogue search and sorting"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Sequence

from buzzwin.models.ritual import RitualDefinition


class RitualSort(str, Enum):
    """Catalogue orderings"""
    POPULARITY = "popularity"
    NEWEST = "newest"
    KARMA = "karma"
    ALPHABETICAL = "alphabetical"


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_at(ritual: RitualDefinition) -> datetime:
    created = ritual.created_at
    if created is None:
        return _EPOCH
    if created.tzinfo is None:
        return created.replace(tzinfo=timezone.utc)
    return created


def filter_rituals_by_search(
    rituals: Sequence[RitualDefinition],
    search_query: str
) -> List[RitualDefinition]:
    """Case-insensitive substring match on title, description or any tag"""
    query = (search_query or "").strip().lower()
    if not query:
        return list(rituals)

    return [
        ritual for ritual in rituals
        if query in ritual.title.lower()
        or query in ritual.description.lower()
        or any(query in tag.lower() for tag in ritual.tags)
    ]


def sort_rituals(rituals: Sequence[RitualDefinition], sort_by: str) -> List[RitualDefinition]:
    """
    Sort rituals; returns a new list and never reorders the input

    - popularity: most joined users first, then highest usage count
    - newest: most recently created first
    - karma: highest completion rate (usage count when the rate is 0) first
    - alphabetical: title, case-insensitive

    Unknown options keep the input order.
    """
    try:
        option = RitualSort(sort_by)
    except ValueError:
        return list(rituals)

    if option is RitualSort.POPULARITY:
        return sorted(
            rituals,
            key=lambda r: (len(r.joined_by_users), r.usage_count),
            reverse=True,
        )
    if option is RitualSort.NEWEST:
        return sorted(rituals, key=_created_at, reverse=True)
    if option is RitualSort.KARMA:
        return sorted(
            rituals,
            key=lambda r: r.completion_rate or r.usage_count,
            reverse=True,
        )
    return sorted(rituals, key=lambda r: r.title.lower())


def filter_and_sort_rituals(
    rituals: Sequence[RitualDefinition],
    search_query: str,
    sort_by: str
) -> List[RitualDefinition]:
    return sort_rituals(filter_rituals_by_search(rituals, search_query), sort_by)

"""
Service Layer Package

Business logic between the HTTP layer (buzzwin.api) and the data access
layer (buzzwin.db.queries).

- RitualService: ritual completion, stats, catalogue, leaderboard
"""

from buzzwin.services.container import ServiceContainer, init_container
from buzzwin.services.ritual_service import RitualService

__all__ = [
    "ServiceContainer",
    "init_container",
    "RitualService",
]

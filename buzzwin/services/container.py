"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.

One container is created per application and stored on app.state, so
anything a service caches lives exactly as long as that application.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (db) are injected.
    """

    # Infrastructure dependencies (injected)
    db: object  # Database instance

    # Services (lazy-loaded via properties)
    _ritual_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def ritual_service(self):
        """Get RitualService instance (lazy-loaded)"""
        if self._ritual_service is None:
            from buzzwin.services.ritual_service import RitualService
            self._ritual_service = RitualService(self.db)
            logger.debug("RitualService instantiated")
        return self._ritual_service


def init_container(db: object) -> ServiceContainer:
    """
    Create a service container.

    Called once by the API application factory.

    Args:
        db: Database connection instance

    Returns:
        ServiceContainer: The initialized container
    """
    container = ServiceContainer(db=db)
    logger.info("Service container initialized")
    return container

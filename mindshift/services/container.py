"""
Service Container - Dependency Injection Container

Holds the progression store and hands out the services built on it.
Services are lazy-loaded: instantiated only when first accessed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
import logging

from mindshift.db.store import ProgressionStore
from mindshift.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    The store and the clock are injected.
    """

    # Infrastructure dependencies (injected)
    store: ProgressionStore
    clock: Callable[[], datetime] = now_utc

    # Services (lazy-loaded via properties)
    _practice_service: Optional[object] = field(default=None, init=False, repr=False)
    _user_service: Optional[object] = field(default=None, init=False, repr=False)
    _affirmation_service: Optional[object] = field(default=None, init=False, repr=False)
    _stats_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def practice_service(self):
        """Get PracticeService instance (lazy-loaded)"""
        if self._practice_service is None:
            from mindshift.services.practice_service import PracticeService
            self._practice_service = PracticeService(self.store, self.clock)
            logger.debug("PracticeService instantiated")
        return self._practice_service

    @property
    def user_service(self):
        """Get UserService instance (lazy-loaded)"""
        if self._user_service is None:
            from mindshift.services.user_service import UserService
            self._user_service = UserService(self.store, self.clock)
            logger.debug("UserService instantiated")
        return self._user_service

    @property
    def affirmation_service(self):
        """Get AffirmationService instance (lazy-loaded)"""
        if self._affirmation_service is None:
            from mindshift.services.affirmation_service import AffirmationService
            self._affirmation_service = AffirmationService(self.store, self.clock)
            logger.debug("AffirmationService instantiated")
        return self._affirmation_service

    @property
    def stats_service(self):
        """Get StatsService instance (lazy-loaded)"""
        if self._stats_service is None:
            from mindshift.services.stats_service import StatsService
            self._stats_service = StatsService(self.store, self.clock)
            logger.debug("StatsService instantiated")
        return self._stats_service


# Global container instance (initialized by the API lifespan)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Returns:
        ServiceContainer: The global container instance

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() before using services."
        )
    return _container


def init_container(
    store: ProgressionStore,
    clock: Callable[[], datetime] = now_utc
) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        store: Progression store
        clock: Returns the current UTC instant

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(store=store, clock=clock)

    logger.info(f"Service container initialized with {store.__class__.__name__}")
    return _container


def reset_container() -> None:
    """Drop the global container (application shutdown and tests)"""
    global _container
    _container = None

"""Process-level collaborators for the HTTP adapter.

Each getter is cached so one app process shares a single registry, monitor
and enhancer. Tests swap them with ``app.dependency_overrides``.
"""

from functools import lru_cache

from packmatch.core.config import Settings, get_settings
from packmatch.core.connectivity import ConnectivityMonitor
from packmatch.core.enhancement import EnhancementPipeline, Enhancer, NoOpEnhancer
from packmatch.core.logging import get_logger
from packmatch.core.pack_loader import PackStore, normalize_city_name
from packmatch.core.search_session import SearchSession
from packmatch.services.enhancement_service import build_enhancement_service

logger = get_logger(__name__)


class SessionRegistry:
    """One SearchSession per loaded city, built on first use."""

    def __init__(self, store: PackStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or get_settings()
        self._sessions: dict[str, SearchSession] = {}

    def get(self, city: str) -> SearchSession:
        """
        Session for ``city``, loading its pack if needed.

        Raises:
            PackNotFoundError: No pack for the city
            PackInvalidError: Pack file failed validation
        """
        slug = normalize_city_name(city)
        session = self._sessions.get(slug)
        if session is None:
            session = SearchSession(self.store.load(slug), settings=self.settings)
            self._sessions[slug] = session
        return session

    def evict(self, city: str) -> bool:
        return self._sessions.pop(normalize_city_name(city), None) is not None

    def loaded_cities(self) -> list[str]:
        return sorted(self._sessions)


@lru_cache
def get_registry() -> SessionRegistry:
    return SessionRegistry(PackStore())


@lru_cache
def get_monitor() -> ConnectivityMonitor:
    return ConnectivityMonitor()


@lru_cache
def get_enhancer() -> Enhancer:
    service = build_enhancement_service()
    if service is None:
        return NoOpEnhancer()
    return EnhancementPipeline(service)

"""API dependency wiring - one owned ThreadRegistry per process."""

from functools import lru_cache

from ..config import Settings, get_settings
from ..domain.thread_registry import ThreadRegistry
from ..service import create_thread_registry


def get_app_settings() -> Settings:
    """Settings as a dependency so tests can override them."""
    return get_settings()


@lru_cache(maxsize=1)
def get_thread_registry() -> ThreadRegistry:
    """
    Create the thread registry (cached singleton).

    Service factory handles all construction logic - deps.py is just thin DI glue.
    """
    return create_thread_registry(get_settings())

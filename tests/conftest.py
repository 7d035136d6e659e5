"""
Pytest configuration for media-cache tests.

Adds project root to sys.path so that 'from mediacache...' imports work
without installing. Defines markers and shared fixtures.
"""
import sys
import pytest
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mediacache.core.config import reset_settings
from mediacache.core.registry import KeyRegistry, KeyType, MetadataKey
from mediacache.common.logging import set_correlation_id, set_cache_id


# =============================================================================
# Pytest Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Tests against a real SQLite file")
    config.addinivalue_line("markers", "invariant: Record and cache invariant tests")


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return project root path."""
    return PROJECT_ROOT


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Point the default database at a temp dir and drop cached settings."""
    monkeypatch.setenv("MEDIA_CACHE_DB_PATH", str(tmp_path / "default" / "media-cache.db"))
    monkeypatch.delenv("MEDIA_CACHE_BUSY_RETRIES", raising=False)
    monkeypatch.delenv("MEDIA_CACHE_BUSY_BACKOFF", raising=False)
    reset_settings()
    set_correlation_id(None)
    set_cache_id(None)
    yield
    reset_settings()


@pytest.fixture
def db_path(tmp_path) -> str:
    """Path of a fresh database file."""
    return str(tmp_path / "cache.db")


@pytest.fixture
def registry() -> KeyRegistry:
    """Fresh registry with the system keys."""
    return KeyRegistry.default()


@pytest.fixture
def year_key() -> MetadataKey:
    """Application-defined integer key."""
    return MetadataKey("year", KeyType.INT, "Release year")


@pytest.fixture
def registry_with_year(registry, year_key) -> KeyRegistry:
    """Registry with an extra 'year' key."""
    registry.register(year_key)
    return registry

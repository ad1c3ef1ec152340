"""Root test configuration."""

import logging
import os

import pytest
import structlog
from colormesh.config.settings import Settings, get_settings
from colormesh.providers.memory import InMemoryBackend
from colormesh.topology.plan import TopologyPlan


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def settings():
    """Default settings, isolated from COLORMESH_* environment variables."""
    return Settings(_env_file=None)


@pytest.fixture
def planner(settings):
    return TopologyPlan(settings)


@pytest.fixture
def blue_green(planner):
    """Plan for the canonical two-variant demo."""
    return planner.build(["blue", "green"], "mesh.local")


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Run with no topology file in cwd or home."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in list(os.environ):
        if name.startswith("COLORMESH_"):
            monkeypatch.delenv(name)

    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()

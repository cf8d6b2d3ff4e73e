"""Pytest configuration and fixtures for service layer tests."""

import pytest

from figcache.core.config import Config
from figcache.services import ServiceContainer, SyncController
from tests.fakes import FakeClock, FakeDesignSource, color, component, frame, node


@pytest.fixture
def landing_source(source: FakeDesignSource) -> FakeDesignSource:
    """A one-page document with three nodes and a themed color variable."""
    source.add_page(
        "1:1",
        "Landing",
        [
            frame("10:1", "Login Card", [node("10:2", "Primary Button", "INSTANCE")]),
            frame("10:3", "Footer"),
        ],
    )
    source.add_collection("c1", "Theme", [("m1", "Light")])
    source.add_variable(
        "v1", "colors/primary", "c1", "COLOR", {"m1": color(87 / 255, 13 / 255, 248 / 255)}
    )
    return source


@pytest.fixture
def component_source(landing_source: FakeDesignSource) -> FakeDesignSource:
    landing_source.add_page("2:1", "Components", [component("20:1", "Button", key="btn-key")])
    return landing_source


@pytest.fixture
def container(config: Config, landing_source: FakeDesignSource, clock: FakeClock) -> ServiceContainer:
    """Provide a connected ServiceContainer over the fake source."""
    services = ServiceContainer(config, source=landing_source, clock=clock)
    services.connect()
    yield services
    services.partitions.close()


@pytest.fixture
def controller(container: ServiceContainer) -> SyncController:
    return container.sync

"""Pytest configuration and fixtures for integration tests."""

import pytest

from figcache.core.config import Config
from figcache.services import ServiceContainer
from tests.fakes import FakeClock, FakeDesignSource, alias, color, component, frame, node, text


@pytest.fixture
def design_document() -> FakeDesignSource:
    """A small marketing site: two pages, a button component and a theme."""
    source = FakeDesignSource(document_id="mkt:42", document_name="Marketing Site")
    source.add_page(
        "1:1",
        "Landing",
        [
            frame(
                "10:1",
                "Hero",
                [
                    text("10:2", "Headline"),
                    node(
                        "10:3",
                        "Primary Button",
                        "INSTANCE",
                        mainComponent={"name": "Button", "key": "btn"},
                        boundVariables={"fills": [alias("v-primary")]},
                    ),
                ],
                layoutMode="HORIZONTAL",
                itemSpacing=24,
            ),
            frame("10:4", "Login Card", [text("10:5", "Email")], cornerRadius=16),
        ],
    )
    source.add_page("2:1", "Components", [component("20:1", "Button", key="btn")])
    source.add_collection("theme", "Theme", [("light", "Light"), ("dark", "Dark")])
    source.add_variable(
        "v-primary",
        "colors/primary",
        "theme",
        "COLOR",
        {"light": color(87 / 255, 13 / 255, 248 / 255), "dark": color(102 / 255, 26 / 255, 230 / 255)},
    )
    source.add_variable("v-gap", "spacing/gap-lg", "theme", "FLOAT", {"light": 24, "dark": 24})
    return source


@pytest.fixture
def open_services(config: Config, design_document: FakeDesignSource, clock: FakeClock):
    """Factory for containers sharing one cache directory, closed at teardown."""
    opened: list[ServiceContainer] = []

    def factory(source: FakeDesignSource | None = None) -> ServiceContainer:
        services = ServiceContainer(config, source=source or design_document, clock=clock)
        services.connect()
        services.index.set_active_document((source or design_document).document_id)
        opened.append(services)
        return services

    yield factory
    for services in opened:
        services.partitions.close()

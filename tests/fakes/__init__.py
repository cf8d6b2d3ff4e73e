"""Test fakes for testing without a live design tool.

Example:
    from tests.fakes import FakeDesignSource, frame

    source = FakeDesignSource()
    source.add_page("1:1", "Landing", [frame("10:1", "Hero")])
"""

from .records import FakeClock, make_node
from .source import (
    FakeDesignSource,
    alias,
    color,
    component,
    frame,
    node,
    text,
)

__all__ = [
    "FakeClock",
    "make_node",
    "FakeDesignSource",
    "alias",
    "color",
    "component",
    "frame",
    "node",
    "text",
]

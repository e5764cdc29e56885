"""
Shared pytest fixtures and configuration for datajoin tests.
"""

import pytest

from datajoin import DataJoin


class Widget:
    """Stand-in for an object built from a raw item."""

    def __init__(self, raw):
        self.raw = raw
        self.destroyed = False

    def __repr__(self):
        return f"Widget({self.raw!r})"


class FactoryRecorder:
    """Factory and destroy callbacks that remember every call."""

    def __init__(self):
        self.created = []
        self.destroyed = []

    def create(self, raw):
        widget = Widget(raw)
        self.created.append(widget)
        return widget

    def destroy(self, widget):
        widget.destroyed = True
        self.destroyed.append(widget)


@pytest.fixture
def join():
    """Provide a fresh DataJoin without a factory."""
    return DataJoin()


@pytest.fixture
def recorder():
    """Provide a fresh FactoryRecorder."""
    return FactoryRecorder()


@pytest.fixture
def factory_join(recorder):
    """Provide a DataJoin whose factory and destroy calls are recorded."""
    return DataJoin().factory(recorder.create, recorder.destroy)

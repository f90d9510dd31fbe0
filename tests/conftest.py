"""Shared pytest fixtures."""

import pytest

from core.ai.gateway import ProviderGateway
from core.ai.telemetry import MetricsCollector
from core.store.memory import InMemoryDocumentStore
from tests.fakes import FakeBackend, FakeClock, FakeStorage, library_documents


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def primary():
    return FakeBackend("fake-primary")


@pytest.fixture
def fallback():
    return FakeBackend("fake-fallback")


@pytest.fixture
def metrics(fake_clock):
    return MetricsCollector(clock=fake_clock)


@pytest.fixture
def gateway(primary, metrics, fake_clock):
    """Gateway without fallback over the scripted primary."""
    return ProviderGateway(primary, metrics=metrics, clock=fake_clock)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def library_store():
    return InMemoryDocumentStore(library_documents())


@pytest.fixture
def fake_storage():
    return FakeStorage()

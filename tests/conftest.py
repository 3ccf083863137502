import os
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Select the Protean config overlay before the domain is first initialized.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def stockledger_bed():
    from stockledger.domain import stockledger

    bed = DomainFixture(stockledger)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(stockledger_bed):
    with stockledger_bed.domain_context():
        yield


@pytest.fixture()
def cache():
    """A fresh in-memory availability cache, installed as the process-wide cache."""
    from stockledger.cache import set_cache
    from stockledger.cache.memory_adapter import MemoryAvailabilityCache

    memory_cache = MemoryAvailabilityCache()
    set_cache(memory_cache)
    return memory_cache


@pytest.fixture(autouse=True)
def run_around_tests(_ctx, cache):
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain
    from stockledger.cache import reset_cache
    from stockledger.store import reset_store

    reset_cache()
    reset_store()

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Activate the bridge domain by pushing its domain_context, so it can be
    referred to elsewhere as `current_domain`.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from bridge.domain import bridge

    bridge.init()
    bridge.domain_context().push()


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
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from bridge.domain import bridge
    from bridge.utils.db import drop_db, setup_db

    setup_db(bridge)

    yield

    drop_db(bridge)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Reset stores and collaborators after every test."""
    yield

    from bridge.catalog import reset_catalog
    from bridge.marketing import reset_marketing
    from bridge.processor import reset_processor
    from bridge.settings import reset_settings
    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()

    reset_processor()
    reset_catalog()
    reset_marketing()
    reset_settings()

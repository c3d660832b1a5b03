"""pytest integration for dbfixture.

Registered through the ``pytest11`` entry point. Projects wire their own
data source by overriding the ``db_connection_pool`` and ``db_cache_manager``
fixtures (and the container runtime through ``db_runtime``) in a ``conftest.py``::

    @pytest.fixture(scope="session")
    def db_connection_pool(app_engine):
        return SqlAlchemyConnectionPool(app_engine)
"""

import os

import pytest

from dbfixture.constants import DEFAULT_CONFIG_FILE
from dbfixture.core import DbFixtureController
from dbfixture.models import FixtureFlags
from dbfixture.services.config_loader import ConfigLoader
from dbfixture.services.environment import StaticGate, read_flags


# https://docs.pytest.org/en/latest/reference/reference.html#pytest.hookspec.pytest_addoption
def pytest_addoption(parser):
    group = parser.getgroup("dbfixture", "snapshot-backed MySQL test database")
    group.addoption(
        "--db-force-refresh",
        action="store_true",
        default=False,
        help="Ignore any existing snapshot image and build the database from scratch.",
    )
    group.addoption(
        "--db-delete-image",
        action="store_true",
        default=False,
        help="Remove the snapshot image when the test session ends.",
    )
    group.addoption(
        "--db-config",
        action="store",
        default=None,
        help=f"Path to a YAML fixture configuration (default: {DEFAULT_CONFIG_FILE} if present).",
    )


def resolve_flags(config) -> FixtureFlags:
    env_flags = read_flags()
    return FixtureFlags(
        delete_image=env_flags.delete_image or config.getoption("--db-delete-image"),
        force_refresh=env_flags.force_refresh or config.getoption("--db-force-refresh"),
    )


def resolve_config_path(config):
    path = config.getoption("--db-config")
    if path is None:
        default_path = os.path.join(str(config.rootpath), DEFAULT_CONFIG_FILE)
        if os.path.exists(default_path):
            path = default_path
    return path


@pytest.fixture(scope="session")
def db_connection_pool():
    return None


@pytest.fixture(scope="session")
def db_cache_manager():
    return None


@pytest.fixture(scope="session")
def db_runtime():
    return None


@pytest.fixture(scope="session")
def db_fixture(request, db_runtime, db_connection_pool, db_cache_manager):
    fixture_config = ConfigLoader().build_config(resolve_config_path(request.config))
    controller = DbFixtureController(
        config=fixture_config,
        flags=resolve_flags(request.config),
        gate=StaticGate(True),
        runtime=db_runtime,
        connection_pool=db_connection_pool,
        cache_manager=db_cache_manager,
    )
    try:
        controller.initialize()
        yield controller
    finally:
        controller.cleanup()


@pytest.fixture(scope="function")
def db_reset(db_fixture):
    yield db_fixture
    db_fixture.reset_database()

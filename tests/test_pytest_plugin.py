import pytest

from dbfixture import pytest_plugin

pytest_plugins = ["pytester"]


class FakeConfig:
    def __init__(self, rootpath, options):
        self.rootpath = rootpath
        self.options = options

    def getoption(self, name):
        return self.options[name]


def test_resolve_flags_combines_options_and_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("DBFIXTURE_DELETE_IMAGE", "1")
    monkeypatch.delenv("DBFIXTURE_FORCE_REFRESH", raising=False)
    config = FakeConfig(tmp_path, {"--db-delete-image": False, "--db-force-refresh": True})

    flags = pytest_plugin.resolve_flags(config)

    assert flags.delete_image is True
    assert flags.force_refresh is True


def test_resolve_config_path_prefers_option(tmp_path):
    (tmp_path / ".dbfixture.yml").write_text("tag: ci\n", encoding="utf-8")
    config = FakeConfig(tmp_path, {"--db-config": "other.yml"})

    assert pytest_plugin.resolve_config_path(config) == "other.yml"


def test_resolve_config_path_falls_back_to_rootdir_file(tmp_path):
    config = FakeConfig(tmp_path, {"--db-config": None})
    assert pytest_plugin.resolve_config_path(config) is None

    (tmp_path / ".dbfixture.yml").write_text("tag: ci\n", encoding="utf-8")
    assert pytest_plugin.resolve_config_path(config) == str(tmp_path / ".dbfixture.yml")

FAKE_RUNTIME_CONFTEST = """
from pathlib import Path

import pytest

from dbfixture.errors import FixtureError
from dbfixture.models import ContainerHandle

EVENTS = Path("events.log")


def record(line):
    with EVENTS.open("a", encoding="utf-8") as events:
        events.write(line + "\\n")


class RecordingRuntime:
    def __init__(self, ready):
        self.ready = ready
        self.started = 0

    def find_image(self, image_name):
        return "sha256:existing"

    def ensure_network(self, network):
        return None

    def run_container(self, image, env=None, network=None, network_alias=None, command_args=None, pull=True):
        self.started += 1
        record(f"run c{self.started}")
        return ContainerHandle(
            container_id=f"c{self.started}",
            image=image,
            host="localhost",
            port=49000 + self.started,
        )

    def wait_for_mysql(self, handle, username, password, max_retries=60, interval_seconds=1.0):
        if not self.ready:
            raise FixtureError("not ready")

    def stop_container(self, handle):
        record(f"stop {handle.container_id}")

    def remove_image(self, image_name):
        record(f"rmi {image_name}")


@pytest.fixture(scope="session")
def db_runtime():
    return RecordingRuntime(ready=READY)
"""

PLUGIN_ARGS = ["-p", "no:dbfixture", "-p", "dbfixture.pytest_plugin"]


def _events(pytester):
    return (pytester.path / "events.log").read_text(encoding="utf-8").splitlines()


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.delenv("DBFIXTURE_DELETE_IMAGE", raising=False)
    monkeypatch.delenv("DBFIXTURE_FORCE_REFRESH", raising=False)


def test_db_fixture_stops_container_when_startup_fails(pytester, clean_env):
    pytester.makeconftest("READY = False\n" + FAKE_RUNTIME_CONFTEST)
    pytester.makepyfile(
        """
        def test_uses_database(db_fixture):
            pass
        """
    )

    result = pytester.runpytest(*PLUGIN_ARGS)

    result.assert_outcomes(errors=1)
    assert _events(pytester) == ["run c1", "stop c1"]


def test_db_fixture_cleans_up_and_db_reset_restarts_after_each_test(pytester, clean_env):
    pytester.makeconftest("READY = True\n" + FAKE_RUNTIME_CONFTEST)
    pytester.makepyfile(
        """
        def test_first(db_reset):
            assert db_reset.handle.container_id == "c1"

        def test_second(db_reset):
            assert db_reset.handle.container_id == "c2"

        def test_plain(db_fixture):
            assert db_fixture.handle.container_id == "c3"
        """
    )

    result = pytester.runpytest(*PLUGIN_ARGS)

    result.assert_outcomes(passed=3)
    assert _events(pytester) == [
        "run c1",
        "stop c1",
        "run c2",
        "stop c2",
        "run c3",
        "stop c3",
    ]


def test_db_fixture_removes_snapshot_with_delete_option(pytester, clean_env):
    pytester.makeconftest("READY = True\n" + FAKE_RUNTIME_CONFTEST)
    pytester.makepyfile(
        """
        def test_uses_database(db_fixture):
            pass
        """
    )

    result = pytester.runpytest(*PLUGIN_ARGS, "--db-delete-image")

    result.assert_outcomes(passed=1)
    assert _events(pytester) == ["run c1", "stop c1", "rmi test-db-snapshot:latest"]

import logging
import os
import subprocess
from typing import Dict, List, Optional

from rich.console import Console

from .constants import SCHEMA_NONE, SCHEMA_UPDATE, SNAPSHOT_LABEL
from .errors import FixtureError, SnapshotError
from .errors_catalog import actionable_error
from .models import ContainerHandle, DataSourceSettings, FixtureConfig, FixtureFlags, FixtureState
from .services.cache import OrmCacheManager
from .services.command_runner import CommandRunner
from .services.datasource import ConnectionPool, build_connection_url
from .services.docker_runtime import DockerRuntimeService
from .services.environment import EnvironmentGate, read_flags

console = Console()
logger = logging.getLogger("dbfixture")

FLUSH_STATEMENTS = [
    "FLUSH TABLES WITH READ LOCK",
    "SET GLOBAL innodb_fast_shutdown = 0",
]


class DbFixtureController:
    """Owns the lifecycle of the MySQL container backing an integration test run.

    On construction it decides whether an existing snapshot image can be
    reused. ``initialize`` starts that container and publishes its URL.
    Once the schema and seed data are in place, ``flush_data`` followed by
    ``create_database_snapshot`` captures the container as an image, and
    ``reset_database`` restarts from that image whenever a test needs a
    clean database.
    """

    def __init__(
        self,
        config: Optional[FixtureConfig] = None,
        flags: Optional[FixtureFlags] = None,
        gate=None,
        runtime=None,
        connection_pool: Optional[ConnectionPool] = None,
        cache_manager: Optional[OrmCacheManager] = None,
        settings: Optional[DataSourceSettings] = None,
        environ=None,
    ):
        self.config = config or FixtureConfig()
        self.environ = os.environ if environ is None else environ
        self.flags = flags or read_flags(self.environ)
        self.gate = gate or EnvironmentGate(environ=self.environ)
        self.connection_pool = connection_pool
        self.cache_manager = cache_manager
        self.settings = settings or DataSourceSettings()

        self.command_runner = CommandRunner(logger=logger, default_timeout=self.config.command_timeout)
        self.runtime = runtime or DockerRuntimeService(
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            environ=self.environ,
        )

        self.state = FixtureState.UNINITIALIZED
        self.new_image = True
        self.handle: Optional[ContainerHandle] = None
        self._image: Optional[str] = None
        self._fresh = True

        if self.gate.is_test():
            self.select_or_build()

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        redact: Optional[List[str]] = None,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(cmd, check=check, capture_output=capture_output, redact=redact)

    @property
    def needs_schema_bootstrap(self) -> bool:
        return self.settings.schema_action == SCHEMA_UPDATE

    @property
    def connection_url(self) -> Optional[str]:
        return self.settings.url

    def select_or_build(self) -> FixtureState:
        image_name = self.config.image_name

        if self.flags.force_refresh:
            console.print("[blue]Forcing the creation of a new MySQL container[/blue]")
            logger.info("Forcing the creation of a new MySQL container")
            self._select_fresh()
        elif self.runtime.find_image(image_name):
            console.print(f"[green]Using existing pre-populated snapshot {image_name}.[/green]")
            logger.info(
                "Using existing pre-populated MySQL image %s - set %s to recreate",
                image_name,
                "DBFIXTURE_FORCE_REFRESH=1",
            )
            self._image = image_name
            self._fresh = False
            self.settings.schema_action = SCHEMA_NONE
            self.new_image = False
            self.state = FixtureState.RESET
        else:
            console.print("[blue]No existing snapshot found, creating new MySQL container...[/blue]")
            logger.info("No existing image %s found, creating new MySQL container", image_name)
            self._select_fresh()

        return self.state

    def _select_fresh(self):
        self._image = self.config.base_image
        self._fresh = True
        self.settings.schema_action = SCHEMA_UPDATE
        self.new_image = True
        self.state = FixtureState.FRESH

    def _fresh_environment(self) -> Dict[str, str]:
        env = {
            "MYSQL_DATABASE": self.config.database,
            "MYSQL_ROOT_PASSWORD": self.config.password,
        }
        if self.config.username != "root":
            env["MYSQL_USER"] = self.config.username
            env["MYSQL_PASSWORD"] = self.config.password
        return env

    def _fresh_command_args(self) -> List[str]:
        return [
            f"--datadir={self.config.data_dir}",
            f"--character-set-server={self.config.charset}",
            f"--collation-server={self.config.collation}",
        ]

    def _start_container(self, image: str, fresh: bool) -> ContainerHandle:
        if self.config.network:
            self.runtime.ensure_network(self.config.network)

        handle = self.runtime.run_container(
            image,
            env=self._fresh_environment() if fresh else None,
            network=self.config.network,
            network_alias=self.config.network_alias,
            command_args=self._fresh_command_args() if fresh else None,
            pull=fresh,
        )
        self.handle = handle
        self.runtime.wait_for_mysql(
            handle,
            username=self.config.username,
            password=self.config.password,
            max_retries=self.config.ready_retries,
            interval_seconds=self.config.ready_interval_seconds,
        )
        return handle

    def initialize(self):
        if not self.gate.is_test():
            logger.debug("Not running under the test profile, skipping database container")
            return

        handle = self._start_container(self._image, fresh=self._fresh)
        logger.info("MySQL container %s listening on %s:%s", handle.short_id, handle.host, handle.port)
        self.configure_data_source(purge=False)

    def configure_data_source(self, purge: bool):
        url = build_connection_url(self.config, self.handle.host, self.handle.port)
        self.settings.url = url
        self.settings.username = self.config.username
        self.settings.password = self.config.password

        if self.config.export_environment:
            self.environ.update(self.settings.as_environ())

        if self.connection_pool is not None:
            self.connection_pool.set_url(url)
            if purge:
                self.connection_pool.purge()

    def flush_data(self, connection=None) -> bool:
        """Makes the on-disk state consistent before it is committed to an image.

        Runs on ``connection`` (a SQLAlchemy connection) when given, otherwise
        through the ``mysql`` client inside the container. The client session
        ends right after the statements, which releases the read lock before
        the commit; tables are still flushed to disk, but pass a connection
        and keep it open until ``create_database_snapshot`` returns when
        writers may still be running.
        """
        if not self.new_image:
            return False

        console.print("[blue]Flushing test data...[/blue]")
        logger.info("Flushing test data...")
        if connection is not None:
            for statement in FLUSH_STATEMENTS:
                connection.exec_driver_sql(statement)
        else:
            self.runtime.exec_sql(
                self.handle,
                FLUSH_STATEMENTS,
                username=self.config.username,
                password=self.config.password,
            )
        logger.info("Finished flushing")
        return True

    def create_database_snapshot(self) -> Optional[str]:
        image_name = self.config.image_name

        if not self.new_image:
            logger.info("Snapshot %s already captured, nothing to do", image_name)
            return self.runtime.find_image(image_name)

        try:
            console.print("[blue]Creating snapshot image...[/blue]")
            logger.info("Creating snapshot image %s from container %s", image_name, self.handle.short_id)
            image_id = self.runtime.commit(
                self.handle,
                repository=self.config.repository,
                tag=self.config.tag,
                labels={SNAPSHOT_LABEL: str(self.flags.delete_image).lower()},
            )
            self.new_image = False
            self.state = FixtureState.SNAPSHOTTED

            self.reset_database()
        except Exception as exc:
            raise SnapshotError(actionable_error("snapshot_failed", image=image_name)) from exc

        console.print(f"[green]Snapshot image saved: {image_id}[/green]")
        logger.info("Snapshot image saved: %s", image_id)
        return image_id

    def reset_database(self):
        console.print("[blue]Resetting the database...[/blue]")
        logger.info("Resetting the database")
        image_name = self.config.image_name
        if self.new_image:
            raise FixtureError(actionable_error("snapshot_missing", image=image_name))

        if self.handle is not None:
            self.runtime.stop_container(self.handle)
            self.handle = None

        self._start_container(image_name, fresh=False)
        self.configure_data_source(purge=True)
        self.clear_cache()
        self.state = FixtureState.RESET
        logger.info("Database reset, now on %s:%s", self.handle.host, self.handle.port)

    def clear_cache(self):
        if self.cache_manager is None:
            return
        self.cache_manager.evict_all_regions()
        self.cache_manager.flush()
        self.cache_manager.clear()

    def cleanup(self):
        if not self.gate.is_test():
            return

        if self.handle is not None:
            logger.info("Stopping MySQL container %s", self.handle.short_id)
            try:
                self.runtime.stop_container(self.handle)
            except Exception:
                logger.exception("Failed to stop MySQL container %s", self.handle.short_id)
            self.handle = None

        if self.flags.delete_image:
            image_name = self.config.image_name
            try:
                if self.runtime.find_image(image_name):
                    self.runtime.remove_image(image_name)
            except Exception:
                logger.exception("Failed to remove snapshot image %s", image_name)

        self.state = FixtureState.UNINITIALIZED


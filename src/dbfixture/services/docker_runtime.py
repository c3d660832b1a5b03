"""Docker runtime services for dbfixture."""

import os
import time
from typing import Callable, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from dbfixture.constants import MYSQL_PORT
from dbfixture.errors import FixtureError
from dbfixture.errors_catalog import actionable_error
from dbfixture.models import ContainerHandle


class DockerRuntimeService:
    """Starts, commits and removes MySQL containers through the docker CLI."""

    CONTAINER_LABEL = "dbfixture.managed"

    def __init__(self, logger, console, run_cmd: Callable, environ=None):
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.environ = os.environ if environ is None else environ

    def check_available(self) -> str:
        try:
            result = self.run_cmd(
                ["docker", "version", "--format", "{{.Server.Version}}"],
                capture_output=True,
            )
        except FixtureError as exc:
            raise FixtureError(actionable_error("docker_unavailable", detail=str(exc))) from exc
        return (result.stdout or "").strip()

    def find_image(self, image_name: str) -> Optional[str]:
        result = self.run_cmd(
            ["docker", "images", "--quiet", "--no-trunc", image_name],
            capture_output=True,
        )
        for line in (result.stdout or "").splitlines():
            if line.strip():
                return line.strip()
        return None

    def remove_image(self, image_name: str):
        self.logger.info("Removing image %s", image_name)
        self.run_cmd(["docker", "rmi", image_name], capture_output=True)

    def ensure_network(self, network: str):
        result = self.run_cmd(
            ["docker", "network", "inspect", network],
            check=False,
            capture_output=True,
        )
        if result.returncode != 0:
            self.logger.info("Creating docker network %s", network)
            self.run_cmd(["docker", "network", "create", network], capture_output=True)

    def run_container(
        self,
        image: str,
        env: Optional[Dict[str, str]] = None,
        network: Optional[str] = None,
        network_alias: Optional[str] = None,
        command_args: Optional[Iterable[str]] = None,
        pull: bool = True,
    ) -> ContainerHandle:
        cmd = [
            "docker",
            "run",
            "--detach",
            "--label",
            f"{self.CONTAINER_LABEL}=true",
            "--publish",
            str(MYSQL_PORT),
            "--pull",
            "missing" if pull else "never",
        ]
        for key, value in sorted((env or {}).items()):
            cmd += ["--env", f"{key}={value}"]
        if network:
            cmd += ["--network", network]
            if network_alias:
                cmd += ["--network-alias", network_alias]
        cmd.append(image)
        cmd += list(command_args or [])

        result = self.run_cmd(cmd, capture_output=True, redact=list((env or {}).values()))
        container_id = (result.stdout or "").strip().splitlines()[-1].strip()
        try:
            port = self.mapped_port(container_id, MYSQL_PORT)
        except FixtureError:
            self.run_cmd(["docker", "rm", "--force", "--volumes", container_id], check=False, capture_output=True)
            raise
        handle = ContainerHandle(
            container_id=container_id,
            image=image,
            host=self.host(),
            port=port,
        )
        self.logger.debug("Started container %s from %s on %s:%s", handle.short_id, image, handle.host, port)
        return handle

    def mapped_port(self, container_id: str, port: int) -> int:
        result = self.run_cmd(
            ["docker", "port", container_id, f"{port}/tcp"],
            check=False,
            capture_output=True,
        )
        for line in (result.stdout or "").splitlines():
            _, _, host_port = line.strip().rpartition(":")
            if host_port.isdigit():
                return int(host_port)
        raise FixtureError(actionable_error("port_not_mapped", port=str(port), container=container_id[:12]))

    def host(self) -> str:
        docker_host = self.environ.get("DOCKER_HOST", "")
        if docker_host.startswith(("tcp://", "http://", "https://")):
            hostname = urlparse(docker_host).hostname
            if hostname:
                return hostname
        return "localhost"

    def wait_for_mysql(
        self,
        handle: ContainerHandle,
        username: str,
        password: str,
        max_retries: int = 60,
        interval_seconds: float = 1.0,
    ):
        self.console.print(f"[yellow]Waiting for MySQL in {handle.short_id} to be ready...[/yellow]")

        # Force TCP: the entrypoint's bootstrap server only listens on the socket.
        cmd = self._mysql_cmd(handle, username, password) + ["--protocol=TCP", "-e", "SELECT 1"]

        for _ in range(max_retries):
            result = self.run_cmd(cmd, check=False, capture_output=True, redact=[password])
            if result.returncode == 0:
                self.console.print("[green]MySQL is ready.[/green]")
                return
            time.sleep(interval_seconds)

        raise FixtureError(
            actionable_error("container_not_ready", container=handle.short_id, attempts=str(max_retries))
        )

    def exec_sql(self, handle: ContainerHandle, statements: List[str], username: str, password: str):
        script = "; ".join(statements)
        self.run_cmd(
            self._mysql_cmd(handle, username, password) + ["-e", script],
            capture_output=True,
            redact=[password],
        )

    def commit(self, handle: ContainerHandle, repository: str, tag: str, labels: Dict[str, str]) -> str:
        cmd = ["docker", "commit"]
        for key, value in sorted(labels.items()):
            cmd += ["--change", f"LABEL {key}={value}"]
        cmd += [handle.container_id, f"{repository}:{tag}"]
        result = self.run_cmd(cmd, capture_output=True)
        return (result.stdout or "").strip()

    def stop_container(self, handle: ContainerHandle):
        self.logger.debug("Stopping container %s", handle.short_id)
        self.run_cmd(["docker", "stop", handle.container_id], capture_output=True)
        self.run_cmd(["docker", "rm", "--volumes", handle.container_id], capture_output=True)

    @staticmethod
    def _mysql_cmd(handle: ContainerHandle, username: str, password: str) -> List[str]:
        return [
            "docker",
            "exec",
            "--env",
            f"MYSQL_PWD={password}",
            handle.container_id,
            "mysql",
            "--host=127.0.0.1",
            f"--user={username}",
        ]

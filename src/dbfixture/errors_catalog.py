"""Actionable error catalog for dbfixture."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "docker_unavailable": {
        "what": "Docker is not available: {detail}",
        "next": "Start the Docker daemon or set DOCKER_HOST, then rerun the tests.",
    },
    "snapshot_failed": {
        "what": "Failed to create database snapshot {image}.",
        "next": "Check free disk space and `docker ps -a`, then rerun with DBFIXTURE_FORCE_REFRESH=1.",
    },
    "container_not_ready": {
        "what": "MySQL in container {container} did not accept connections after {attempts} attempt(s).",
        "next": "Inspect `docker logs {container}` or raise `ready_retries` in the config file.",
    },
    "port_not_mapped": {
        "what": "Port {port} of container {container} is not published on the host.",
        "next": "Make sure nothing else removed the container and that Docker can publish ports.",
    },
    "snapshot_missing": {
        "what": "Snapshot image {image} does not exist.",
        "next": "Create it first with `create_database_snapshot()` or rerun with DBFIXTURE_FORCE_REFRESH=1.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"

"""Shared domain models for dbfixture."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from dbfixture import constants
from dbfixture.errors import FixtureError


class FixtureState(Enum):
    UNINITIALIZED = "uninitialized"
    FRESH = "fresh"
    SNAPSHOTTED = "snapshotted"
    RESET = "reset"


@dataclass(frozen=True)
class FixtureConfig:
    """Identifiers and credentials fixed for the lifetime of the process."""

    repository: str = constants.REPO_NAME
    tag: str = constants.IMAGE_TAG
    base_image: str = constants.BASE_IMAGE
    database: str = constants.DB_NAME
    username: str = constants.DB_USER
    password: str = constants.DB_PASS
    network: Optional[str] = None
    network_alias: str = constants.NETWORK_ALIAS
    data_dir: str = constants.DATA_DIR
    protocol: str = constants.URL_PROTOCOL
    charset: str = constants.URL_CHARSET
    collation: str = constants.URL_COLLATION
    timezone: str = constants.URL_TIMEZONE
    ready_retries: int = 60
    ready_interval_seconds: float = 1.0
    command_timeout: Optional[float] = None
    export_environment: bool = False

    def __post_init__(self):
        required = ("repository", "tag", "base_image", "database", "username", "password")
        empty = [name for name in required if not str(getattr(self, name) or "").strip()]
        if empty:
            raise FixtureError(f"Fixture configuration values must not be empty: {', '.join(empty)}")
        if self.ready_retries < 1:
            raise FixtureError("ready_retries must be at least 1.")

    @property
    def image_name(self) -> str:
        return f"{self.repository}:{self.tag}"

    @property
    def url_params(self) -> Dict[str, str]:
        return {
            "charset": self.charset,
            "collation": self.collation,
            "init_command": f"SET time_zone = '{self.timezone}'",
        }


@dataclass(frozen=True)
class FixtureFlags:
    """Switches read once from the environment at construction."""

    delete_image: bool = False
    force_refresh: bool = False


@dataclass(frozen=True)
class ContainerHandle:
    """The currently running database container."""

    container_id: str
    image: str
    host: str
    port: int

    @property
    def short_id(self) -> str:
        return self.container_id[:12]


@dataclass
class DataSourceSettings:
    """Process-wide settings the application's data source is built from."""

    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    schema_action: str = constants.SCHEMA_UPDATE

    def as_environ(self) -> Dict[str, str]:
        values = {
            "URL": self.url,
            "USERNAME": self.username,
            "PASSWORD": self.password,
            "SCHEMA_ACTION": self.schema_action,
        }
        return {
            f"{constants.ENV_PREFIX}{key}": value for key, value in values.items() if value is not None
        }

"""Connection URL and connection pool helpers for dbfixture."""

from typing import Optional, Protocol

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine, make_url

from dbfixture.models import DataSourceSettings, FixtureConfig


class ConnectionPool(Protocol):
    def set_url(self, url: str) -> None: ...

    def purge(self) -> None: ...


def build_connection_url(config: FixtureConfig, host: str, port: int) -> str:
    """Renders ``protocol://host:port/dbname?params`` without credentials."""
    url = URL.create(
        drivername=config.protocol,
        host=host,
        port=port,
        database=config.database,
        query=config.url_params,
    )
    return url.render_as_string(hide_password=False)


def create_engine_for(settings: DataSourceSettings, **kwargs) -> Engine:
    """Builds an engine from the published data source settings."""
    url = make_url(settings.url).set(username=settings.username, password=settings.password)
    return create_engine(url, **kwargs)


class SqlAlchemyConnectionPool:
    """Points an existing engine at a new endpoint without rebuilding it.

    New DBAPI connections pick up the host, port and database of the last
    URL given to :meth:`set_url`. Connections already pooled keep their old
    endpoint until :meth:`purge` disposes them.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.url: Optional[URL] = None
        event.listen(engine, "do_connect", self._on_connect)

    def set_url(self, url: str) -> None:
        self.url = make_url(url)

    def purge(self) -> None:
        self.engine.dispose()

    def _on_connect(self, dialect, conn_rec, cargs, cparams):
        if self.url is None:
            return
        cparams["host"] = self.url.host
        cparams["port"] = self.url.port
        if self.url.database:
            key = "db" if "db" in cparams else "database"
            cparams[key] = self.url.database

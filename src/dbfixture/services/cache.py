"""ORM cache eviction helpers for dbfixture."""

from typing import Protocol


class OrmCacheManager(Protocol):
    def evict_all_regions(self) -> None: ...

    def flush(self) -> None: ...

    def clear(self) -> None: ...


class SessionCacheManager:
    """Drops cached entity state held by a SQLAlchemy session.

    Accepts a plain ``Session`` or a ``scoped_session``; the latter proxies
    every call to the session of the current scope.
    """

    def __init__(self, session):
        self.session = session

    def evict_all_regions(self) -> None:
        self.session.expire_all()

    def flush(self) -> None:
        self.session.flush()

    def clear(self) -> None:
        self.session.expunge_all()

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from .connection import DatabaseConnection
from .mysql_base import transaction


class MySQLUnitOfWork:
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with transaction(self._conn_factory):
            yield

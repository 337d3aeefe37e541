from __future__ import annotations

from typing import ContextManager, Protocol


class UnitOfWork(Protocol):
    """Groups repository writes into one atomic commit.

    `transaction()` commits when the block exits cleanly and rolls back on any
    exception. Nested calls join the outer transaction.
    """

    def transaction(self) -> ContextManager[None]:
        raise NotImplementedError

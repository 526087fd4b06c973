"""Explicit transaction context for Cassandra writes.

Repositories never write directly: every write method takes the active
``Transaction`` and queues its statement on it. The operation that opened the
transaction owns the outcome: on normal exit all queued statements are
applied as one LOGGED batch (all or nothing), on error nothing is sent.

Side effects that must only happen once the data is durable (enqueueing
jobs, bumping counters) are registered with ``after_commit``. They run
concurrently after the batch succeeded and are best-effort: a failing hook
is logged and does not undo the commit.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import structlog
from cassandra.query import BatchStatement, BatchType


logger = structlog.get_logger(__name__)


class TransactionError(Exception):
    """Raised when a transaction is used after it was closed."""


AfterCommitHook = Callable[[], Awaitable[Any]]


class Transaction:
    """A pending set of writes plus post-commit side effects."""

    def __init__(self, session: Any):
        self.session = session
        self._statements: list[tuple[Any, Any]] = []
        self._after_commit: list[tuple[str, AfterCommitHook]] = []
        self._closed = False

    @property
    def statements(self) -> list[tuple[Any, Any]]:
        """Queued (statement, parameters) pairs, in order."""
        return list(self._statements)

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, statement: Any, parameters: Any = None) -> None:
        """Queue a write statement."""
        self._ensure_open()
        self._statements.append((statement, parameters))

    def after_commit(self, name: str, hook: AfterCommitHook) -> None:
        """Register a coroutine factory to run once the commit succeeded.

        Args:
            name: Label used in logs when the hook fails
            hook: Zero-argument callable returning an awaitable
        """
        self._ensure_open()
        self._after_commit.append((name, hook))

    async def commit(self) -> None:
        """Apply all queued writes atomically, then fire the hooks."""
        self._ensure_open()
        self._closed = True
        if self._statements:
            await self._execute(self._statements)
        await self._run_after_commit()

    def rollback(self) -> None:
        """Discard queued writes and hooks."""
        if not self._closed:
            logger.debug(
                "transaction_rolled_back",
                statements=len(self._statements),
                hooks=len(self._after_commit),
            )
        self._statements.clear()
        self._after_commit.clear()
        self._closed = True

    async def _execute(self, statements: list[tuple[Any, Any]]) -> None:
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        for statement, parameters in statements:
            batch.add(statement, parameters)
        await self.session.aexecute(batch)

    async def _run_after_commit(self) -> None:
        if not self._after_commit:
            return
        names = [name for name, _ in self._after_commit]
        results = await asyncio.gather(
            *(hook() for _, hook in self._after_commit), return_exceptions=True
        )
        for name, result in zip(names, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(
                    "after_commit_hook_failed",
                    hook=name,
                    error=str(result),
                    error_type=type(result).__name__,
                )

    def _ensure_open(self) -> None:
        if self._closed:
            msg = "Transaction already committed or rolled back"
            raise TransactionError(msg)


class Database:
    """Owns the Cassandra session and hands out transactions."""

    transaction_class: type[Transaction] = Transaction

    def __init__(self, session: Any, keyspace: str):
        self.session = session
        self.keyspace = keyspace

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """Open a transaction; commit on success, roll back on any error."""
        trx = self.transaction_class(self.session)
        try:
            yield trx
        except BaseException:
            trx.rollback()
            raise
        await trx.commit()


async def gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """Run awaitables concurrently and wait for every one of them.

    Unlike a bare ``asyncio.gather`` this never returns while siblings are
    still running: all branches settle first, then the first failure (if
    any) is raised so the enclosing transaction aborts.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)

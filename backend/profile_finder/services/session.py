"""Lookup sessions, cancellation tokens and shared upstream fetches.

A session owns the waits of one lookup. Cancelling it sets the token and
cancels those waits; a fetch that already has its response in hand checks its
token and drops the response instead of returning it.

A ``SharedFetch`` is one upstream call that sessions of several contexts may
wait on at once. Each session waits behind ``asyncio.shield``, so dropping one
session's wait leaves the call running for the others; the call itself is
aborted only when its last waiter leaves.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Coroutine, List, Optional

from ..errors import LookupCancelled
from .cache import ResourceCache


class CancelToken:
    def __init__(self, key: str):
        self.key = key
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise LookupCancelled(self.key)


class SharedFetch:
    def __init__(self, key: str, start: Callable[[CancelToken], Coroutine[Any, Any, Any]]):
        self.token = CancelToken(key)
        self.task = asyncio.ensure_future(start(self.token))
        self.waiters = 0

    @property
    def aborted(self) -> bool:
        return self.token.cancelled

    def attach(self) -> Awaitable[Any]:
        self.waiters += 1
        return asyncio.shield(self.task)

    def leave(self) -> None:
        self.waiters -= 1
        if self.waiters <= 0 and not self.task.done():
            self.token.cancel()
            self.task.cancel()


class LookupSession:
    def __init__(self, key: str):
        self.key = key
        self.token = CancelToken(key)
        self.tasks: List[asyncio.Future] = []

    def spawn(self, aw: Awaitable[Any]) -> asyncio.Future:
        task = asyncio.ensure_future(aw)
        self.tasks.append(task)
        return task

    @property
    def outstanding(self) -> bool:
        return any(not t.done() for t in self.tasks)

    def cancel(self) -> None:
        self.token.cancel()
        for task in self.tasks:
            if not task.done():
                task.cancel()


@dataclass
class LookupContext:
    """Cache plus the current session of one orchestrator.

    Contexts may share a cache (the service surface does) while each keeps its
    own session.
    """

    cache: ResourceCache = field(default_factory=ResourceCache)
    session: Optional[LookupSession] = None

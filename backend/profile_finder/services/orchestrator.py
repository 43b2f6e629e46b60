"""Resolve a username to its profile and repositories.

The orchestrator issues the two resource calls concurrently, bounds each with
a timeout and joins on both. Only a fully successful, non-superseded lookup
is written to the cache; anything else leaves the cache untouched.

Calls already in flight for the same key, started by another context sharing
the cache, are joined rather than repeated.
"""
import asyncio
from typing import Any, Dict, Optional

from loguru import logger

from ..datasources.base import ProfileSource
from ..errors import InvalidInput, LookupCancelled, LookupTimeout
from ..schemas import LookupResult
from .cache import ResourceKind
from .session import CancelToken, LookupContext, LookupSession, SharedFetch

DEFAULT_TIMEOUT_SECONDS = 8.0


def normalize_key(raw: Optional[str]) -> str:
    key = (raw or "").strip()
    if not key:
        raise InvalidInput()
    return key


class LookupOrchestrator:
    def __init__(
        self,
        source: ProfileSource,
        context: Optional[LookupContext] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.source = source
        self.context = context or LookupContext()
        self.timeout = timeout

    @property
    def cache(self):
        return self.context.cache

    def cancel(self) -> None:
        session = self.context.session
        if session is None:
            return
        if session.outstanding:
            logger.info(f"[lookup] cancelling in-flight lookup for '{session.key}'")
        session.cancel()
        self.context.session = None

    async def _bounded(self, kind: ResourceKind, key: str, token: CancelToken) -> Any:
        if kind is ResourceKind.PROFILE:
            call = self.source.fetch_profile(key, token)
        else:
            call = self.source.fetch_repositories(key, token)
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning(f"[lookup] {kind.value} call for '{key}' exceeded {self.timeout}s")
            raise LookupTimeout() from exc

    def _shared(self, kind: ResourceKind, key: str) -> SharedFetch:
        inflight = self.context.cache.inflight
        fetch = inflight.get((kind, key))
        if fetch is not None and not fetch.aborted:
            logger.debug(f"[lookup] joining in-flight {kind.value} call for '{key}'")
            return fetch

        fetch = SharedFetch(key, lambda token: self._bounded(kind, key, token))
        inflight[(kind, key)] = fetch

        def forget(_):
            if inflight.get((kind, key)) is fetch:
                del inflight[(kind, key)]

        fetch.task.add_done_callback(forget)
        return fetch

    async def lookup(self, raw_key: Optional[str]) -> LookupResult:
        key = normalize_key(raw_key)
        self.cancel()
        session = LookupSession(key)
        self.context.session = session
        cache = self.context.cache
        logger.info(f"[lookup] start '{key}'")

        resolved: Dict[ResourceKind, Any] = {}
        pending: Dict[ResourceKind, asyncio.Future] = {}
        for kind in (ResourceKind.PROFILE, ResourceKind.REPOSITORIES):
            if cache.has(kind, key):
                logger.debug(f"[lookup] cache hit for {kind.value} '{key}'")
                resolved[kind] = cache.get(kind, key)
                continue
            fetch = self._shared(kind, key)
            waiter = session.spawn(fetch.attach())
            waiter.add_done_callback(lambda _, fetch=fetch: fetch.leave())
            pending[kind] = waiter

        try:
            outcomes = await asyncio.gather(*pending.values(), return_exceptions=True)
        finally:
            if self.context.session is session and not session.outstanding:
                self.context.session = None

        if session.token.cancelled:
            logger.info(f"[lookup] discarding superseded result for '{key}'")
            raise LookupCancelled(key)

        fetched = dict(zip(pending.keys(), outcomes))
        # profile errors win when both calls fail
        for kind in (ResourceKind.PROFILE, ResourceKind.REPOSITORIES):
            outcome = fetched.get(kind)
            if isinstance(outcome, BaseException):
                logger.warning(f"[lookup] '{key}' failed on {kind.value}: {type(outcome).__name__}")
                raise outcome

        for kind, value in fetched.items():
            cache.set(kind, key, value)
        resolved.update(fetched)

        result = LookupResult(
            key=key,
            profile=resolved[ResourceKind.PROFILE],
            repositories=resolved[ResourceKind.REPOSITORIES],
        )
        logger.info(f"[lookup] done '{key}', {len(result.repositories)} repositories")
        return result

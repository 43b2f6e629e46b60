import httpx
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from loguru import logger

from .base import ProfileSource
from ..config import Settings, get_settings
from ..errors import LookupTimeout, NetworkError, NotFound, RateLimited, UpstreamError
from ..schemas import Profile, Repository
from ..services.cache import ResourceKind
from ..services.session import CancelToken

RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"


def parse_rate_limit_reset(value: Optional[str]) -> Optional[datetime]:
    """Epoch seconds from the rate-limit header, or None when absent/garbled."""
    if not value:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def to_profile(item: Dict[str, Any], key: str) -> Profile:
    return Profile(
        login=item.get("login") or key,
        name=item.get("name"),
        bio=item.get("bio"),
        avatar_url=item.get("avatar_url"),
        html_url=item.get("html_url"),
        followers=item.get("followers") or 0,
        following=item.get("following") or 0,
        public_repos=item.get("public_repos") or 0,
    )


def to_repository(item: Dict[str, Any]) -> Repository:
    return Repository(
        name=item["name"],
        description=item.get("description"),
        stars=item.get("stargazers_count") or 0,
        forks=item.get("forks_count") or 0,
        language=item.get("language"),
        html_url=item.get("html_url"),
    )


class GitHubAdapter(ProfileSource):
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self.settings.user_agent,
        }
        # flipped once GitHub rejects the configured token; later calls go unauthenticated
        self.token_rejected = False
        client_kwargs: Dict[str, Any] = {
            "base_url": str(self.settings.github_base_url),
            "timeout": self.settings.lookup_timeout_seconds,
        }
        if self.settings.github_proxy:
            client_kwargs["proxy"] = self.settings.github_proxy
        if transport is not None:
            client_kwargs["transport"] = transport
        self.client = httpx.AsyncClient(**client_kwargs)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            token = self.settings.github_token
            if token and not self.token_rejected:
                resp = await self.client.get(
                    path, params=params, headers={**self.headers, "Authorization": f"Bearer {token}"}
                )
                if resp.status_code != 401:
                    return resp
                logger.warning("[GitHub] token rejected with 401, falling back to unauthenticated access")
                self.token_rejected = True
            return await self.client.get(path, params=params, headers=self.headers)
        except httpx.TimeoutException as exc:
            logger.warning(f"[GitHub] timeout on {path}: {type(exc).__name__}")
            raise LookupTimeout() from exc
        except httpx.RequestError as exc:
            logger.warning(f"[GitHub] request error on {path}: {type(exc).__name__} {exc!r}")
            raise NetworkError() from exc

    @staticmethod
    def _raise_for_status(resp: httpx.Response, key: str, kind: ResourceKind) -> None:
        if resp.is_success:
            return
        status = resp.status_code
        logger.warning(f"[GitHub] {kind.value} request for '{key}' failed with {status}")
        if status == 403:
            raise RateLimited(parse_rate_limit_reset(resp.headers.get(RATE_LIMIT_RESET_HEADER)))
        if status == 404 and kind is ResourceKind.PROFILE:
            raise NotFound(key)
        raise UpstreamError(status)

    @staticmethod
    def _json(resp: httpx.Response, expected: type) -> Any:
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(resp.status_code, "GitHub returned a malformed response.") from exc
        if not isinstance(data, expected):
            raise UpstreamError(resp.status_code, "GitHub returned a malformed response.")
        return data

    async def fetch_profile(self, key: str, token: Optional[CancelToken] = None) -> Profile:
        resp = await self._get(f"/users/{quote(key, safe='')}")
        if token is not None:
            token.raise_if_cancelled()
        self._raise_for_status(resp, key, ResourceKind.PROFILE)
        item = self._json(resp, dict)
        logger.debug(f"[GitHub] fetched profile for '{key}'")
        return to_profile(item, key)

    async def fetch_repositories(
        self, key: str, token: Optional[CancelToken] = None
    ) -> List[Repository]:
        params = {"per_page": self.settings.repos_per_page, "sort": "updated"}
        resp = await self._get(f"/users/{quote(key, safe='')}/repos", params=params)
        if token is not None:
            token.raise_if_cancelled()
        self._raise_for_status(resp, key, ResourceKind.REPOSITORIES)
        items = self._json(resp, list)
        results: List[Repository] = []
        for item in items:
            if not isinstance(item, dict) or not item.get("name"):
                logger.debug(f"[GitHub] skipping repository entry without a name for '{key}'")
                continue
            results.append(to_repository(item))
        logger.debug(f"[GitHub] fetched {len(results)} repositories for '{key}'")
        return results

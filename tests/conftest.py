import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from profile_finder.config import Settings
from profile_finder.datasources.github_adapter import GitHubAdapter
from profile_finder.schemas import Profile, Repository

OCTOCAT_PROFILE = {"login": "octocat", "public_repos": 2}
OCTOCAT_REPOS = [
    {"name": "Hello-World", "stargazers_count": 80},
    {"name": "Spoon-Knife", "stargazers_count": 12},
]


class FakeGitHub:
    """Request handler for ``httpx.MockTransport`` that records every request."""

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.requests: List[httpx.Request] = []

    def reply(self, path: str, status: int = 200, json: Any = None, headers: Optional[dict] = None):
        self.routes[path] = (status, json, headers or {})

    def handle(self, path: str, handler: Callable[[httpx.Request], Any]):
        self.routes[path] = handler

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            result = route(request)
            if inspect.isawaitable(result):
                result = await result
            return result
        status, body, headers = route
        return httpx.Response(status, json=body, headers=headers)


class StaticSource:
    """In-memory profile source; ``gates`` block a key until released."""

    def __init__(self):
        self.profiles: Dict[str, Profile] = {}
        self.repos: Dict[str, List[Repository]] = {}
        self.errors: Dict[str, Exception] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.started: Dict[str, asyncio.Event] = {}
        self.calls: List[tuple] = []

    def add(self, login: str, repos: List[str]):
        self.profiles[login] = Profile(login=login)
        self.repos[login] = [Repository(name=name) for name in repos]

    def block(self, key: str):
        self.gates[key] = asyncio.Event()
        self.started[key] = asyncio.Event()

    async def _wait(self, key: str):
        if key in self.gates:
            self.started[key].set()
            await self.gates[key].wait()
        if key in self.errors:
            raise self.errors[key]

    async def fetch_profile(self, key, token=None):
        self.calls.append(("profile", key))
        await self._wait(key)
        return self.profiles[key]

    async def fetch_repositories(self, key, token=None):
        self.calls.append(("repositories", key))
        await self._wait(key)
        return self.repos[key]


class RecordingAdapter:
    def __init__(self):
        self.events: List[tuple] = []

    def names(self) -> List[str]:
        return [e[0] for e in self.events]

    def show_loading(self):
        self.events.append(("loading",))

    def show_profile(self, profile):
        self.events.append(("profile", profile))

    def show_repos(self, repos):
        self.events.append(("repos", repos))

    def show_empty(self, message):
        self.events.append(("empty", message))

    def show_error(self, message):
        self.events.append(("error", message))

    def show_detail(self, repo):
        self.events.append(("detail", repo))

    def hide_detail(self):
        self.events.append(("hide_detail",))


def make_settings(**overrides) -> Settings:
    values = {"GITHUB_TOKEN": None, "LOOKUP_TIMEOUT_SECONDS": 2.0}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_github() -> FakeGitHub:
    fake = FakeGitHub()
    fake.reply("/users/octocat", json=OCTOCAT_PROFILE)
    fake.reply("/users/octocat/repos", json=OCTOCAT_REPOS)
    return fake


@pytest.fixture
def adapter(settings: Settings, fake_github: FakeGitHub) -> GitHubAdapter:
    return GitHubAdapter(settings, transport=httpx.MockTransport(fake_github))


@pytest.fixture
def source() -> StaticSource:
    src = StaticSource()
    src.add("octocat", ["Hello-World", "Spoon-Knife"])
    return src


@pytest.fixture
def recorder() -> RecordingAdapter:
    return RecordingAdapter()

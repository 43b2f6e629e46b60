import asyncio
import json
from typing import List, Optional, Protocol

from loguru import logger

from ..errors import LookupCancelled, ProfileLookupError
from ..schemas import Profile, Repository
from .orchestrator import LookupOrchestrator

EMPTY_REPOS_MESSAGE = "No public repos found."


def repo_count_label(count: int) -> str:
    return f"{count} repo{'s' if count != 1 else ''}"


def sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False, default=str)}\n\n"


class PresentationAdapter(Protocol):
    def show_loading(self) -> None:
        ...

    def show_profile(self, profile: Profile) -> None:
        ...

    def show_repos(self, repos: List[Repository]) -> None:
        ...

    def show_empty(self, message: str) -> None:
        ...

    def show_error(self, message: str) -> None:
        ...

    def show_detail(self, repo: Repository) -> None:
        ...

    def hide_detail(self) -> None:
        ...


class WidgetController:
    """Turns widget input events into orchestrator calls and adapter output."""

    def __init__(
        self,
        orchestrator: LookupOrchestrator,
        adapter: PresentationAdapter,
        debounce_seconds: float = 0.0,
    ):
        self.orchestrator = orchestrator
        self.adapter = adapter
        self.debounce_seconds = debounce_seconds
        self.selected: Optional[Repository] = None
        self._generation = 0

    async def lookup_requested(self, raw_input: str) -> None:
        # a new request supersedes whatever is still in flight, even invalid input
        self._generation += 1
        generation = self._generation
        self.orchestrator.cancel()
        self.adapter.show_loading()
        if self.debounce_seconds:
            await asyncio.sleep(self.debounce_seconds)
            if generation != self._generation:
                return
        try:
            result = await self.orchestrator.lookup(raw_input)
        except LookupCancelled:
            logger.debug(f"[widget] dropped superseded lookup for {raw_input!r}")
            return
        except ProfileLookupError as exc:
            self.adapter.show_error(exc.user_message)
            return

        self.adapter.show_profile(result.profile)
        if result.is_empty:
            self.adapter.show_empty(EMPTY_REPOS_MESSAGE)
        else:
            self.adapter.show_repos(result.repositories)

    def repository_selected(self, repo: Repository) -> None:
        self.selected = repo
        self.adapter.show_detail(repo)

    def overlay_dismissed(self) -> None:
        if self.selected is None:
            return
        self.selected = None
        self.adapter.hide_detail()


class QueueAdapter:
    """Presentation adapter that emits each output call as an SSE frame.

    The `detail` and `hide-detail` frames follow `repository_selected` and
    `overlay_dismissed` on the controller; `/lookup/stream` only drives
    lookups, so they reach a front end that forwards those events itself.
    """

    def __init__(self, queue: "asyncio.Queue[Optional[str]]"):
        self.queue = queue

    def show_loading(self) -> None:
        self.queue.put_nowait(sse("loading", {}))

    def show_profile(self, profile: Profile) -> None:
        data = profile.model_dump(mode="json")
        data["display_name"] = profile.display_name
        self.queue.put_nowait(sse("profile", data))

    def show_repos(self, repos: List[Repository]) -> None:
        self.queue.put_nowait(
            sse(
                "repos",
                {
                    "label": repo_count_label(len(repos)),
                    "items": [r.model_dump(mode="json") for r in repos],
                },
            )
        )

    def show_empty(self, message: str) -> None:
        self.queue.put_nowait(sse("empty", {"message": message}))

    def show_error(self, message: str) -> None:
        self.queue.put_nowait(sse("error", {"message": message}))

    def show_detail(self, repo: Repository) -> None:
        self.queue.put_nowait(sse("detail", repo.model_dump(mode="json")))

    def hide_detail(self) -> None:
        self.queue.put_nowait(sse("hide-detail", {}))

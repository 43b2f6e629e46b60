import asyncio
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from loguru import logger

from .config import get_settings
from .datasources.github_adapter import GitHubAdapter
from .errors import ProfileLookupError
from .schemas import LookupResponse
from .services.cache import ResourceCache
from .services.orchestrator import LookupOrchestrator
from .services.presenter import QueueAdapter, WidgetController
from .services.session import LookupContext

settings = get_settings()
app = FastAPI(title="GitHub Profile Finder", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

github = GitHubAdapter()
cache = ResourceCache()


def new_orchestrator() -> LookupOrchestrator:
    # one session per request, shared cache across requests
    return LookupOrchestrator(
        github, LookupContext(cache=cache), timeout=settings.lookup_timeout_seconds
    )


@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/lookup", response_model=LookupResponse)
async def lookup(username: str = Query("")):
    try:
        result = await new_orchestrator().lookup(username)
    except ProfileLookupError as exc:
        logger.info(f"[api] lookup {username!r} failed: {exc.kind.value}")
        raise HTTPException(status_code=exc.http_status, detail=exc.to_dict())
    return LookupResponse.from_result(result)


@app.get("/lookup/stream")
async def lookup_stream(username: str = Query("")):
    queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
    controller = WidgetController(new_orchestrator(), QueueAdapter(queue))

    async def event_generator() -> AsyncGenerator[str, None]:
        task = asyncio.create_task(controller.lookup_requested(username))
        task.add_done_callback(lambda _: queue.put_nowait(None))
        try:
            while True:
                frame = await queue.get()
                if frame is None:
                    break
                yield frame
            await task
        finally:
            if not task.done():
                logger.info(f"[stream] client left, cancelling lookup for {username!r}")
                task.cancel()

    return StreamingResponse(event_generator(), media_type="text/event-stream")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)

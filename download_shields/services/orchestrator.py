"""Per-request lifecycle of a badge: open the stream, call downstream, hand off.

Every orchestration runs its downstream call in its own supervised task on
the shared event loop. Whatever goes wrong after dispatch is caught, logged
and turned into a closed stream for that request only.
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator
from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from enum import StrEnum
from functools import lru_cache
from typing import Final
from typing import TypeAlias

from download_shields.core.config import configs
from download_shields.core.context_vars import RequestId
from download_shields.models.cookie import CookieJar
from download_shields.models.downstream import DownstreamCall
from download_shields.models.downstream import DownstreamResult
from download_shields.services.cookie_normalizer import collect_cookies
from download_shields.services.cookie_normalizer import to_cookie_string
from download_shields.services.custom_error import DownstreamFailureError
from download_shields.services.custom_error import UnsupportedFormatError


logger = logging.getLogger(__name__)

CONTENT_TYPES: Final = {
    "svg": "image/svg+xml",
    "json": "application/json",
}

Continuation: TypeAlias = Callable[[DownstreamResult, CookieJar], Awaitable[None] | None]
ErrorHandler: TypeAlias = Callable[["Orchestration", DownstreamFailureError], None]


def fetch_content_type(extension: str | None) -> str:
    if (content_type := CONTENT_TYPES.get((extension or "").strip().lower())) is None:
        raise UnsupportedFormatError(extension)
    return content_type


class OrchestrationState(StrEnum):
    OPENED = "opened"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    FAILED = "failed"


class OutputStream:
    """Response body kept open until a writer closes it."""

    def __init__(self, content_type: str) -> None:
        self.content_type = content_type
        self._chunks: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes | str) -> None:
        if self._closed:
            raise RuntimeError("Output stream is closed")
        self._chunks.put_nowait(data.encode("utf-8") if isinstance(data, str) else data)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._chunks.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while (chunk := await self._chunks.get()) is not None:
            yield chunk


class ExactlyOnce:
    def __init__(self, continuation: Continuation) -> None:
        self._continuation = continuation
        self.called = False

    async def __call__(self, result: DownstreamResult, updates: CookieJar) -> None:
        if self.called:
            raise RuntimeError("Continuation already invoked")
        self.called = True
        if inspect.isawaitable(outcome := self._continuation(result, updates)):
            await outcome


def log_failure(orchestration: "Orchestration", error: DownstreamFailureError) -> None:
    logger.error(
        "Error during orchestration %s of %s: %s",
        orchestration.request_id,
        orchestration.resource,
        error,
        exc_info=error.error,
    )


@dataclass(slots=True)
class Orchestration:
    request_id: str
    resource: str
    stream: OutputStream
    on_error: ErrorHandler = log_failure
    state: OrchestrationState = OrchestrationState.OPENED
    task: asyncio.Task[None] | None = field(default=None, repr=False)


class RequestOrchestrator:
    def __init__(self, timeout: float | None = configs.downstream_timeout) -> None:
        self.timeout = timeout
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def open(self, extension: str | None, resource: str, on_error: ErrorHandler = log_failure) -> Orchestration:
        """Acquires a keep-open stream, the content type is fixed before any write."""
        stream = OutputStream(fetch_content_type(extension))
        return Orchestration(request_id=RequestId.get(), resource=resource, stream=stream, on_error=on_error)

    def dispatch(
        self,
        orchestration: Orchestration,
        jar: CookieJar,
        call: DownstreamCall,
        continuation: Continuation,
    ) -> asyncio.Task[None]:
        """Starts the single downstream call of ``orchestration`` and returns at once.

        ``jar`` is serialized with ``to_cookie_string`` and loses its control
        attributes here.
        """
        if orchestration.state is not OrchestrationState.OPENED:
            raise RuntimeError(f"Orchestration {orchestration.request_id} already {orchestration.state}")

        cookie_header = to_cookie_string(jar)
        orchestration.state = OrchestrationState.DISPATCHED
        task = asyncio.create_task(
            self._supervise(orchestration, call, cookie_header, ExactlyOnce(continuation)),
            name=f"orchestration-{orchestration.request_id}",
        )
        orchestration.task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _supervise(
        self,
        orchestration: Orchestration,
        call: DownstreamCall,
        cookie_header: str,
        continuation: ExactlyOnce,
    ) -> None:
        try:
            async with asyncio.timeout(self.timeout):
                result = await call(cookie_header)
            orchestration.state = OrchestrationState.COMPLETED
            await continuation(result, collect_cookies(result.set_cookies))
        except asyncio.CancelledError:
            orchestration.state = OrchestrationState.FAILED
            orchestration.stream.close()
            raise
        except Exception as error:  # noqa: BLE001
            self._fail(orchestration, DownstreamFailureError(orchestration.resource, error))

    def _fail(self, orchestration: Orchestration, error: DownstreamFailureError) -> None:
        orchestration.state = OrchestrationState.FAILED
        try:
            orchestration.on_error(orchestration, error)
        except Exception:
            logger.exception("Error handler of orchestration %s failed", orchestration.request_id)
        finally:
            orchestration.stream.close()

    async def wait_closed(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


@lru_cache
def get_orchestrator() -> RequestOrchestrator:
    return RequestOrchestrator()

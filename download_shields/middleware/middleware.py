from collections.abc import Awaitable
from collections.abc import Callable
from uuid import uuid4

from fastapi import FastAPI
from fastapi import Request
from fastapi import Response
from fastapi.middleware.cors import CORSMiddleware

from download_shields.core.config import configs
from download_shields.core.context_vars import RequestId
from download_shields.core.context_vars import RequestMethod
from download_shields.core.context_vars import RequestUrl


NO_CACHE_HEADERS = {
    "Pragma": "no-cache",
    "Cache-Control": "private, no-cache, no-store, must-revalidate, max-age=0",
    "Expires": "Thu, 01 Jan 1970 00:00:00 GMT",
}


async def request_context(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    request_id = request.headers.get("X-Request-ID") or uuid4().hex
    RequestId.set(request_id)
    RequestMethod.set(request.method)
    RequestUrl.set(str(request.url))

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    response.headers.update(NO_CACHE_HEADERS)
    return response


def setup_middleware(app: FastAPI) -> None:
    app.middleware("http")(request_context)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=configs.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

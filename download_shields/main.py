from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse
from fastapi.responses import ORJSONResponse

from download_shields.api import badge
from download_shields.core.config import configs
from download_shields.core.logger import setup_root_logger
from download_shields.db.http_client import close_http_client
from download_shields.db.http_client import connect_http_client
from download_shields.db.redis_db import close_redis
from download_shields.db.redis_db import connect_redis
from download_shields.middleware.middleware import setup_middleware
from download_shields.models.errors import ErrorBody
from download_shields.services.custom_error import InvalidArgumentError
from download_shields.services.custom_error import ResponseError
from download_shields.services.custom_error import UnsupportedFormatError
from download_shields.services.orchestrator import get_orchestrator


setup_root_logger()


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncGenerator[None, Any]:
    connect_redis()
    connect_http_client()
    yield
    await get_orchestrator().wait_closed()
    await close_http_client()
    await close_redis()


tags_metadata = [
    badge.badge_tags_metadata,
]

responses: dict[str | int, Any] = {
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: {"model": ErrorBody},
}


app = FastAPI(
    title=configs.name_app,
    description="",
    version="1.0.0",
    docs_url="/api/openapi",
    openapi_url="/api/openapi.json",
    redoc_url="/api/redoc",
    openapi_tags=tags_metadata,
    default_response_class=ORJSONResponse,
    responses=responses,
    lifespan=lifespan,
)

setup_middleware(app)


@app.exception_handler(UnsupportedFormatError)
async def unsupported_format_handler(_: Request, exc: UnsupportedFormatError) -> JSONResponse:  # noqa: RUF029
    return JSONResponse(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, content=exc.body.model_dump())


@app.exception_handler(InvalidArgumentError)
async def invalid_argument_handler(_: Request, exc: InvalidArgumentError) -> JSONResponse:  # noqa: RUF029
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=exc.body.model_dump())


@app.exception_handler(ResponseError)
async def response_exception_handler(_: Request, exc: ResponseError) -> JSONResponse:  # noqa: RUF029
    return JSONResponse(status_code=exc.status_code, content=exc.body.model_dump())


app.include_router(badge.router)

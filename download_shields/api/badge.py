import logging
import re
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query
from fastapi import Response
from fastapi import status
from fastapi.responses import StreamingResponse

from download_shields.models.cookie import CookieJar
from download_shields.models.downstream import DownstreamResult
from download_shields.services.badge_service import BadgeService
from download_shields.services.badge_service import get_badge_service
from download_shields.services.cookie_store import CookieStore
from download_shields.services.cookie_store import cookie_jar
from download_shields.services.cookie_store import get_cookie_store
from download_shields.services.cookie_store import persist_cookies
from download_shields.services.custom_error import ResponseError
from download_shields.services.orchestrator import Continuation
from download_shields.services.orchestrator import Orchestration
from download_shields.services.orchestrator import RequestOrchestrator
from download_shields.services.orchestrator import get_orchestrator
from download_shields.services.rubygems_api import RubygemsApi
from download_shields.services.rubygems_api import get_rubygems_api


logger = logging.getLogger(__name__)

GEM_NAME = re.compile(r"[A-Za-z0-9._-]+")

router = APIRouter(tags=["Badges"])
badge_tags_metadata = {"name": "Badges", "description": "Бейджи со статистикой загрузок RubyGems."}


def badge_callback(
    orchestration: Orchestration,
    extension: str,
    version: str | None,
    store: CookieStore,
    badges: BadgeService,
) -> Continuation:
    async def callback(result: DownstreamResult, updates: CookieJar) -> None:
        downloads = RubygemsApi.downloads(result.payload, version)
        orchestration.stream.write(badges.render(extension, downloads))
        orchestration.stream.close()
        await persist_cookies(store, orchestration.resource, updates)

    return callback


@router.get("/favicon.ico", include_in_schema=False)
async def favicon() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{gem}",
    summary="Бейдж загрузок гема",
    description="Бейдж с общим числом загрузок гема",
    response_description="Бейдж",
)
@router.get(
    "/{gem}/{version}",
    summary="Бейдж загрузок версии гема",
    description="Бейдж с числом загрузок конкретной версии гема",
    response_description="Бейдж",
)
async def badge(
    gem: str,
    api: Annotated[RubygemsApi, Depends(get_rubygems_api)],
    store: Annotated[CookieStore, Depends(get_cookie_store)],
    orchestrator: Annotated[RequestOrchestrator, Depends(get_orchestrator)],
    badges: Annotated[BadgeService, Depends(get_badge_service)],
    version: str | None = None,
    extension: Annotated[str, Query(description="Формат бейджа")] = "svg",
) -> StreamingResponse:
    if not GEM_NAME.fullmatch(gem) or (version is not None and not GEM_NAME.fullmatch(version)):
        raise ResponseError(status.HTTP_400_BAD_REQUEST, "Некорректное имя гема или версии")

    resource = api.resource(gem, version)
    orchestration = orchestrator.open(extension, resource)
    jar = await cookie_jar(store, resource)

    logger.debug("Dispatching %s", resource)
    orchestrator.dispatch(
        orchestration,
        jar,
        api.call(gem, version),
        badge_callback(orchestration, extension.strip().lower(), version, store, badges),
    )
    return StreamingResponse(orchestration.stream, media_type=orchestration.stream.content_type)

import logging
from typing import Annotated

import backoff
import httpx
from fastapi import Depends

from download_shields.core.config import configs
from download_shields.db.http_client import get_http_client
from download_shields.models.downstream import DownstreamCall
from download_shields.models.downstream import DownstreamResult


logger = logging.getLogger(__name__)


class RubygemsApi:
    def __init__(self, client: httpx.AsyncClient, base_url: str = configs.rubygems_url) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")

    def resource(self, gem: str, version: str | None = None) -> str:
        if version:
            return f"{self.base_url}/api/v1/downloads/{gem}-{version}.json"
        return f"{self.base_url}/api/v1/gems/{gem}.json"

    @staticmethod
    def downloads(payload: object, version: str | None = None) -> int | None:
        if not isinstance(payload, dict):
            return None
        count = payload.get("version_downloads" if version else "downloads")
        return count if isinstance(count, int) else None

    @backoff.on_exception(backoff.expo, httpx.TransportError, max_tries=configs.downstream_max_tries)
    async def fetch(self, url: str, cookie_header: str) -> DownstreamResult:
        headers = {"Accept": "application/json"}
        if cookie_header:
            headers["Cookie"] = cookie_header

        logger.debug("GET %s", url)
        response = await self.client.get(url, headers=headers)
        response.raise_for_status()
        return DownstreamResult(
            payload=response.json(),
            set_cookies=tuple(response.headers.get_list("set-cookie")),
        )

    def call(self, gem: str, version: str | None = None) -> DownstreamCall:
        url = self.resource(gem, version)

        async def call(cookie_header: str) -> DownstreamResult:
            return await self.fetch(url, cookie_header)

        return call


def get_rubygems_api(client: Annotated[httpx.AsyncClient, Depends(get_http_client)]) -> RubygemsApi:
    return RubygemsApi(client)

from http.cookiejar import CookieJar
from http.cookiejar import DefaultCookiePolicy

import httpx

from download_shields.core.config import configs


client: httpx.AsyncClient | None = None


def connect_http_client() -> httpx.AsyncClient:
    global client
    # Cookies travel only through the per-resource store, the shared client must not keep any.
    no_cookies = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
    client = httpx.AsyncClient(timeout=configs.downstream_timeout, follow_redirects=True, cookies=no_cookies)
    return client


async def close_http_client() -> None:
    global client
    if client is not None:
        await client.aclose()
        client = None


def get_http_client() -> httpx.AsyncClient:
    assert client is not None
    return client

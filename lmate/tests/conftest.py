from collections.abc import AsyncIterator, Callable

import httpx
import pytest
import pytest_asyncio


BASE_URL = "http://lmate.test/api"


def _route_handler(routes: dict[str, object], default_status: int) -> Callable[[httpx.Request], httpx.Response]:
    prefix = httpx.URL(BASE_URL).path

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix(prefix)
        if path in routes:
            return httpx.Response(200, json=routes[path])
        return httpx.Response(default_status, text="backend unavailable")

    return handler


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest_asyncio.fixture
async def backend() -> AsyncIterator[Callable[..., httpx.AsyncClient]]:
    """Build clients whose transport serves JSON per path relative to ``BASE_URL``.

    Unknown paths answer with ``default_status`` so the mock fallback kicks in.
    """
    clients: list[httpx.AsyncClient] = []

    def factory(routes: dict[str, object] | None = None, *, default_status: int = 503) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(_route_handler(routes or {}, default_status)))
        clients.append(client)
        return client

    try:
        yield factory
    finally:
        for client in clients:
            await client.aclose()

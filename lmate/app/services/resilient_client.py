from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from lmate.app.core.config import settings
from lmate.app.schemas.dashboard import DataSource


logger = logging.getLogger(__name__)

T = TypeVar("T")


class FetchFailure(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class FetchOutcome(Generic[T]):
    value: T
    source: DataSource

    @property
    def is_live(self) -> bool:
        return self.source is DataSource.LIVE


async def _request_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str,
    params: Mapping[str, Any] | None,
    headers: Mapping[str, str] | None,
    json: Any,
    timeout: float,
) -> Any:
    try:
        # wait_for bounds the whole exchange and cancels the request on expiry
        response = await asyncio.wait_for(
            client.request(method, url, params=params, headers=headers, json=json),
            timeout=timeout,
        )
        response.raise_for_status()
    except asyncio.TimeoutError as exc:
        raise FetchFailure(f"No response within {timeout:.3f}s") from exc
    except httpx.HTTPStatusError as exc:
        body = exc.response.text[:200]
        raise FetchFailure(
            f"Backend responded with {exc.response.status_code}: {body}",
            status_code=exc.response.status_code,
        ) from exc
    except httpx.RequestError as exc:
        raise FetchFailure(f"Could not reach backend: {exc!r}") from exc
    try:
        return response.json()
    except ValueError as exc:
        raise FetchFailure(f"Malformed JSON body: {exc}", status_code=response.status_code) from exc


async def fetch_with_source(
    path: str,
    mock_factory: Callable[[], Any],
    *,
    method: str = "GET",
    params: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    json: Any = None,
    response_model: type[BaseModel] | None = None,
    client: httpx.AsyncClient | None = None,
    base_url: str | None = None,
    timeout: float | None = None,
) -> FetchOutcome[Any]:
    """Call the L-Mate backend once, substituting ``mock_factory()`` on any failure.

    Transport errors, timeouts, non-2xx statuses and undecodable bodies are all
    masked the same way. When ``response_model`` is given, a live body that does
    not validate counts as a decode failure and the mock output is validated too.
    """
    base = (base_url if base_url is not None else settings.api_base_url).rstrip("/")
    url = f"{base}{path}"
    bound = timeout if timeout is not None else settings.request_timeout_seconds

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=bound) as own_client:
                value = await _request_json(
                    own_client, url, method=method, params=params, headers=headers, json=json, timeout=bound
                )
        else:
            value = await _request_json(
                client, url, method=method, params=params, headers=headers, json=json, timeout=bound
            )
        if response_model is not None:
            try:
                value = response_model.model_validate(value)
            except ValidationError as exc:
                raise FetchFailure(f"Unexpected payload shape: {exc.error_count()} errors") from exc
    except FetchFailure as exc:
        logger.debug("Falling back to mock for %s %s: %s", method, path, exc)
        value = mock_factory()
        if response_model is not None:
            value = response_model.model_validate(value)
        return FetchOutcome(value=value, source=DataSource.MOCK)
    return FetchOutcome(value=value, source=DataSource.LIVE)


async def fetch_resilient(
    path: str,
    mock_factory: Callable[[], Any],
    **options: Any,
) -> Any:
    """Return the live payload for ``path`` or, on failure, whatever ``mock_factory`` builds."""
    outcome = await fetch_with_source(path, mock_factory, **options)
    return outcome.value

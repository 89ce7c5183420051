"""HTTP utilities mapping httpx failures onto the client error taxonomy."""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from sleepbot.core.errors import DecodeError, TransportError

ModelT = TypeVar("ModelT", bound=BaseModel)


async def send_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    """Issue a request, converting every httpx request failure."""
    try:
        return await client.request(method, url, **kwargs)
    except httpx.DecodingError as exc:
        raise DecodeError(f"{method} {url} returned an undecodable body: {exc!r}") from exc
    except httpx.RequestError as exc:
        raise TransportError(f"{method} {url} failed: {exc!r}") from exc


def decode_model(response: httpx.Response, schema: type[ModelT]) -> ModelT:
    """Validate a JSON response body against ``schema``."""
    try:
        return schema.model_validate_json(response.content)
    except ValidationError as exc:
        raise DecodeError(
            f"Unexpected {schema.__name__} payload: {exc.error_count()} error(s)"
        ) from exc


__all__ = ["decode_model", "send_request"]

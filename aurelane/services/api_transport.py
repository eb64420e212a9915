"""HTTP transport for the Aurelane backend."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from aurelane.core.config import Settings, get_settings
from aurelane.core.metrics import observe_api_request
from aurelane.core.telemetry import api_span
from aurelane.services.api_errors import APIError, NetworkError, error_from_response
from aurelane.services.request_cache import (
    RequestCache,
    ResourceKind,
    TTLConfig,
    build_cache_key,
)
from aurelane.services.session_store import SessionStore

logger = logging.getLogger(__name__)


def clean_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop empty query values and flatten list values to comma-joined strings."""
    if not params:
        return {}

    cleaned: dict[str, Any] = {}
    for name, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = ",".join(str(item) for item in value)
        elif isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[name] = value
    return cleaned


@dataclass(frozen=True)
class ApiResponse:
    """Decoded body of a successful response with its status code."""

    status_code: int
    body: Any


def _endpoint_label(method: str, path: str) -> str:
    # Group by resource root to keep metric label cardinality bounded.
    root = path.strip("/").split("/", 1)[0]
    return f"{method.upper()} /{root}"


class ApiTransport:
    """
    Thin async wrapper over ``httpx.AsyncClient``.

    Attaches the bearer token from the session store to every request, maps
    failures onto the :mod:`aurelane.services.api_errors` taxonomy and routes
    idempotent reads through the request cache.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        session: SessionStore | None = None,
        cache: RequestCache | None = None,
        ttl_config: TTLConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session or SessionStore(self.settings.session_store_path)
        self.cache = cache or RequestCache()
        self.ttl_config = ttl_config or TTLConfig(self.settings)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.api_timeout_seconds,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "ApiTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        cancelled = self.cache.cancel_pending()
        if cancelled:
            logger.debug("Cancelled %d in-flight requests on close", cancelled)
        if self._owns_client:
            await self._client.aclose()

    def _auth_headers(self) -> dict[str, str]:
        token = self.session.get_token()
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def send(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,
    ) -> httpx.Response:
        """Issue one request and return the successful response."""
        method = method.upper()
        endpoint = _endpoint_label(method, path)
        wire_params = clean_params(params)

        start = time.perf_counter()
        with api_span(method, endpoint, path) as span:
            try:
                response = await self._client.request(
                    method,
                    path,
                    params=wire_params or None,
                    json=json,
                    headers=self._auth_headers(),
                )
            except httpx.RequestError as exc:
                observe_api_request(endpoint, "network_error", time.perf_counter() - start)
                logger.warning("Network error calling %s %s: %s", method, path, exc)
                raise NetworkError() from exc
            span.set_attribute("http.response.status_code", response.status_code)

        duration = time.perf_counter() - start
        if response.is_success:
            observe_api_request(endpoint, "success", duration)
            logger.debug(
                "%s %s -> %d in %.3fs", method, path, response.status_code, duration
            )
            return response

        result = "server_error" if response.status_code >= 500 else "client_error"
        observe_api_request(endpoint, result, duration)
        error = error_from_response(response)
        logger.warning(
            "API error for %s %s (%d): %s",
            method,
            path,
            response.status_code,
            error.message,
        )
        raise error

    async def request_response(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,
    ) -> ApiResponse:
        """Issue one request and keep the status code next to the decoded body."""
        response = await self.send(method, path, params=params, json=json)
        if not response.content:
            return ApiResponse(response.status_code, None)
        try:
            body = response.json()
        except ValueError as exc:
            raise APIError(
                "Unexpected response from server.", status_code=response.status_code
            ) from exc
        return ApiResponse(response.status_code, body)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,
    ) -> Any:
        """Issue one request and return the decoded JSON body."""
        response = await self.request_response(method, path, params=params, json=json)
        return response.body

    async def request_bytes(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
    ) -> bytes:
        response = await self.send(method, path, params=params)
        return response.content

    async def cached_read(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        *,
        ttl: float | None = None,
        kind: ResourceKind = ResourceKind.DEFAULT,
        force_refresh: bool = False,
        cache_key: str | None = None,
        enable_cache: bool = True,
    ) -> Any:
        """GET ``path`` through the request cache.

        Args:
            path: Resource path relative to the API base URL
            params: Query parameters, cleaned before keying and sending
            ttl: Override for the resource kind's default TTL
            kind: Volatility class used to pick the default TTL
            force_refresh: Skip cached and in-flight results
            cache_key: Explicit cache key instead of the derived one
            enable_cache: When false, a plain uncached GET
        """
        wire_params = clean_params(params)
        if not enable_cache:
            return await self.request("GET", path, params=wire_params)

        key = cache_key or build_cache_key("GET", path, wire_params)
        effective_ttl = self.ttl_config.get_effective_ttl(ttl, kind)

        async def fetch() -> Any:
            return await self.request("GET", path, params=wire_params)

        return await self.cache.get_or_fetch(
            key, fetch, ttl=effective_ttl, force_refresh=force_refresh
        )

    def invalidate(self, prefixes: str | list[str] | tuple[str, ...]) -> int:
        return self.cache.invalidate(prefixes)


__all__ = ["ApiResponse", "ApiTransport", "clean_params"]

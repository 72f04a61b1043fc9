import asyncio
from typing import Any

import httpx
import structlog

from admin_client.core.config import get_settings
from admin_client.integrations.http.base import ApiRequestError, ApiResponse, TokenStore

logger = structlog.get_logger()

TIMEOUT_CODE = "ECONNABORTED"
NETWORK_CODE = "ERR_NETWORK"


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiClient:
    def __init__(
        self,
        tokens: TokenStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = get_settings()
        self.tokens = tokens or TokenStore()
        self._client = httpx.AsyncClient(
            base_url=self.settings.normalized_base_url,
            timeout=self.settings.request_timeout_seconds,
            transport=transport,
        )
        self._refresh_lock = asyncio.Lock()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, params: dict[str, Any] | None = None) -> ApiResponse:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> ApiResponse:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Any = None) -> ApiResponse:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> ApiResponse:
        return await self.request("DELETE", path)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        replayed: bool = False,
    ) -> ApiResponse:
        token = self.tokens.access
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("http_timeout", method=method, path=path)
            raise ApiRequestError("Request timed out", code=TIMEOUT_CODE) from exc
        except httpx.TransportError as exc:
            logger.warning("http_transport_error", method=method, path=path, error=str(exc))
            raise ApiRequestError(str(exc) or "Network Error", code=NETWORK_CODE) from exc

        logger.info("http_request", method=method, path=path, status=response.status_code)

        if response.status_code == 401 and not replayed and path != self.settings.token_refresh_path:
            if await self._refresh_tokens(stale_access=token):
                return await self.request(method, path, json=json, params=params, replayed=True)

        payload = ApiResponse(status=response.status_code, data=_decode_body(response))
        if response.is_error:
            raise ApiRequestError(
                f"Request failed with status code {response.status_code}",
                response=payload,
                code=f"HTTP_{response.status_code}",
            )
        return payload

    async def _refresh_tokens(self, stale_access: str | None) -> bool:
        async with self._refresh_lock:
            # A concurrent 401 may already have rotated the token.
            if self.tokens.access and self.tokens.access != stale_access:
                return True
            refresh = self.tokens.refresh
            if not refresh:
                self.tokens.clear()
                return False
            try:
                response = await self._client.post(self.settings.token_refresh_path, json={"refresh": refresh})
            except httpx.HTTPError as exc:
                logger.warning("token_refresh_failed", error=str(exc))
                self.tokens.clear()
                return False
            body = _decode_body(response)
            access = body.get("access") if isinstance(body, dict) else None
            if response.is_error or not access:
                logger.warning("token_refresh_rejected", status=response.status_code)
                self.tokens.clear()
                return False
            self.tokens.set(access, body.get("refresh") or refresh)
            logger.info("token_refreshed")
            return True

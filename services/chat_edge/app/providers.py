from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Protocol

import httpx

from app.config import CF_GATEWAY_BASE_URL, GatewayOptions


@dataclass
class ProviderStream:
    """Upstream event stream handed to the HTTP response as-is."""

    chunks: AsyncIterator[bytes]
    close: Optional[Callable[[], Awaitable[None]]] = None

    async def aclose(self) -> None:
        if self.close is not None:
            await self.close()


class Provider(Protocol):
    """Inference backend invoked by the chat relay.

    ``run`` returns once the upstream has accepted the request; failures up to
    that point must raise so the caller can still answer with an error.
    """

    name: str

    async def run(
        self,
        model_id: str,
        payload: Dict[str, Any],
        *,
        gateway: Optional[GatewayOptions] = None,
    ) -> ProviderStream:
        ...


class WorkersAIProvider:
    """Workers AI REST binding, optionally routed through an AI Gateway."""

    name = "workers-ai"

    def __init__(
        self,
        account_id: str,
        api_token: str,
        base_url: str,
        gateway_base_url: str = CF_GATEWAY_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.account_id = account_id
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.gateway_base_url = gateway_base_url.rstrip("/")
        self._transport = transport

    def endpoint(self, model_id: str, gateway: Optional[GatewayOptions] = None) -> str:
        if gateway is not None:
            return f"{self.gateway_base_url}/{self.account_id}/{gateway.id}/workers-ai/{model_id}"
        return f"{self.base_url}/accounts/{self.account_id}/ai/run/{model_id}"

    def headers(self, gateway: Optional[GatewayOptions] = None) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Accept": "text/event-stream",
        }
        if gateway is not None:
            if gateway.skip_cache:
                headers["cf-aig-skip-cache"] = "true"
            if gateway.cache_ttl is not None:
                headers["cf-aig-cache-ttl"] = str(gateway.cache_ttl)
        return headers

    async def run(
        self,
        model_id: str,
        payload: Dict[str, Any],
        *,
        gateway: Optional[GatewayOptions] = None,
    ) -> ProviderStream:
        client = httpx.AsyncClient(timeout=None, transport=self._transport)
        request = client.build_request(
            "POST",
            self.endpoint(model_id, gateway),
            json=payload,
            headers=self.headers(gateway),
        )
        try:
            resp = await client.send(request, stream=True)
        except BaseException:
            await client.aclose()
            raise

        try:
            resp.raise_for_status()
        except BaseException:
            await resp.aclose()
            await client.aclose()
            raise

        async def close() -> None:
            await resp.aclose()
            await client.aclose()

        return ProviderStream(chunks=resp.aiter_bytes(), close=close)


def sse(data: str) -> str:
    # SSE format: data + blank line
    data = data.replace("\r", "")
    return f"data: {data}\n\n"


class EchoProvider:
    """Offline stand-in that echoes the latest user turn as an event stream."""

    name = "echo"

    def __init__(self, delay: float = 0.01) -> None:
        self.delay = delay

    @staticmethod
    def _last_user_text(payload: Dict[str, Any]) -> str:
        for message in reversed(payload.get("input") or []):
            if message.get("role") == "user":
                return str(message.get("content") or "")
        return ""

    async def _token_stream(self, text: str) -> AsyncIterator[bytes]:
        for ch in text:
            yield sse(json.dumps({"response": ch})).encode("utf-8")
            if self.delay:
                await asyncio.sleep(self.delay)
        yield sse("[DONE]").encode("utf-8")

    async def run(
        self,
        model_id: str,
        payload: Dict[str, Any],
        *,
        gateway: Optional[GatewayOptions] = None,
    ) -> ProviderStream:
        text = f"Echo (fake LLM): {self._last_user_text(payload)}"
        return ProviderStream(chunks=self._token_stream(text))

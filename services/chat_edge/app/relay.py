from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from pydantic import BaseModel, Field
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse

from app.config import MODEL_ID, REASONING_EFFORT, SYSTEM_PROMPT, GatewayOptions
from app.providers import Provider, ProviderStream

logger = logging.getLogger("chat_edge")

SSE_HEADERS = {
    "content-type": "text/event-stream; charset=utf-8",
    "cache-control": "no-cache",
    "connection": "keep-alive",
}


class Reasoning(BaseModel):
    effort: str = REASONING_EFFORT


class ConversationPayload(BaseModel):
    """Responses-style request body: system intent goes in ``instructions``."""

    instructions: str
    input: List[Dict[str, Any]] = Field(default_factory=list)
    reasoning: Reasoning = Field(default_factory=Reasoning)
    stream: bool = True


def extract_messages(body: Any) -> List[Any]:
    if not isinstance(body, dict):
        return []
    messages = body.get("messages")
    return messages if isinstance(messages, list) else []


def build_payload(messages: List[Any]) -> ConversationPayload:
    instructions: Optional[str] = None
    for m in messages:
        if m.get("role") == "system":
            instructions = m.get("content")
            break
    if not isinstance(instructions, str) or not instructions:
        instructions = SYSTEM_PROMPT

    # Pass the conversation without the system turn; keep only role/content
    turns = [
        {key: m[key] for key in ("role", "content") if key in m}
        for m in messages
        if m.get("role") != "system"
    ]
    return ConversationPayload(instructions=instructions, input=turns)


async def stream_events(stream: ProviderStream) -> AsyncIterator[bytes]:
    try:
        async for chunk in stream.chunks:
            yield chunk
    finally:
        await stream.aclose()


async def relay_chat(
    request: Request,
    provider: Provider,
    gateway: Optional[GatewayOptions] = None,
) -> Response:
    """Forward a chat request to the provider and stream its events back."""
    try:
        body = await request.json()
        payload = build_payload(extract_messages(body))
        stream = await provider.run(MODEL_ID, payload.model_dump(), gateway=gateway)
    except Exception as e:
        logger.exception("Error processing chat request: %s", e)
        return JSONResponse(
            {"error": "Failed to process request"},
            status_code=500,
        )

    return StreamingResponse(stream_events(stream), headers=SSE_HEADERS)

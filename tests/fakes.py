"""Collaborator doubles for the edge app."""

import httpx
from starlette.responses import PlainTextResponse

from app.providers import ProviderStream


class RecordingProvider:
    """Provider double that records each call and replays fixed chunks."""

    name = "recording"

    def __init__(self, chunks=(b'data: {"response": "hi"}\n\n', b"data: [DONE]\n\n")):
        self.chunks = list(chunks)
        self.calls = []
        self.closed = False

    async def run(self, model_id, payload, *, gateway=None):
        self.calls.append({"model_id": model_id, "payload": payload, "gateway": gateway})

        async def chunks():
            for chunk in self.chunks:
                yield chunk

        async def close():
            self.closed = True

        return ProviderStream(chunks=chunks(), close=close)

    @property
    def payload(self):
        return self.calls[-1]["payload"]


class FailingProvider:
    name = "failing"

    async def run(self, model_id, payload, *, gateway=None):
        raise RuntimeError("upstream exploded: secret detail")


async def asset_app(scope, receive, send):
    """Stand-in for the static frontend server."""
    response = PlainTextResponse(
        f"asset {scope['method']} {scope['path']}",
        status_code=203,
        headers={"x-served-by": "assets"},
    )
    await response(scope, receive, send)


class BrokenStreamProvider(RecordingProvider):
    """Yields its chunks, then fails the way a dropped upstream read does."""

    name = "broken-stream"

    async def run(self, model_id, payload, *, gateway=None):
        stream = await super().run(model_id, payload, gateway=gateway)
        chunks = stream.chunks

        async def failing():
            async for chunk in chunks:
                yield chunk
            raise httpx.ReadError("connection reset mid-stream")

        stream.chunks = failing()
        return stream

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from starlette.responses import PlainTextResponse, Response
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp

from app.config import GatewayOptions, Settings, get_settings
from app.providers import EchoProvider, Provider, WorkersAIProvider
from app.relay import relay_chat

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("chat_edge")

router = APIRouter()


def build_provider(settings: Settings) -> Provider:
    if settings.api_token and settings.account_id:
        return WorkersAIProvider(
            account_id=settings.account_id,
            api_token=settings.api_token,
            base_url=settings.api_base_url,
        )
    # fallback if no API credentials configured
    logger.warning("CF_ACCOUNT_ID/CF_API_TOKEN not set; using echo provider")
    return EchoProvider()


def get_provider(request: Request) -> Provider:
    return request.app.state.provider


@router.post("/api/chat")
async def chat(request: Request, provider: Provider = Depends(get_provider)) -> Response:
    return await relay_chat(request, provider, gateway=request.app.state.gateway)


async def chat_method_not_allowed(request: Request) -> Response:
    return PlainTextResponse("Method not allowed", status_code=405)


async def api_not_found(request: Request) -> Response:
    return PlainTextResponse("Not found", status_code=404)


# No method list: these match every method
router.add_route("/api/chat", chat_method_not_allowed)
router.add_route("/api/{path:path}", api_not_found)


def create_app(
    provider: Optional[Provider] = None,
    assets: Optional[ASGIApp] = None,
    gateway: Optional[GatewayOptions] = None,
) -> FastAPI:
    """Build the edge app: ``/api/*`` routes first, static assets for the rest."""
    app = FastAPI(title="chat-edge", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.provider = provider if provider is not None else build_provider(settings)
    app.state.gateway = gateway if gateway is not None else settings.gateway
    logger.info("Provider: %s", app.state.provider.name)

    app.include_router(router)
    if assets is None:
        assets = StaticFiles(directory=settings.assets_dir, html=True, check_dir=False)
    app.mount("/", assets, name="assets")
    return app


app = create_app()

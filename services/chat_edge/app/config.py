from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()

# Workers AI model speaking the Responses format (instructions + input)
MODEL_ID = "@cf/openai/gpt-oss-120b"

SYSTEM_PROMPT = (
    "You are a helpful, friendly assistant. Provide concise and accurate responses."
)

REASONING_EFFORT = "medium"

CF_API_BASE_URL = "https://api.cloudflare.com/client/v4"
CF_GATEWAY_BASE_URL = "https://gateway.ai.cloudflare.com/v1"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


@dataclass(frozen=True)
class GatewayOptions:
    """AI Gateway routing for provider calls (caching, analytics)."""

    id: str
    skip_cache: bool = False
    cache_ttl: Optional[int] = None


class Settings:
    """Provider binding and server options read from the environment."""

    def __init__(self) -> None:
        self.account_id: Optional[str] = os.getenv("CF_ACCOUNT_ID") or None
        self.api_token: Optional[str] = os.getenv("CF_API_TOKEN") or None
        self.api_base_url: str = os.getenv("CF_API_BASE_URL", CF_API_BASE_URL).rstrip("/")
        self.gateway_id: Optional[str] = os.getenv("CF_AI_GATEWAY_ID") or None
        self.gateway_skip_cache: bool = _env_bool("CF_AI_GATEWAY_SKIP_CACHE")
        self.gateway_cache_ttl: Optional[int] = _env_int("CF_AI_GATEWAY_CACHE_TTL")
        self.assets_dir: str = os.getenv("ASSETS_DIR", "public")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def gateway(self) -> Optional[GatewayOptions]:
        if not self.gateway_id:
            return None
        return GatewayOptions(
            id=self.gateway_id,
            skip_cache=self.gateway_skip_cache,
            cache_ttl=self.gateway_cache_ttl,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

# docwise_config.py
"""
Process-start configuration for DocWise.

Environment:
    export GOOGLE_API_KEY="..."        (GEMINI_API_KEY / API_KEY also accepted)

Optional overrides:
    export DOCWISE_PRO_MODEL="gemini-3-pro-preview"
    export DOCWISE_FLASH_MODEL="gemini-3-flash-preview"
    export DOCWISE_TEMPERATURE="0.2"
    export DOCWISE_LOG_LEVEL="DEBUG"
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv(override=False)


DEFAULT_PRO_MODEL = "gemini-3-pro-preview"
DEFAULT_FLASH_MODEL = "gemini-3-flash-preview"
DEFAULT_TEMPERATURE = 0.2

API_KEY_ENV_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY")


@dataclass(frozen=True)
class DocWiseConfig:
    api_key: Optional[str] = None
    pro_model: str = DEFAULT_PRO_MODEL
    flash_model: str = DEFAULT_FLASH_MODEL
    temperature: float = DEFAULT_TEMPERATURE

    def model_for_tier(self, tier: str) -> str:
        return self.pro_model if tier == "pro" else self.flash_model


def _env_api_key() -> Optional[str]:
    for name in API_KEY_ENV_VARS:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_config(api_key: Optional[str] = None) -> DocWiseConfig:
    """
    Build the configuration from the environment.
    An explicit api_key (e.g. typed into the sidebar) wins over the env.
    """
    return DocWiseConfig(
        api_key=(api_key or "").strip() or _env_api_key(),
        pro_model=(os.getenv("DOCWISE_PRO_MODEL") or "").strip() or DEFAULT_PRO_MODEL,
        flash_model=(os.getenv("DOCWISE_FLASH_MODEL") or "").strip() or DEFAULT_FLASH_MODEL,
        temperature=_env_float("DOCWISE_TEMPERATURE", DEFAULT_TEMPERATURE),
    )


def require_api_key(config: DocWiseConfig) -> str:
    if not config.api_key:
        raise RuntimeError(
            "GOOGLE_API_KEY is not set. Please export your Gemini API key."
        )
    return config.api_key


def mask_key(key: Optional[str]) -> str:
    if not key:
        return ""
    return key[:6] + "..." + key[-4:] if len(key) > 10 else "******"

from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_API_URL = "https://blockrun.ai/api"

# Checked in order; the first non-empty value wins
WALLET_KEY_ENV_VARS = ("BLOCKRUN_WALLET_KEY", "BASE_CHAIN_WALLET_KEY")
API_URL_ENV_VAR = "BLOCKRUN_API_URL"


class ClientConfig(BaseModel):
    """Resolved settings for a BlockRun API client."""

    private_key: Optional[str] = Field(default=None, repr=False, description="hex private key")
    api_url: str = Field(default=DEFAULT_API_URL)
    timeout: float = Field(default=60.0, gt=0)
    token_name: Optional[str] = Field(default=None)
    token_version: Optional[str] = Field(default=None)

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(
        cls,
        private_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token_name: Optional[str] = None,
        token_version: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        default_timeout: float = 60.0,
    ) -> "ClientConfig":
        """Resolve settings from explicit arguments with environment fallbacks.

        The private key comes from the argument, then ``BLOCKRUN_WALLET_KEY``,
        then ``BASE_CHAIN_WALLET_KEY``. The API URL comes from the argument,
        then ``BLOCKRUN_API_URL``, then the public gateway.
        """
        env = os.environ if environ is None else environ

        key = private_key
        for name in WALLET_KEY_ENV_VARS:
            if key:
                break
            key = env.get(name)

        return cls(
            private_key=key or None,
            api_url=api_url or env.get(API_URL_ENV_VAR) or DEFAULT_API_URL,
            timeout=timeout if timeout is not None else default_timeout,
            token_name=token_name,
            token_version=token_version,
        )

"""
Configuration management for the CITA client.

Supports configuration via environment variables and .env files.
"""

import json
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, NoDecode


DEFAULT_NODE_URL = "http://127.0.0.1:1337"


class HashAlgorithm(str, Enum):
    """Digest used to hash a transaction before signing."""
    KECCAK = "keccak"
    BLAKE2B = "blake2b"


class ClientConfig(BaseSettings):
    """
    Configuration settings for the CITA client.

    All settings can be configured via environment variables with the CITA_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="CITA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Node settings
    nodes: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: [DEFAULT_NODE_URL],
        description="JSON-RPC URLs of the chain nodes every call is broadcast to"
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for a single node call"
    )

    # Transaction settings
    default_quota: int = Field(
        default=1_000_000,
        ge=1,
        description="Quota attached to transactions that do not set one"
    )
    hash_algorithm: HashAlgorithm = Field(
        default=HashAlgorithm.KECCAK,
        description="Digest signed over the encoded transaction"
    )
    strict_chain_id: bool = Field(
        default=False,
        description="Raise instead of falling back to chain id 0 on a malformed metadata reply"
    )
    private_key: Optional[str] = Field(
        default=None,
        description="Hex-encoded secp256k1 private key used by the command line"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @field_validator("nodes", mode="before")
    @classmethod
    def _split_nodes(cls, value):
        """Accept a JSON list or a comma-separated string."""
        if isinstance(value, str):
            raw = value.strip()
            if raw.startswith("["):
                return json.loads(raw)
            return [part.strip() for part in raw.split(",") if part.strip()]
        return value


# Global config instance
_config: Optional[ClientConfig] = None


def get_config() -> ClientConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = ClientConfig()
    return _config


def set_config(config: ClientConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config

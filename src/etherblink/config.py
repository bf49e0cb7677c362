"""Configuration management for EtherBlink using Pydantic Settings."""

from enum import Enum

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class LinkStrategy(str, Enum):
    """How action links carry their payload."""

    STORE = "store"
    INLINE = "inline"


class EtherBlinkConfig(BaseSettings):
    """EtherBlink configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Links
    base_url: str = Field(default="http://localhost:8080", alias="ETHERBLINK_BASE_URL")
    link_strategy: LinkStrategy = Field(
        default=LinkStrategy.STORE, alias="ETHERBLINK_LINK_STRATEGY"
    )

    # Network (Etherlink testnet)
    rpc_endpoint: str = Field(
        default="https://node.ghostnet.etherlink.com", alias="ETHERBLINK_RPC_ENDPOINT"
    )
    chain_id: int = Field(default=128123, alias="ETHERBLINK_CHAIN_ID")
    block_explorer_url: str | None = Field(
        default="https://testnet.explorer.etherlink.com", alias="ETHERBLINK_BLOCK_EXPLORER_URL"
    )
    currency_symbol: str = Field(default="XTZ", alias="ETHERBLINK_CURRENCY_SYMBOL")

    # Wallet (recipient side, used by the CLI)
    wallet_private_key: SecretStr | None = Field(
        default=None, alias="ETHERBLINK_WALLET_PRIVATE_KEY"
    )
    wallet_private_key_file: str | None = Field(
        default=None, alias="ETHERBLINK_WALLET_PRIVATE_KEY_FILE"
    )
    receipt_timeout: int = Field(default=120, alias="ETHERBLINK_RECEIPT_TIMEOUT", gt=0)

    # Store
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Web
    host: str = Field(default="0.0.0.0", alias="ETHERBLINK_HOST")  # noqa: S104
    port: int = Field(default=8080, alias="ETHERBLINK_PORT", ge=1, le=65535)

    # Observability
    log_level: str = Field(default="INFO", alias="ETHERBLINK_LOG_LEVEL")
    log_format: str = Field(default="json", alias="ETHERBLINK_LOG_FORMAT")

"""Configuration schema using Pydantic."""

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseModel):
    """RPC server configuration."""
    host: str = "127.0.0.1"
    port: int = 3000
    path: str = "/trpc"  # Single RPC endpoint; POST for any call, GET for queries
    log_level: str = "INFO"

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, value: str) -> str:
        value = "/" + value.strip().strip("/")
        return value


class ClientConfig(BaseModel):
    """Batched client configuration."""
    url: str = "http://127.0.0.1:3000/trpc"
    timeout_seconds: float = 10.0
    max_batch_size: int = Field(default=50, ge=1)  # Flush as soon as this many calls are pending
    batch_wait_ms: int = Field(default=0, ge=0)  # 0 = flush at the end of the current loop turn


class Config(BaseSettings):
    """Root configuration for procroute."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)

    model_config = SettingsConfigDict(
        env_prefix="PROCROUTE_",
        env_nested_delimiter="__",
    )

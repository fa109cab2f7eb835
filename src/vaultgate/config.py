"""Configuration management for VaultGate.

Loads from environment variables, .env files, and an optional TOML file.
Secrets (client ids) come from env vars; structural config from TOML.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vaultgate.oauth.session_bridge import DEFAULT_MAX_SESSIONS, DEFAULT_SESSION_TTL
from vaultgate.sanitize import MAX_ERROR_LENGTH
from vaultgate.vault.file_cache import DEFAULT_MAX_ENTRIES, DEFAULT_MAX_FILE_SIZE
from vaultgate.vault.guides import DEFAULT_GUIDE_FILENAME


class VaultConfig(BaseSettings):
    """Vault root and access rules."""

    path: Path = Field(description="Absolute path to the vault working tree")
    guide_filename: str = DEFAULT_GUIDE_FILENAME
    blocked_names: list[str] = Field(default_factory=lambda: [".git"])

    @field_validator("path")
    @classmethod
    def validate_vault_path(cls, v: Path) -> Path:
        v = v.expanduser()
        if not v.is_dir():
            raise ValueError(f"Vault path does not exist: {v}")
        return v.resolve()

    @field_validator("guide_filename")
    @classmethod
    def validate_guide_filename(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"Guide filename must be a plain file name: {v!r}")
        return v


class CacheConfig(BaseSettings):
    """File read cache limits."""

    max_entries: int = Field(default=DEFAULT_MAX_ENTRIES, ge=1)
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=1)


class OAuthConfig(BaseSettings):
    """Login bridge configuration."""

    session_ttl_seconds: int = Field(default=DEFAULT_SESSION_TTL, ge=1)
    max_sessions: int = Field(default=DEFAULT_MAX_SESSIONS, ge=1)
    idp_authorize_url: str = "https://github.com/login/oauth/authorize"
    idp_client_id: str = ""
    server_url: str = "http://localhost:3000"
    callback_path: str = "/oauth/github/callback"
    scope: str = "read:user"

    @field_validator("server_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ErrorConfig(BaseSettings):
    """Client-visible error rendering."""

    max_message_length: int = Field(default=MAX_ERROR_LENGTH, ge=16)


class MCPConfig(BaseSettings):
    """MCP server configuration."""

    enabled: bool = True
    name: str = "vaultgate"


class Settings(BaseSettings):
    """Root configuration — aggregates all sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="VAULTGATE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    vault: VaultConfig = Field(default_factory=lambda: VaultConfig(path=Path("/vault")))
    cache: CacheConfig = Field(default_factory=CacheConfig)
    oauth: OAuthConfig = Field(default_factory=OAuthConfig)
    errors: ErrorConfig = Field(default_factory=ErrorConfig)
    mcp: MCPConfig = Field(default_factory=MCPConfig)

    log_level: str = "INFO"

    @classmethod
    def from_toml(cls, path: Path | None = None) -> Settings:
        """Load settings from TOML file, with env var overrides."""
        config_path = path or Path("config/default.toml")
        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            return cls(**data)
        return cls()


def load_settings(config_path: Path | None = None) -> Settings:
    """Load and validate settings. Entry point for all config access."""
    return Settings.from_toml(config_path)

"""Tests for settings loading and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

if TYPE_CHECKING:
    from pathlib import Path

from vaultgate.config import OAuthConfig, Settings, VaultConfig, load_settings


class TestVaultConfig:
    def test_path_is_canonicalized(self, tmp_path: Path) -> None:
        real = tmp_path / "real-vault"
        real.mkdir()
        alias = tmp_path / "alias"
        alias.symlink_to(real, target_is_directory=True)
        assert VaultConfig(path=alias).path == real.resolve()

    def test_missing_path_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            VaultConfig(path=tmp_path / "missing")

    @pytest.mark.parametrize("name", ["", "a/CLAUDE.md", "..", "x\\y"])
    def test_guide_filename_must_be_plain(self, tmp_path: Path, name: str) -> None:
        with pytest.raises(ValidationError):
            VaultConfig(path=tmp_path, guide_filename=name)

    def test_defaults(self, tmp_path: Path) -> None:
        cfg = VaultConfig(path=tmp_path)
        assert cfg.guide_filename == "CLAUDE.md"
        assert cfg.blocked_names == [".git"]


class TestOAuthConfig:
    def test_trailing_slash_stripped(self) -> None:
        assert OAuthConfig(server_url="https://x.example/").server_url == "https://x.example"

    def test_defaults(self) -> None:
        cfg = OAuthConfig()
        assert cfg.session_ttl_seconds == 600
        assert cfg.max_sessions == 1000

    def test_ttl_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            OAuthConfig(session_ttl_seconds=0)


class TestSettings:
    def test_env_nested_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VAULTGATE_VAULT__PATH", str(tmp_path))
        monkeypatch.setenv("VAULTGATE_OAUTH__MAX_SESSIONS", "7")
        settings = Settings()
        assert settings.vault.path == tmp_path.resolve()
        assert settings.oauth.max_sessions == 7
        assert settings.cache.max_entries == 200

    def test_from_toml(self, tmp_path: Path) -> None:
        vault = tmp_path / "vault"
        vault.mkdir()
        config_file = tmp_path / "vaultgate.toml"
        config_file.write_text(
            f'[vault]\npath = "{vault.as_posix()}"\nguide_filename = "AGENTS.md"\n\n'
            "[cache]\nmax_entries = 10\n"
        )
        settings = load_settings(config_file)
        assert settings.vault.path == vault.resolve()
        assert settings.vault.guide_filename == "AGENTS.md"
        assert settings.cache.max_entries == 10

"""Settings resolution with profile support and a 5-step API key precedence chain."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "linearctl" / "config.toml"

DEFAULT_ENDPOINT = "https://api.linear.app/graphql"


class LinearctlSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LINEAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr | None = None
    default_profile: str | None = None  # profile name

    # Transport
    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = 30.0  # seconds, per request

    # Batch retry policy
    max_retries: int = 3
    retry_base_delay: float = 0.5  # seconds; doubles per retry


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/linearctl/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def _profile_block(config: Mapping, name: str) -> dict:
    if name not in config or not isinstance(config[name], Mapping):
        profiles = _list_profiles(config)
        typer.echo(f"Profile '{name}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
        raise typer.Exit(1)
    return dict(config[name])


def get_settings(profile: str | None = None) -> LinearctlSettings:
    """Resolve the active profile and return a fully populated LinearctlSettings.

    API key precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. LINEAR_API_KEY env var (or .env)
    3. LINEAR_PROFILE env var
    4. LINEAR_DEFAULT_PROFILE env var, then default_profile key in ~/.config/linearctl/config.toml
    5. First profile defined in ~/.config/linearctl/config.toml
    """
    toml_config = _load_toml()

    if profile:
        # Explicit init kwargs win over env vars in pydantic-settings
        settings = LinearctlSettings(**_profile_block(toml_config, profile))
    else:
        settings = LinearctlSettings()
        if not settings.api_key:
            active = (
                os.environ.get("LINEAR_PROFILE")
                or settings.default_profile
                or toml_config.get("default_profile")
                or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
            )
            if active:
                settings = LinearctlSettings(**_profile_block(toml_config, active))
                profile = active

    if not settings.api_key:
        typer.echo(
            "Missing Linear credentials. Set LINEAR_API_KEY or "
            f"api_key in the [{profile or 'profile'}] section of {CONFIG_PATH}"
        )
        raise typer.Exit(1)

    return settings

"""Load client configuration from YAML and environment variables.

Values are resolved once here and handed to clients explicitly; client code never
reads or writes the process environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default config lives next to this module
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class OllamaSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="OLLAMA_", extra="ignore")
    base_url: str = "http://localhost:11434"
    default_model: str = "mistral"
    timeout: Optional[float] = 120.0
    final_field: Optional[str] = "done"


class BedrockSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BEDROCK_", extra="ignore")
    profile_name: Optional[str] = "default"
    region: str = "us-west-2"
    claude_model_id: str = "anthropic.claude-3-haiku-20240307-v1:0"
    claude_completion_model_id: str = "anthropic.claude-v2"
    mistral_model_id: str = "mistral.mixtral-8x7b-instruct-v0:1"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")
    level: str = "INFO"
    json_format: bool = True


class Config(BaseSettings):
    """Library config: YAML + env."""

    model_config = SettingsConfigDict(env_nested_delimiter="__", extra="ignore")

    ollama: OllamaSettings = Field(default_factory=OllamaSettings)
    bedrock: BedrockSettings = Field(default_factory=BedrockSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "Config":
        path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        yaml_data = _load_yaml(path)
        env_name = os.getenv("LLMWIRE_ENV", "")
        if env_name:
            yaml_data = _deep_merge(yaml_data, _load_yaml(Path(f"config/{env_name}.yaml")))
        host = os.getenv("OLLAMA_HOST")
        if host:
            if not host.startswith("http"):
                host = f"http://{host}"
            yaml_data.setdefault("ollama", {})["base_url"] = host.rstrip("/")
        profile = os.getenv("AWS_PROFILE")
        if profile:
            yaml_data.setdefault("bedrock", {})["profile_name"] = profile
        region = os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")
        if region:
            yaml_data.setdefault("bedrock", {})["region"] = region
        level = os.getenv("LOG_LEVEL")
        if level:
            yaml_data.setdefault("logging", {})["level"] = level
        return cls(**yaml_data)


def get_config(config_path: str | Path | None = None) -> Config:
    return Config.load(config_path)

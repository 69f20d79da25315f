"""Application configuration handling."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "SITEA_"
DEFAULT_CONFIG_PATH = Path("~/.config/site-assistant/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "data_dir"): "data_dir",
    ("site", "origin"): "site_origin",
    ("chunking", "max_chars"): "chunk_max_chars",
    ("retrieval", "top_k"): "top_k",
    ("embeddings", "provider"): "embedding_provider",
    ("embeddings", "models"): "embedding_models",
    ("embeddings", "hashed_dim"): "hashed_dim",
    ("generation", "provider"): "generation_provider",
    ("generation", "models"): "generation_models",
    ("google", "api_key"): "google_api_key",
    ("google", "api_base"): "api_base",
    ("google", "request_timeout"): "request_timeout",
    ("server", "cors_origins"): "cors_origins",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    data_dir: Path = Field(default=Path.home() / ".site-assistant")
    site_origin: str = "http://localhost:8888"
    chunk_max_chars: int = Field(default=1000, ge=1)
    top_k: int = Field(default=4, ge=1, le=50)
    embedding_provider: Literal["gemini", "hashed"] = "gemini"
    embedding_models: list[str] = ["textembedding-005", "text-embedding-004"]
    hashed_dim: int = Field(default=384, ge=8)
    generation_provider: Literal["gemini", "extractive"] = "gemini"
    generation_models: list[str] = ["gemini-2.5-flash-lite", "gemini-1.5-flash"]
    google_api_key: str | None = None
    api_base: str = "https://generativelanguage.googleapis.com"
    request_timeout: float | None = None
    cors_origins: list[str] = [
        "http://localhost:8888",
        "http://127.0.0.1:8888",
    ]

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("data_dir", mode="before")
    @classmethod
    def _expand_data_dir(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("data_dir must be a path or string")

    @field_validator("embedding_models", "generation_models", "cors_origins", mode="before")
    @classmethod
    def _split_csv(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("site_origin", "api_base")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def scraped_txt_path(self) -> Path:
        return self.data_dir / "scraped.txt"

    @property
    def scraped_json_path(self) -> Path:
        return self.data_dir / "scraped.json"

    def resolve_api_key(self) -> str | None:
        """Configured key, or the conventional GOOGLE_API_KEY variable."""
        return self.google_api_key or os.environ.get("GOOGLE_API_KEY") or None

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with SITEA_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


__all__ = ["Settings"]

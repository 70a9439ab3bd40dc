"""Configuration management for Code Forge."""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


DEFAULT_EXCLUDED_NAMES = [
    ".DS_Store",
    ".next",
    ".nx",
    ".git",
    ".gen",
    ".env",
    ".idea",
    ".vscode",
    ".yarn",
    "dist",
    "update.sh",
    "node_modules",
    "package-lock.json",
    "yarn-lock.json",
    "pnpm-lock.yaml",
]

DEFAULT_EXCLUDED_EXTENSIONS = [".jpg", ".jpeg", ".png", ".ico", ".svg", ".woff2", ".zip"]

DEFAULT_DATA_DIR = Path.home() / ".codeforge"


def _split_list(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [entry.strip() for entry in value.split(",") if entry.strip()]


class Config(BaseModel):
    """Application configuration."""

    # Storage
    data_dir: Path = Field(default=DEFAULT_DATA_DIR)

    # Endpoint fallbacks, used when the settings file has no value
    api_url: Optional[str] = Field(default=None)
    api_key: Optional[str] = Field(default=None)
    default_model: Optional[str] = Field(default=None)
    request_timeout: int = Field(default=600)

    # Context Settings
    excluded_names: list[str] = Field(default_factory=lambda: DEFAULT_EXCLUDED_NAMES.copy())
    excluded_extensions: list[str] = Field(
        default_factory=lambda: DEFAULT_EXCLUDED_EXTENSIONS.copy()
    )
    context_warn_chars: int = Field(default=2_000_000)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        def _parse_int(value: Optional[str], fallback: int) -> int:
            try:
                return int(value) if value is not None else fallback
            except ValueError:
                return fallback

        excluded_names = DEFAULT_EXCLUDED_NAMES.copy()
        excluded_names.extend(_split_list(os.getenv("EXCLUDED_NAMES")))

        excluded_extensions = DEFAULT_EXCLUDED_EXTENSIONS.copy()
        for ext in _split_list(os.getenv("EXCLUDED_EXTENSIONS")):
            ext = ext.lower()
            excluded_extensions.append(ext if ext.startswith(".") else f".{ext}")

        data_dir_env = os.getenv("CODEFORGE_DATA_DIR")

        return cls(
            data_dir=Path(data_dir_env).expanduser() if data_dir_env else DEFAULT_DATA_DIR,
            api_url=os.getenv("OPENAI_URL") or None,
            api_key=os.getenv("OPENAI_API_KEY") or None,
            default_model=os.getenv("OPENAI_MODEL") or None,
            request_timeout=_parse_int(os.getenv("LLM_TIMEOUT"), 600),
            excluded_names=excluded_names,
            excluded_extensions=excluded_extensions,
            context_warn_chars=_parse_int(os.getenv("CONTEXT_WARN_CHARS"), 2_000_000),
        )

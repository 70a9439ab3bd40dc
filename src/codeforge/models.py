"""Core data models for Code Forge."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import Config

UPDATE_SCRIPT_NAME = "update.sh"
MAX_EXTRA_SETTINGS = 32


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class PathExclusionPolicy(BaseModel):
    """Names and extensions skipped while serializing a file tree."""

    model_config = ConfigDict(frozen=True)

    names: frozenset[str] = Field(default_factory=frozenset)
    extensions: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("extensions", mode="before")
    @classmethod
    def _normalize_extensions(cls, value):
        return frozenset(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value
        )

    @classmethod
    def from_config(cls, config: Config) -> "PathExclusionPolicy":
        return cls(names=frozenset(config.excluded_names), extensions=config.excluded_extensions)

    def excludes_name(self, name: str) -> bool:
        return name in self.names

    def excludes_extension(self, extension: str) -> bool:
        return extension.lower() in self.extensions


class StageMode(str, Enum):
    """How many model calls a prompt submission makes."""

    ONE_STEP = "one-step"
    TWO_STEP = "two-step"


class PipelineRequest(BaseModel):
    """A single prompt submission."""

    prompt: str
    context: str
    project_id: str
    scope_id: Optional[str] = None
    reasoning_model: str
    regular_model: str
    stage_mode: StageMode = StageMode.TWO_STEP


class ResolvedTarget(BaseModel):
    """Project (and optional scope) the generated script belongs to."""

    project_name: str
    root_folder: Path
    scope_name: Optional[str] = None

    @property
    def script_path(self) -> Path:
        return self.root_folder / UPDATE_SCRIPT_NAME


class StageResult(BaseModel):
    """Output of one model invocation."""

    stage: str
    model: str
    text: str
    elapsed_ns: int

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_ns / 1_000_000


class Artifact(BaseModel):
    """Extracted script and the place it is written to."""

    script: str
    path: Path


class PipelineResult(BaseModel):
    """Everything a pipeline run produced."""

    display_text: str
    artifact: Artifact
    notification_message: str
    stages: List[StageResult] = Field(default_factory=list)
    total_ns: int

    @property
    def total_ms(self) -> float:
        return self.total_ns / 1_000_000


class PromptResponse(BaseModel):
    """What ``send_prompt`` hands back to its caller."""

    response: str
    script: str
    processing_time: str


class ModelInfo(BaseModel):
    """An entry of the endpoint's model list."""

    id: str
    name: str


class Project(BaseModel):
    """A project whose root folder receives update.sh."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    name: str
    root_folder: Optional[str] = Field(default=None, alias="rootFolder")
    folders: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=_now, alias="updatedAt")


class Scope(BaseModel):
    """A named subset of folders under a project."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=_new_id)
    name: str
    project_id: str = Field(alias="projectId")
    folders: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=_now, alias="updatedAt")


class Settings(BaseModel):
    """User settings persisted in settings.json."""

    model_config = ConfigDict(populate_by_name=True)

    api_url: Optional[str] = Field(default=None, alias="apiUrl")
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    reasoning_model: Optional[str] = Field(default=None, alias="reasoningModel")
    regular_model: Optional[str] = Field(default=None, alias="regularModel")
    telegram_api_key: Optional[str] = Field(default=None, alias="telegramApiKey")
    telegram_chat_id: Optional[str] = Field(default=None, alias="telegramChatId")
    extra: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("extra")
    @classmethod
    def _bound_extra(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        if len(value) > MAX_EXTRA_SETTINGS:
            raise ValueError(f"extra settings are limited to {MAX_EXTRA_SETTINGS} keys")
        return value

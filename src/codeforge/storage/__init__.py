"""Flat-file storage for projects, scopes and settings."""

from .repository import JsonRepository, ProjectRepository, ScopeRepository
from .resolver import TargetResolver
from .settings_store import SettingsStore

__all__ = [
    "JsonRepository",
    "ProjectRepository",
    "ScopeRepository",
    "TargetResolver",
    "SettingsStore",
]

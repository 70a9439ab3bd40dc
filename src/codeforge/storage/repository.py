"""Flat-file JSON repositories for projects and scopes."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Generic, List, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError
from ..models import Project, Scope

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", Project, Scope)


class JsonRepository(Generic[RecordT]):
    """List of records kept in a single JSON file.

    A missing file is created empty; an unreadable one is logged and treated
    as empty so the application can still start.
    """

    model: Type[BaseModel]

    def __init__(self, path: Path):
        self.path = path
        self._records: List[RecordT] = self._load()

    def list(self) -> List[RecordT]:
        return list(self._records)

    def get(self, record_id: Optional[str]) -> Optional[RecordT]:
        if not record_id:
            return None
        return next((r for r in self._records if r.id == record_id), None)

    def create(self, record: RecordT) -> RecordT:
        self._records.append(record)
        self._save()
        return record

    def update(self, record: RecordT) -> Optional[RecordT]:
        for index, existing in enumerate(self._records):
            if existing.id == record.id:
                updated = record.model_copy(update={"updated_at": datetime.now(timezone.utc)})
                self._records[index] = updated
                self._save()
                return updated
        return None

    def delete(self, record_id: str) -> bool:
        before = len(self._records)
        self._records = [r for r in self._records if r.id != record_id]
        self._save()
        return len(self._records) != before

    def reload(self) -> None:
        self._records = self._load()

    def _load(self) -> List[RecordT]:
        if not self.path.exists():
            self._records = []
            self._save()
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return [self.model.model_validate(item) for item in raw]
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.error("Failed to load %s: %s", self.path, e)
            return []

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = [r.model_dump(mode="json", by_alias=True) for r in self._records]
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save %s: %s", self.path, e)


class ProjectRepository(JsonRepository[Project]):
    """Projects stored in projects.json."""

    model = Project


class ScopeRepository(JsonRepository[Scope]):
    """Scopes stored in scopes.json."""

    model = Scope

    def list(self, project_id: Optional[str] = None) -> List[Scope]:
        if project_id:
            return [s for s in self._records if s.project_id == project_id]
        return list(self._records)

"""settings.json persistence."""

import json
import logging
from pathlib import Path
from pydantic import ValidationError
from ..models import MAX_EXTRA_SETTINGS, Settings

logger = logging.getLogger(__name__)


class SettingsStore:
    """Reads and writes the user's settings file."""

    def __init__(self, path: Path):
        self.path = path
        self._settings = self._load()

    def get(self) -> Settings:
        return self._settings.model_copy()

    def update(self, **changes) -> Settings:
        """Merge changes into the stored settings and persist them.

        Keys are field names (``api_url``) or their stored aliases (``apiUrl``).
        Unknown keys land in ``extra``; a ``None`` value removes them.
        """
        data = self._settings.model_dump()
        extra = dict(data.get("extra", {}))
        for key, value in changes.items():
            name = self._field_name(key)
            if name:
                data[name] = value
            elif value is None:
                extra.pop(key, None)
            else:
                extra[key] = value
        data["extra"] = extra

        self._settings = Settings.model_validate(data)
        self._save()
        return self.get()

    def reload(self) -> Settings:
        self._settings = self._load()
        return self.get()

    @staticmethod
    def _field_name(key: str) -> str | None:
        for name, field in Settings.model_fields.items():
            if name == "extra":
                continue
            if key in (name, field.alias):
                return name
        return None

    def _load(self) -> Settings:
        if not self.path.exists():
            self._settings = Settings()
            self._save()
            return self._settings

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("settings file does not hold a JSON object")
            return self._from_stored(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.error("Failed to load settings from %s: %s", self.path, e)
            return Settings()

    def _from_stored(self, raw: dict) -> Settings:
        """Build settings from the flat key bag the desktop app writes.

        Keys that are not settings fields are kept in ``extra`` so saving
        writes them back. An ``extra`` object from older files is merged in.
        """
        stored_extra = raw.get("extra")
        extra = dict(stored_extra) if isinstance(stored_extra, dict) else {}
        data = {}
        for key, value in raw.items():
            if key == "extra":
                continue
            name = self._field_name(key)
            if name:
                data[name] = value
            else:
                extra[key] = value

        if len(extra) > MAX_EXTRA_SETTINGS:
            dropped = list(extra)[MAX_EXTRA_SETTINGS:]
            logger.warning("Ignoring settings beyond the first %d unknown keys: %s", MAX_EXTRA_SETTINGS, dropped)
            extra = {key: extra[key] for key in list(extra)[:MAX_EXTRA_SETTINGS]}

        data["extra"] = extra
        return Settings.model_validate(data)

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            payload = self._settings.model_dump(
                mode="json", by_alias=True, exclude_none=True, exclude={"extra"}
            )
            for key, value in self._settings.extra.items():
                payload.setdefault(key, value)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save settings to %s: %s", self.path, e)

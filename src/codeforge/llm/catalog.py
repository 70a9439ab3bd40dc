"""Model list fetched from the endpoint and cached on disk."""

import json
import logging
from pathlib import Path
from typing import Callable, List, Optional
import httpx
from ..errors import UpstreamCallError
from ..models import ModelInfo, Settings
from .litellm_provider import PLACEHOLDER_API_KEY

logger = logging.getLogger(__name__)

FALLBACK_MODEL = "gpt-3.5-turbo"


class ModelCatalog:
    """Keeps models.json in sync with the endpoint's ``/models`` listing."""

    def __init__(
        self,
        models_path: Path,
        settings: Callable[[], Settings],
        timeout: float = 30.0,
        fallback_model: Optional[str] = None,
    ):
        """Initialize catalog.

        Args:
            models_path: Cache file location
            settings: Returns the current settings (URL, key, reasoning model)
            timeout: HTTP timeout in seconds
            fallback_model: Model saved when the endpoint gives no list
        """
        self.models_path = models_path
        self._settings = settings
        self.timeout = timeout
        self.fallback_model = fallback_model

    def fetch_and_save(self, url: Optional[str] = None, key: Optional[str] = None) -> List[ModelInfo]:
        """Fetch the model list.

        Only a fetch against the configured URL updates the cache; a custom URL
        is treated as a connection test.

        Raises:
            UpstreamCallError: If the endpoint cannot be reached or answers non-2xx
        """
        settings = self._settings()
        configured_url = settings.api_url
        url = url or configured_url
        key = key or settings.api_key

        if not url:
            logger.info("API not configured, using default model")
            self._save_default_models()
            return []

        is_configured_url = url == configured_url

        try:
            response = httpx.get(
                f"{url.rstrip('/')}/models",
                headers={"Authorization": f"Bearer {key or PLACEHOLDER_API_KEY}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Error fetching models from %s: %s", url, e)
            if is_configured_url:
                self._save_default_models()
            raise UpstreamCallError(
                f"API responded with status: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching models from %s: %s", url, e)
            if is_configured_url:
                self._save_default_models()
            raise UpstreamCallError(f"Failed to connect to API: {e}") from e

        entries = data.get("data") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            logger.info("Invalid response format from API, using default model")
            if is_configured_url:
                self._save_default_models()
            return []

        models = [
            ModelInfo(id=entry["id"], name=entry["id"])
            for entry in entries
            if isinstance(entry, dict) and "id" in entry
        ]
        if is_configured_url:
            self._save(models)
        return models

    def get_models(self) -> List[ModelInfo]:
        """Return the cached model list, empty when missing or unreadable."""
        if not self.models_path.exists():
            return []
        try:
            raw = json.loads(self.models_path.read_text(encoding="utf-8"))
            return [ModelInfo(**entry) for entry in raw]
        except (OSError, ValueError, TypeError) as e:
            logger.error("Failed to read models: %s", e)
            return []

    def clear(self) -> None:
        """Drop the cache, e.g. after the API URL is removed."""
        self.models_path.unlink(missing_ok=True)

    def _default_model(self) -> str:
        return self._settings().reasoning_model or self.fallback_model or FALLBACK_MODEL

    def _save_default_models(self) -> List[ModelInfo]:
        model = self._default_model()
        logger.info("Saving default model: %s", model)
        models = [ModelInfo(id=model, name=model)]
        self._save(models)
        return models

    def _save(self, models: List[ModelInfo]) -> None:
        try:
            self.models_path.parent.mkdir(parents=True, exist_ok=True)
            self.models_path.write_text(
                json.dumps([m.model_dump() for m in models], indent=2), encoding="utf-8"
            )
        except OSError as e:
            logger.error("Failed to save models: %s", e)

"""Persisting update.sh and announcing it."""

import logging
import threading
from typing import Optional
from ..errors import ArtifactWriteError
from ..models import Artifact
from ..notifications.base import Notifier, NullNotifier

logger = logging.getLogger(__name__)


class ArtifactWriter:
    """Writes the extracted script, then fires the notification hook."""

    def __init__(self, notifier: Optional[Notifier] = None, background: bool = True):
        """Initialize writer.

        Args:
            notifier: Sink for post-commit messages
            background: Deliver notifications on a separate thread
        """
        self.notifier = notifier or NullNotifier()
        self.background = background
        self._pending: list[threading.Thread] = []

    def write(self, artifact: Artifact, display_text: str = "") -> None:
        """Overwrite the artifact's file with its script.

        The parent directory must already exist.

        Raises:
            ArtifactWriteError: If the file cannot be written
        """
        try:
            artifact.path.write_text(artifact.script, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write %s: %s", artifact.path, e)
            raise ArtifactWriteError(
                f"Failed to write {artifact.path}: {e}", path=artifact.path, display_text=display_text
            ) from e
        logger.info("Saved update script to %s", artifact.path)

    def notify(self, message: str) -> None:
        """Send a notification without ever raising."""
        if not self.background:
            self._deliver(message)
            return

        thread = threading.Thread(target=self._deliver, args=(message,), name="codeforge-notify")
        self._pending = [t for t in self._pending if t.is_alive()]
        self._pending.append(thread)
        thread.start()

    def commit(self, artifact: Artifact, message: str, display_text: str = "") -> None:
        """Write the artifact and, once it is on disk, notify."""
        self.write(artifact, display_text=display_text)
        self.notify(message)

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until background notifications have finished."""
        for thread in self._pending:
            thread.join(timeout)
        self._pending = [t for t in self._pending if t.is_alive()]

    def _deliver(self, message: str) -> None:
        try:
            self.notifier.send(message)
        except Exception:
            logger.exception("Failed to send notification")

"""Error types raised by Code Forge."""

from pathlib import Path
from typing import Optional


class CodeForgeError(Exception):
    """Base class for all Code Forge errors."""

    pass


class ConfigurationMissingError(CodeForgeError):
    """Raised when no completion endpoint is configured."""

    pass


class TargetResolutionError(CodeForgeError):
    """Raised when a project, scope or root folder cannot be found."""

    pass


class UpstreamCallError(CodeForgeError):
    """Raised when the completion endpoint fails or returns a malformed payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ArtifactWriteError(CodeForgeError):
    """Raised when update.sh cannot be written.

    The display text produced before the failure is kept so callers can
    still show it.
    """

    def __init__(self, message: str, path: Path, display_text: str = ""):
        super().__init__(message)
        self.path = path
        self.display_text = display_text


class NotificationError(CodeForgeError):
    """Raised by notifiers when delivery fails."""

    pass

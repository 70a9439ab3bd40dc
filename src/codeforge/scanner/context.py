"""Markdown context serializer for local file trees."""

import logging
import os
import stat
from pathlib import Path
from typing import Iterable, List, Optional, Set
from ..models import PathExclusionPolicy

logger = logging.getLogger(__name__)

FENCE = "```"


class ContextSerializer:
    """Renders files and directories into a single markdown document."""

    def __init__(self, policy: PathExclusionPolicy, warn_chars: Optional[int] = None):
        """Initialize serializer.

        Args:
            policy: Names and extensions to skip at every depth
            warn_chars: Log a warning when the rendered context exceeds this size
        """
        self.policy = policy
        self.warn_chars = warn_chars

    def serialize(self, roots: Iterable[str | Path]) -> str:
        """Serialize every root into one markdown string.

        Directories become headings with nested sections, files become a
        heading followed by their content in a fenced block. Failures are
        rendered inline so the call always returns.

        Args:
            roots: Files or directories to include, in the given order

        Returns:
            Markdown document
        """
        parts: List[str] = []
        for root in roots:
            self._render_root(Path(root), parts)

        content = "".join(parts)
        if self.warn_chars is not None and len(content) > self.warn_chars:
            logger.warning(
                "Generated context is %d characters (warning threshold %d)",
                len(content),
                self.warn_chars,
            )
        return content

    def _render_root(self, root: Path, parts: List[str]) -> None:
        try:
            mode = root.stat().st_mode
        except OSError as e:
            logger.warning("Cannot read root %s: %s", root, e)
            parts.append(f"# Error: {root}\n\n{e}\n\n")
            return

        if stat.S_ISDIR(mode):
            parts.append(f"# Folder: {root}\n\n")
            self._render_directory(root, 1, parts, {os.path.realpath(root)})
        elif stat.S_ISREG(mode):
            parts.append(f"# File: {root}\n\n")
            self._render_file_body(root, parts)
        else:
            parts.append(f"# Error: {root}\n\nNot a regular file or directory\n\n")

    def _render_directory(self, directory: Path, depth: int, parts: List[str], stack: Set[str]) -> None:
        """Recursively render the entries of a directory.

        Args:
            directory: Directory being rendered
            depth: Depth of its entries; headings use depth + 1 hashes
            parts: Output accumulator
            stack: Real paths of the directories currently being rendered
        """
        try:
            entries = list(directory.iterdir())
        except OSError as e:
            logger.warning("Cannot list %s: %s", directory, e)
            parts.append(f"Error reading directory: {e}\n\n")
            return

        heading = "#" * (depth + 1)

        for item in entries:
            if self.policy.excludes_name(item.name):
                continue

            try:
                mode = item.stat().st_mode
            except OSError as e:
                if self._excluded_file(item):
                    continue
                parts.append(f"{heading} {item.name}\n\nError: {e}\n\n")
                continue

            if stat.S_ISDIR(mode):
                real = os.path.realpath(item)
                parts.append(f"{heading} {item.name}\n\n")
                if real in stack:
                    parts.append(f"Skipped: symlink cycle back to {real}\n\n")
                    continue
                self._render_directory(item, depth + 1, parts, stack | {real})
            elif stat.S_ISREG(mode):
                if self._excluded_file(item):
                    continue
                parts.append(f"{heading} {item.name}\n\n")
                self._render_file_body(item, parts)

    def _excluded_file(self, path: Path) -> bool:
        return self.policy.excludes_extension(os.path.splitext(path.name)[1])

    def _render_file_body(self, path: Path, parts: List[str]) -> None:
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Cannot read %s: %s", path, e)
            content = f"Error reading file: {e}"

        parts.append(f"{FENCE}\n{content}\n{FENCE}\n\n")


def generate_context(
    roots: Iterable[str | Path],
    policy: PathExclusionPolicy,
    warn_chars: Optional[int] = None,
) -> str:
    """Serialize roots into markdown with the given exclusion policy."""
    return ContextSerializer(policy, warn_chars=warn_chars).serialize(roots)

"""Shell script extraction from model output."""

import re
from typing import Iterator, List, Optional, Tuple

SHELL_TAGS = frozenset({"", "bash", "sh", "shell", "zsh"})

# A fence line: three backticks at column 0, an optional info tag, nothing else.
FENCE_LINE = re.compile(r"^```([\w.+-]*)[ \t]*$")

TRAILING_NEWLINE = re.compile(r"\r?\n\Z")


def _fence_tag(line: str) -> Optional[str]:
    match = FENCE_LINE.match(line.rstrip("\r\n"))
    return match.group(1).lower() if match else None


def _closing_fence(lines: List[str], start: int) -> Optional[int]:
    """Index of the bare fence closing a block whose body starts at ``start``.

    Tagged fences inside the body open nested blocks (e.g. markdown written
    by a heredoc); each consumes one bare fence before the outer block can close.
    """
    depth = 0
    for index in range(start, len(lines)):
        tag = _fence_tag(lines[index])
        if tag is None:
            continue
        if tag:
            depth += 1
        elif depth:
            depth -= 1
        else:
            return index
    return None


def _fenced_blocks(lines: List[str]) -> Iterator[Tuple[str, int, int]]:
    """Yield ``(tag, body_start, body_end)`` for each complete top-level block."""
    index = 0
    while index < len(lines):
        tag = _fence_tag(lines[index])
        if tag is None:
            index += 1
            continue
        end = _closing_fence(lines, index + 1)
        if end is None:
            return
        yield tag, index + 1, end
        index = end + 1


def extract_code_block(text: str) -> str:
    """Return the body of the first bare or shell-tagged fenced block.

    Blocks in other languages are stepped over whole, so their closing fence
    never opens a block. Falls back to the input unchanged when there is no
    shell block.
    """
    lines = text.splitlines(keepends=True)
    for tag, start, end in _fenced_blocks(lines):
        if tag in SHELL_TAGS:
            return TRAILING_NEWLINE.sub("", "".join(lines[start:end]))
    return text

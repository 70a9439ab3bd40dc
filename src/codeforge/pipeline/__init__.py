"""Prompt pipeline, script extraction and artifact persistence."""

from .artifact import ArtifactWriter
from .extractor import extract_code_block
from .prompt_pipeline import PromptPipeline
from .timing import Stopwatch, format_processing_time

__all__ = [
    "ArtifactWriter",
    "extract_code_block",
    "PromptPipeline",
    "Stopwatch",
    "format_processing_time",
]

"""Code Forge - Generate update scripts from prompts and local file context."""

__version__ = "0.1.0"

from .config import Config
from .errors import (
    ArtifactWriteError,
    CodeForgeError,
    ConfigurationMissingError,
    NotificationError,
    TargetResolutionError,
    UpstreamCallError,
)
from .models import (
    Artifact,
    PathExclusionPolicy,
    PipelineRequest,
    PipelineResult,
    StageMode,
    StageResult,
)
from .pipeline import PromptPipeline, extract_code_block
from .scanner import ContextSerializer, generate_context
from .service import CodeForge

__all__ = [
    "Config",
    "CodeForge",
    "ArtifactWriteError",
    "CodeForgeError",
    "ConfigurationMissingError",
    "NotificationError",
    "TargetResolutionError",
    "UpstreamCallError",
    "Artifact",
    "PathExclusionPolicy",
    "PipelineRequest",
    "PipelineResult",
    "StageMode",
    "StageResult",
    "PromptPipeline",
    "extract_code_block",
    "ContextSerializer",
    "generate_context",
]

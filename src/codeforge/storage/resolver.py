"""Project/scope lookup for pipeline targets."""

import logging
from pathlib import Path
from typing import Optional
from ..errors import TargetResolutionError
from ..models import ResolvedTarget
from .repository import ProjectRepository, ScopeRepository

logger = logging.getLogger(__name__)

TARGET_NOT_FOUND_MESSAGE = "Project root folder or scope not found, cannot save update.sh"


class TargetResolver:
    """Finds the root folder update.sh should be written to."""

    def __init__(self, projects: ProjectRepository, scopes: ScopeRepository):
        self.projects = projects
        self.scopes = scopes

    def resolve(self, project_id: Optional[str], scope_id: Optional[str] = None) -> ResolvedTarget:
        """Resolve a project and optional scope.

        Raises:
            TargetResolutionError: If the project, its root folder or the scope is missing
        """
        project = self.projects.get(project_id)
        if project is None or not project.root_folder:
            logger.error("No project with a root folder for id %s", project_id)
            raise TargetResolutionError(TARGET_NOT_FOUND_MESSAGE)

        root = Path(project.root_folder)
        if not root.is_dir():
            logger.error("Root folder %s of project %s does not exist", root, project.name)
            raise TargetResolutionError(TARGET_NOT_FOUND_MESSAGE)

        scope_name = None
        if scope_id:
            scope = next((s for s in self.scopes.list(project.id) if s.id == scope_id), None)
            if scope is None:
                logger.error("Scope %s not found in project %s", scope_id, project.name)
                raise TargetResolutionError(TARGET_NOT_FOUND_MESSAGE)
            scope_name = scope.name

        return ResolvedTarget(project_name=project.name, root_folder=root, scope_name=scope_name)

"""Project orchestration: ownership checks around the project store."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from database import atomic
from models.project import Project
from repositories.project_repository import ProjectRepository
from services.authorization import Actor, can_delete_project, can_update_project, ensure
from services.errors import NotFoundError, ValidationError, check_update_fields, storage_errors
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, Page

logger = logging.getLogger(__name__)


class ProjectService:
    def __init__(self, projects: ProjectRepository | None = None):
        self.projects = projects or ProjectRepository()

    def create_project(self, actor: Actor, *, name: str, description: str | None = None) -> Project:
        """Create a project owned by ``actor``."""
        with storage_errors("create project"), atomic():
            project = self.projects.create(name=name, owner_id=actor.id, description=description)
        logger.info("User %s created project %s", actor.id, project.id)
        return project

    def list_projects(
        self,
        owner_id: int | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> Page[Project]:
        with storage_errors("list projects"):
            items, total = self.projects.find_many(owner_id, page=page, limit=limit)
        return Page(items, total, page, limit)

    def get_project(self, project_id: int) -> Project:
        with storage_errors("load project"):
            project = self.projects.find_by_id(project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    def get_project_with_tasks(self, project_id: int) -> Project:
        with storage_errors("load project tasks"):
            project = self.projects.find_with_tasks(project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    def update_project(self, actor: Actor, project_id: int, fields: Mapping[str, Any]) -> Project:
        """Apply a partial update; only the project owner may do this."""
        with storage_errors("update project"), atomic():
            project = self.projects.find_by_id(project_id)
            if project is None:
                raise NotFoundError("project", project_id)
            ensure(can_update_project(actor, project), "Only the project owner can update this project")
            check_update_fields("project", fields, self.projects.updatable_fields)
            if "name" in fields and not fields["name"]:
                raise ValidationError("Project name cannot be empty")
            project = self.projects.update(project_id, fields)
        return project

    def delete_project(self, actor: Actor, project_id: int) -> None:
        """Delete the project with all of its tasks, comments and tag links."""
        with storage_errors("delete project"), atomic():
            project = self.projects.find_by_id(project_id)
            if project is None:
                raise NotFoundError("project", project_id)
            ensure(can_delete_project(actor, project), "Only the project owner can delete this project")
            self.projects.delete(project_id)
        logger.info("User %s deleted project %s", actor.id, project_id)


__all__ = ["ProjectService"]

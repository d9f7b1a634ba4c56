"""Project persistence, including the Project -> Task cascade."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from models.project import Project
from repositories.base import Repository
from repositories.task_repository import TaskRepository
from utils.pagination import DEFAULT_LIMIT, DEFAULT_PAGE


class ProjectRepository(Repository[Project]):
    model = Project
    updatable_fields = frozenset({"name", "description"})

    def __init__(self, session=None):
        super().__init__(session)
        self.tasks = TaskRepository(session)

    def create(self, *, name: str, owner_id: int, description: str | None = None) -> Project:
        return super().create(name=name, owner_id=owner_id, description=description)

    def find_many(
        self,
        owner_id: int | None = None,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> tuple[list[Project], int]:
        criteria = []
        if owner_id is not None:
            criteria.append(Project.owner_id == owner_id)
        return super().find_many(criteria, page=page, limit=limit)

    def find_with_tasks(self, project_id: int) -> Project | None:
        stmt = (
            select(Project)
            .where(Project.id == project_id)
            .options(selectinload(Project.tasks))
            .execution_options(populate_existing=True)
        )
        return self.session.scalars(stmt).first()

    def delete(self, project_id: int) -> bool:
        """Delete the project, its tasks and their comments and tag links.

        Must run inside the caller's transaction so the cascade is atomic.
        """
        self.tasks.delete_for_project(project_id)
        return super().delete(project_id)


__all__ = ["ProjectRepository"]

import unittest

from sqlalchemy import func, select

from models.comment import Comment
from models.tag import task_tags
from models.task import Task
from repositories.project_repository import ProjectRepository
from services.authorization import Actor
from services.comment_service import CommentService
from services.errors import ForbiddenError, InternalError, NotFoundError, ValidationError
from services.project_service import ProjectService
from services.tag_service import TagService
from services.task_service import TaskService
from tests.utils.db import DatabaseTestCase

OWNER = Actor.of(1, ["MEMBER"])
OTHER = Actor.of(2, ["MEMBER"])
ADMIN = Actor.of(3, ["ADMIN"])


class ProjectServiceTestCase(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.projects = ProjectService()
        self.tasks = TaskService()

    def _count(self, stmt):
        return self.db.session.scalar(stmt)

    def test_create_assigns_owner(self):
        project = self.projects.create_project(OWNER, name="P1", description="first")

        loaded = self.projects.get_project(project.id)
        self.assertEqual(loaded.name, "P1")
        self.assertEqual(loaded.owner_id, OWNER.id)
        self.assertEqual(loaded.description, "first")

    def test_get_missing_project(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.projects.get_project(999)
        self.assertEqual(ctx.exception.code, "PROJECT_NOT_FOUND")
        self.assertEqual(ctx.exception.http_status, 404)

    def test_list_filters_by_owner_and_paginates_newest_first(self):
        for index in range(5):
            self.projects.create_project(OWNER, name=f"Owned {index}")
        self.projects.create_project(OTHER, name="Foreign")

        page = self.projects.list_projects(owner_id=OWNER.id, page=1, limit=2)

        self.assertEqual(page.total, 5)
        self.assertEqual(page.total_pages, 3)
        self.assertEqual([p.name for p in page.items], ["Owned 4", "Owned 3"])

        last = self.projects.list_projects(owner_id=OWNER.id, page=3, limit=2)
        self.assertEqual([p.name for p in last.items], ["Owned 0"])

    def test_partial_update_only_touches_given_fields(self):
        project = self.projects.create_project(OWNER, name="P1", description="keep me")

        updated = self.projects.update_project(OWNER, project.id, {"name": "Renamed"})
        self.assertEqual(updated.name, "Renamed")
        self.assertEqual(updated.description, "keep me")

        cleared = self.projects.update_project(OWNER, project.id, {"description": None})
        self.assertIsNone(cleared.description)
        self.assertEqual(cleared.name, "Renamed")

    def test_update_rejects_unknown_fields(self):
        project = self.projects.create_project(OWNER, name="P1")

        with self.assertRaises(ValidationError):
            self.projects.update_project(OWNER, project.id, {"owner_id": OTHER.id})
        self.assertEqual(self.projects.get_project(project.id).owner_id, OWNER.id)

    def test_update_rejects_empty_name(self):
        project = self.projects.create_project(OWNER, name="P1")

        for name in ("", None):
            with self.assertRaises(ValidationError):
                self.projects.update_project(OWNER, project.id, {"name": name})
        self.assertEqual(self.projects.get_project(project.id).name, "P1")

    def test_non_owner_is_forbidden_even_as_admin(self):
        project = self.projects.create_project(OWNER, name="P1")

        for actor in (OTHER, ADMIN):
            with self.assertRaises(ForbiddenError):
                self.projects.update_project(actor, project.id, {"name": "Hijacked"})
            with self.assertRaises(ForbiddenError):
                self.projects.delete_project(actor, project.id)

        self.assertEqual(self.projects.get_project(project.id).name, "P1")

    def test_not_found_takes_precedence_over_forbidden(self):
        with self.assertRaises(NotFoundError):
            self.projects.update_project(OTHER, 12345, {"name": "x"})
        with self.assertRaises(NotFoundError):
            self.projects.delete_project(OTHER, 12345)

    def test_get_project_with_tasks(self):
        project = self.projects.create_project(OWNER, name="P1")
        self.tasks.create_task(OWNER, title="T1", project_id=project.id)
        self.tasks.create_task(OWNER, title="T2", project_id=project.id)

        loaded = self.projects.get_project_with_tasks(project.id)
        payload = loaded.to_dict(include_tasks=True)

        self.assertEqual(sorted(task["title"] for task in payload["tasks"]), ["T1", "T2"])

    def test_delete_cascades_to_tasks_comments_and_tag_links(self):
        project = self.projects.create_project(OWNER, name="P1")
        keep = self.projects.create_project(OWNER, name="P2")
        project_id = project.id
        task = self.tasks.create_task(OWNER, title="T1", project_id=project.id)
        other_task = self.tasks.create_task(OWNER, title="T2", project_id=keep.id)
        task_id, other_task_id = task.id, other_task.id

        comments = CommentService()
        comments.create_comment(OWNER, task_id=task_id, content="first")
        comments.create_comment(OTHER, task_id=task_id, content="second")
        comments.create_comment(OWNER, task_id=other_task_id, content="stays")

        tags = TagService()
        tag = tags.create_tag(OWNER, name="urgent")
        tags.add_tag_to_task(OWNER, task_id, tag.id)
        tags.add_tag_to_task(OWNER, other_task_id, tag.id)

        self.projects.delete_project(OWNER, project_id)

        with self.assertRaises(NotFoundError):
            self.projects.get_project(project_id)
        with self.assertRaises(NotFoundError):
            self.tasks.get_task(task_id)
        self.assertEqual(self._count(select(func.count()).select_from(Task).where(Task.project_id == project_id)), 0)
        self.assertEqual(self._count(select(func.count()).select_from(Comment).where(Comment.task_id == task_id)), 0)
        self.assertEqual(
            self._count(select(func.count()).select_from(task_tags).where(task_tags.c.task_id == task_id)),
            0,
        )

        # The other project, its comment and the tag itself survive.
        self.assertEqual(self.tasks.get_task(other_task_id).title, "T2")
        self.assertEqual(comments.list_comments(other_task_id).total, 1)
        self.assertEqual(tags.get_tag(tag.id).name, "urgent")

    def test_failed_cascade_is_rolled_back(self):
        class FailingProjectRepository(ProjectRepository):
            def delete(self, project_id):
                self.tasks.delete_for_project(project_id)
                raise InternalError()

        project = self.projects.create_project(OWNER, name="P1")
        task = self.tasks.create_task(OWNER, title="T1", project_id=project.id)
        task_id = task.id

        failing = ProjectService(projects=FailingProjectRepository())
        with self.assertRaises(InternalError):
            failing.delete_project(OWNER, project.id)

        self.assertEqual(self.tasks.get_task(task_id).title, "T1")
        self.assertEqual(self.projects.get_project(project.id).name, "P1")


if __name__ == "__main__":
    unittest.main()

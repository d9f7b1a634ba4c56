import unittest
from datetime import datetime

from models.task import TaskPriority, TaskStatus
from services.authorization import Actor
from services.comment_service import CommentService
from services.errors import ForbiddenError, NotFoundError, ValidationError
from services.project_service import ProjectService
from services.tag_service import TagService
from services.task_service import TaskService
from tests.utils.db import DatabaseTestCase

OWNER = Actor.of(1, ["MEMBER"])
OTHER = Actor.of(2, ["MEMBER"])


class TaskServiceTestCase(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = TaskService()
        self.project_id = ProjectService().create_project(OWNER, name="P1").id

    def test_create_uses_defaults(self):
        task = self.service.create_task(OTHER, title="T1", project_id=self.project_id)

        self.assertEqual(task.status, TaskStatus.TODO.value)
        self.assertEqual(task.priority, TaskPriority.MEDIUM.value)
        self.assertEqual(task.project_id, self.project_id)
        self.assertIsNone(task.assignee_id)

    def test_create_requires_existing_project(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.create_task(OWNER, title="T1", project_id=999)
        self.assertEqual(ctx.exception.kind, "project")
        self.assertEqual(ctx.exception.code, "PROJECT_NOT_FOUND")

    def test_create_rejects_unknown_status(self):
        with self.assertRaises(ValidationError):
            self.service.create_task(OWNER, title="T1", project_id=self.project_id, status="BLOCKED")

    def test_create_policy_can_be_replaced(self):
        service = TaskService(create_policy=lambda actor: "ADMIN" in actor.roles)

        with self.assertRaises(ForbiddenError):
            service.create_task(OWNER, title="T1", project_id=self.project_id)
        self.assertEqual(self.service.list_tasks(project_id=self.project_id).total, 0)

    def test_missing_project_reported_before_policy(self):
        service = TaskService(create_policy=lambda actor: False)

        with self.assertRaises(NotFoundError):
            service.create_task(OWNER, title="T1", project_id=999)

    def test_list_filters(self):
        due = datetime(2030, 1, 1, 12, 0)
        first = self.service.create_task(
            OWNER,
            title="Urgent",
            project_id=self.project_id,
            priority="HIGH",
            assignee_id=7,
            due_date=due,
        )
        self.service.create_task(OWNER, title="Later", project_id=self.project_id, priority="LOW")
        self.service.create_task(OWNER, title="Done", project_id=self.project_id, status="DONE")
        other_project = ProjectService().create_project(OTHER, name="P2").id
        self.service.create_task(OTHER, title="Elsewhere", project_id=other_project)
        first_id = first.id

        self.assertEqual(self.service.list_tasks(project_id=self.project_id).total, 3)
        self.assertEqual(self.service.list_tasks().total, 4)
        high = self.service.list_tasks(priority="HIGH")
        self.assertEqual([task.id for task in high.items], [first_id])
        self.assertEqual(high.items[0].due_date, due)
        self.assertEqual(self.service.list_tasks(status="DONE").total, 1)
        self.assertEqual(self.service.list_tasks(assignee_id=7).total, 1)
        self.assertEqual(self.service.list_tasks(project_id=self.project_id, status="TODO", priority="LOW").total, 1)

    def test_list_filters_by_tag(self):
        tagged = self.service.create_task(OWNER, title="Tagged", project_id=self.project_id)
        self.service.create_task(OWNER, title="Plain", project_id=self.project_id)
        tagged_id = tagged.id
        tags = TagService()
        tag_id = tags.create_tag(OWNER, name="urgent").id
        tags.add_tag_to_task(OWNER, tagged_id, tag_id)

        page = self.service.list_tasks(tag_id=tag_id)

        self.assertEqual(page.total, 1)
        self.assertEqual(page.items[0].id, tagged_id)

    def test_pagination_of_forty_tasks(self):
        for index in range(40):
            self.service.create_task(OWNER, title=f"Task {index}", project_id=self.project_id)

        page = self.service.list_tasks(project_id=self.project_id, page=3, limit=15)

        self.assertEqual(page.total, 40)
        self.assertEqual(page.total_pages, 3)
        self.assertEqual(len(page.items), 10)
        # Newest first, so the third page holds the ten oldest.
        self.assertEqual(page.items[-1].title, "Task 0")

    def test_update_is_partial(self):
        task = self.service.create_task(
            OWNER,
            title="T1",
            project_id=self.project_id,
            description="describe",
            assignee_id=4,
        )

        updated = self.service.update_task(OTHER, task.id, {"status": "IN_PROGRESS", "assignee_id": None})

        self.assertEqual(updated.status, "IN_PROGRESS")
        self.assertIsNone(updated.assignee_id)
        self.assertEqual(updated.title, "T1")
        self.assertEqual(updated.description, "describe")

    def test_update_cannot_move_task(self):
        task = self.service.create_task(OWNER, title="T1", project_id=self.project_id)
        other_project = ProjectService().create_project(OWNER, name="P2").id

        with self.assertRaises(ValidationError):
            self.service.update_task(OWNER, task.id, {"project_id": other_project})
        self.assertEqual(self.service.get_task(task.id).project_id, self.project_id)

    def test_update_rejects_clearing_status(self):
        task = self.service.create_task(OWNER, title="T1", project_id=self.project_id)

        with self.assertRaises(ValidationError):
            self.service.update_task(OWNER, task.id, {"status": None})

    def test_update_missing_task(self):
        with self.assertRaises(NotFoundError):
            self.service.update_task(OWNER, 999, {"title": "x"})
        with self.assertRaises(NotFoundError):
            self.service.update_task(OWNER, 999, {"project_id": 1})

    def test_delete_removes_comments_and_tag_links_but_keeps_tag(self):
        task = self.service.create_task(OWNER, title="T1", project_id=self.project_id)
        task_id = task.id
        comments = CommentService()
        comments.create_comment(OWNER, task_id=task_id, content="note")
        tags = TagService()
        tag_id = tags.create_tag(OWNER, name="urgent").id
        tags.add_tag_to_task(OWNER, task_id, tag_id)

        self.service.delete_task(OTHER, task_id)

        with self.assertRaises(NotFoundError):
            self.service.get_task(task_id)
        self.assertEqual(comments.list_comments().total, 0)
        self.assertEqual(tags.get_tag(tag_id).name, "urgent")
        self.assertEqual(self.service.list_tasks(tag_id=tag_id).total, 0)

    def test_delete_missing_task(self):
        with self.assertRaises(NotFoundError):
            self.service.delete_task(OWNER, 999)

    def test_get_task_with_tags_sorted_by_name(self):
        task_id = self.service.create_task(OWNER, title="T1", project_id=self.project_id).id
        tags = TagService()
        for name in ("zeta", "alpha"):
            tags.add_tag_to_task(OWNER, task_id, tags.create_tag(OWNER, name=name).id)

        task = self.service.get_task_with_tags(task_id)

        self.assertEqual([tag.name for tag in task.tags], ["alpha", "zeta"])
        self.assertEqual([tag["name"] for tag in task.to_dict(include_tags=True)["tags"]], ["alpha", "zeta"])


if __name__ == "__main__":
    unittest.main()

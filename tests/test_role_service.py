import logging
import unittest

from repositories.role_repository import RoleRepository
from services.authorization import Actor
from services.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from services.role_service import RoleService
from services.user_service import UserService
from tests.utils.db import DatabaseTestCase

ADMIN = Actor.of(1, ["ADMIN"])
MEMBER = Actor.of(2, ["MEMBER"])


class RoleServiceTestCase(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.service = RoleService()
        self.service.seed_default_roles()
        self.repository = RoleRepository()

    def _role_id(self, name):
        return self.repository.find_by_name(name).id

    def test_seed_is_idempotent(self):
        with self.assertLogs("services.role_service", level=logging.INFO) as logs:
            created = self.service.seed_default_roles()

        self.assertEqual(created, [])
        self.assertEqual([role.name for role in self.service.list_roles()], ["ADMIN", "MEMBER"])
        self.assertTrue(any("already exists" in line for line in logs.output))

    def test_create_and_get_with_user_count(self):
        role = self.service.create_role(ADMIN, name="PROJECT_LEAD", description="Leads projects")

        details = self.service.get_role(role.id)

        self.assertEqual(details.role.name, "PROJECT_LEAD")
        self.assertEqual(details.user_count, 0)
        self.assertEqual(details.to_dict()["user_count"], 0)

    def test_list_is_oldest_first(self):
        self.service.create_role(ADMIN, name="REVIEWER")

        self.assertEqual([role.name for role in self.service.list_roles()], ["ADMIN", "MEMBER", "REVIEWER"])

    def test_create_requires_admin_before_checking_duplicates(self):
        with self.assertRaises(ForbiddenError):
            self.service.create_role(MEMBER, name="ADMIN")

        with self.assertRaises(ConflictError) as ctx:
            self.service.create_role(ADMIN, name="ADMIN")
        self.assertEqual(ctx.exception.code, "ROLE_ALREADY_EXISTS")

    def test_create_validates_name(self):
        for name in ("lower", "9LIVES", "", "X" * 51):
            with self.assertRaises(ValidationError):
                self.service.create_role(ADMIN, name=name)

    def test_keeping_own_name_is_not_a_conflict(self):
        role = self.service.create_role(ADMIN, name="REVIEWER")

        updated = self.service.update_role(ADMIN, role.id, {"name": "REVIEWER", "description": "Reviews work"})

        self.assertEqual(updated.name, "REVIEWER")
        self.assertEqual(updated.description, "Reviews work")

    def test_rename_onto_existing_role_conflicts(self):
        role = self.service.create_role(ADMIN, name="REVIEWER")

        with self.assertRaises(ConflictError):
            self.service.update_role(ADMIN, role.id, {"name": "MEMBER"})

    def test_system_roles_cannot_be_renamed(self):
        with self.assertRaises(ForbiddenError) as ctx:
            self.service.update_role(ADMIN, self._role_id("ADMIN"), {"name": "SUPERUSER"})
        self.assertEqual(ctx.exception.code, "ROLE_SYSTEM_PROTECTED")

        updated = self.service.update_role(ADMIN, self._role_id("MEMBER"), {"description": "Everyone"})
        self.assertEqual(updated.description, "Everyone")

    def test_update_order_of_checks(self):
        with self.assertRaises(NotFoundError):
            self.service.update_role(MEMBER, 999, {"name": "MEMBER"})
        role = self.service.create_role(ADMIN, name="REVIEWER")
        with self.assertRaises(ForbiddenError):
            self.service.update_role(MEMBER, role.id, {"name": "MEMBER"})

    def test_system_roles_cannot_be_deleted(self):
        for name in ("ADMIN", "MEMBER"):
            with self.assertRaises(ForbiddenError) as ctx:
                self.service.delete_role(ADMIN, self._role_id(name))
            self.assertEqual(ctx.exception.code, "ROLE_SYSTEM_PROTECTED")

    def test_system_role_names_are_configurable(self):
        self.service.create_role(ADMIN, name="AUDITOR")
        service = RoleService(system_roles={"ADMIN", "AUDITOR"})

        with self.assertRaises(ForbiddenError):
            service.delete_role(ADMIN, self._role_id("AUDITOR"))
        self.assertTrue(service.is_system_role(self.repository.find_by_name("ADMIN")))
        self.assertFalse(service.is_system_role(self.repository.find_by_name("MEMBER")))

    def test_role_in_use_cannot_be_deleted(self):
        role_id = self.service.create_role(ADMIN, name="REVIEWER").id
        users = UserService()
        user = users.register_user(email="reviewer@example.com", password="password123", display_name="Rev")
        users.update_roles(ADMIN, user.id, [role_id])

        with self.assertRaises(ConflictError) as ctx:
            self.service.delete_role(ADMIN, role_id)
        self.assertEqual(ctx.exception.code, "ROLE_HAS_USERS")
        self.assertEqual(self.service.get_role(role_id).user_count, 1)

    def test_delete_unused_role(self):
        role_id = self.service.create_role(ADMIN, name="REVIEWER").id

        with self.assertRaises(ForbiddenError):
            self.service.delete_role(MEMBER, role_id)
        self.service.delete_role(ADMIN, role_id)

        with self.assertRaises(NotFoundError):
            self.service.get_role(role_id)


if __name__ == "__main__":
    unittest.main()

import unittest

from sqlalchemy import func, select

from models.role import user_roles
from models.user import UserProfile
from repositories.role_repository import RoleRepository
from services.authorization import Actor
from services.errors import ConflictError, ForbiddenError, InternalError, NotFoundError, ValidationError
from services.role_service import RoleService
from services.user_service import UserService
from tests.utils.db import DatabaseTestCase

ADMIN = Actor.of(1000, ["ADMIN"])


class UserServiceTestCase(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        RoleService().seed_default_roles()
        self.service = UserService()
        user = self.service.register_user(
            email="alice@example.com",
            password="password123",
            display_name="Alice",
        )
        self.user_id = user.id
        self.alice = Actor.of(self.user_id, user.role_names)
        self.bob_id = self.service.register_user(
            email="bob@example.com",
            password="password123",
            display_name="Bob",
        ).id
        self.bob = Actor.of(self.bob_id, ["MEMBER"])

    def test_registration_hashes_password_and_assigns_member(self):
        user = self.service.get_user(self.alice, self.user_id)

        self.assertEqual(user.email, "alice@example.com")
        self.assertTrue(user.is_active)
        self.assertEqual(user.role_names, frozenset({"MEMBER"}))
        self.assertEqual(user.profile.display_name, "Alice")
        self.assertNotEqual(user.password_hash, "password123")
        self.assertTrue(user.check_password("password123"))
        self.assertEqual(user.to_dict()["roles"][0]["name"], "MEMBER")

    def test_duplicate_email_conflicts(self):
        with self.assertRaises(ConflictError) as ctx:
            self.service.register_user(email="alice@example.com", password="password123", display_name="Again")
        self.assertEqual(ctx.exception.code, "USER_ALREADY_EXISTS")

    def test_registration_without_seeded_roles_fails_cleanly(self):
        service = UserService(default_role="MISSING")

        with self.assertRaises(InternalError):
            service.register_user(email="carol@example.com", password="password123", display_name="Carol")

    def test_users_see_themselves_and_admins_see_everyone(self):
        self.assertEqual(self.service.get_user(self.alice, self.user_id).id, self.user_id)
        self.assertEqual(self.service.get_user(ADMIN, self.user_id).id, self.user_id)
        with self.assertRaises(ForbiddenError):
            self.service.get_user(self.bob, self.user_id)
        with self.assertRaises(NotFoundError):
            self.service.get_user(self.bob, 999)

    def test_list_requires_admin_and_filters(self):
        with self.assertRaises(ForbiddenError):
            self.service.list_users(self.alice)

        everyone = self.service.list_users(ADMIN)
        self.assertEqual(everyone.total, 2)
        self.assertEqual([user.email for user in everyone.items], ["bob@example.com", "alice@example.com"])

        by_email = self.service.list_users(ADMIN, email="ALICE")
        self.assertEqual([user.id for user in by_email.items], [self.user_id])

        member_role = RoleRepository().find_by_name("MEMBER")
        self.assertEqual(self.service.list_users(ADMIN, role_id=member_role.id).total, 2)

        self.service.update_status(ADMIN, self.bob_id, is_active=False)
        self.assertEqual(self.service.list_users(ADMIN, is_active=False).total, 1)
        self.assertEqual(self.service.list_users(ADMIN, is_active=True).total, 1)

    def test_email_filter_treats_wildcards_literally(self):
        carol_id = self.service.register_user(
            email="c_rol@example.com",
            password="password123",
            display_name="Carol",
        ).id
        self.service.register_user(email="caroline@example.com", password="password123", display_name="Caro")

        page = self.service.list_users(ADMIN, email="c_rol")
        self.assertEqual([user.id for user in page.items], [carol_id])
        self.assertEqual(self.service.list_users(ADMIN, email="%").total, 0)

    def test_profile_update(self):
        profile = self.service.update_profile(self.alice, self.user_id, {"first_name": "Alice", "bio": "Hi"})
        self.assertEqual(profile.first_name, "Alice")
        self.assertEqual(profile.bio, "Hi")
        self.assertEqual(profile.display_name, "Alice")

        by_admin = self.service.update_profile(ADMIN, self.user_id, {"bio": None})
        self.assertIsNone(by_admin.bio)

        with self.assertRaises(ForbiddenError):
            self.service.update_profile(self.bob, self.user_id, {"bio": "hacked"})
        with self.assertRaises(ValidationError):
            self.service.update_profile(self.alice, self.user_id, {"email": "x@example.com"})

    def test_change_password(self):
        self.service.change_password(
            self.alice,
            self.user_id,
            current_password="password123",
            new_password="newpassword456",
        )

        user = self.service.get_user(self.alice, self.user_id)
        self.assertTrue(user.check_password("newpassword456"))
        self.assertFalse(user.check_password("password123"))

    def test_change_password_checks(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.change_password(
                self.alice,
                self.user_id,
                current_password="wrong",
                new_password="newpassword456",
            )
        self.assertEqual(ctx.exception.code, "INVALID_PASSWORD")

        with self.assertRaises(ForbiddenError):
            self.service.change_password(
                ADMIN,
                self.user_id,
                current_password="password123",
                new_password="newpassword456",
            )

    def test_update_roles(self):
        roles = RoleRepository()
        admin_role_id = roles.find_by_name("ADMIN").id
        member_role_id = roles.find_by_name("MEMBER").id

        with self.assertRaises(ForbiddenError):
            self.service.update_roles(self.alice, self.user_id, [admin_role_id])

        user = self.service.update_roles(ADMIN, self.user_id, [admin_role_id, member_role_id])
        self.assertEqual(user.role_names, frozenset({"ADMIN", "MEMBER"}))

        user = self.service.update_roles(ADMIN, self.user_id, [])
        self.assertEqual(user.role_names, frozenset())

    def test_update_roles_with_unknown_role(self):
        member_role_id = RoleRepository().find_by_name("MEMBER").id

        with self.assertRaises(NotFoundError) as ctx:
            self.service.update_roles(ADMIN, self.user_id, [member_role_id, 999])
        self.assertEqual(ctx.exception.kind, "role")
        self.assertEqual(ctx.exception.resource_id, 999)
        self.assertEqual(self.service.get_user(ADMIN, self.user_id).role_names, frozenset({"MEMBER"}))

    def test_update_status(self):
        with self.assertRaises(ForbiddenError):
            self.service.update_status(self.alice, self.bob_id, is_active=False)

        user = self.service.update_status(ADMIN, self.bob_id, is_active=False)
        self.assertFalse(user.is_active)

    def test_delete_user_removes_profile_and_role_links(self):
        with self.assertRaises(ForbiddenError):
            self.service.delete_user(self.alice, self.bob_id)
        with self.assertRaises(NotFoundError):
            self.service.delete_user(ADMIN, 999)

        self.service.delete_user(ADMIN, self.bob_id)

        with self.assertRaises(NotFoundError):
            self.service.get_user(ADMIN, self.bob_id)
        session = self.db.session
        self.assertEqual(
            session.scalar(select(func.count()).select_from(user_roles).where(user_roles.c.user_id == self.bob_id)),
            0,
        )
        self.assertEqual(
            session.scalar(select(func.count()).select_from(UserProfile).where(UserProfile.user_id == self.bob_id)),
            0,
        )
        self.assertEqual(self.service.list_users(ADMIN).total, 1)


if __name__ == "__main__":
    unittest.main()

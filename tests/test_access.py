"""Tests for project-scoped access: the pure decision and the storage-backed check."""

import unittest
from types import SimpleNamespace

from formula_access.core.access import AccessReason, ProjectRef, can_access_project
from formula_access.core.errors import AuthorizationError, NotFoundError
from formula_access.models import ProjectTeamMember
from formula_access.services.projects import check_project_access, get_project_ref
from tests.helpers import make_project, make_session_factory, make_user


def _actor(user_id: str, role: str) -> SimpleNamespace:
    return SimpleNamespace(id=user_id, role=role)


PROJECT = ProjectRef(
    id="p1",
    project_manager_id="m",
    client_id="c",
    team_member_ids=frozenset({"t1", "t2"}),
)


class TestCanAccessProject(unittest.TestCase):
    """Access matrix for a project with manager m, team {t1, t2} and client c."""

    def test_admin_allowed(self) -> None:
        decision = can_access_project(_actor("someone", "admin"), PROJECT)
        self.assertTrue(decision.allowed)
        self.assertIs(decision.reason, AccessReason.ADMIN)

    def test_manager_allowed(self) -> None:
        decision = can_access_project(_actor("m", "project_manager"), PROJECT)
        self.assertIs(decision.reason, AccessReason.PROJECT_MANAGER)

    def test_team_member_allowed_regardless_of_role(self) -> None:
        self.assertIs(
            can_access_project(_actor("t1", "craftsman"), PROJECT).reason,
            AccessReason.TEAM_MEMBER,
        )
        self.assertTrue(can_access_project(_actor("t2", "client"), PROJECT).allowed)

    def test_client_owner_allowed(self) -> None:
        decision = can_access_project(_actor("c", "client"), PROJECT)
        self.assertIs(decision.reason, AccessReason.CLIENT_OWNER)

    def test_client_id_match_requires_client_role(self) -> None:
        self.assertFalse(can_access_project(_actor("c", "designer"), PROJECT).allowed)

    def test_random_craftsman_denied(self) -> None:
        decision = can_access_project(_actor("x", "craftsman"), PROJECT)
        self.assertFalse(decision.allowed)
        self.assertIs(decision.reason, AccessReason.DENIED)

    def test_unassigned_project_denies_non_admins(self) -> None:
        empty = ProjectRef(id="p2")
        self.assertFalse(can_access_project(_actor("x", "project_manager"), empty).allowed)
        self.assertTrue(can_access_project(_actor("x", "admin"), empty).allowed)


class TestCheckProjectAccess(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.manager = make_user(self.db, "pm@example.com", role="project_manager")
        self.member = make_user(self.db, "member@example.com", role="craftsman")
        self.outsider = make_user(self.db, "outsider@example.com", role="craftsman")
        self.admin = make_user(self.db, "admin@example.com", role="admin")
        self.project = make_project(
            self.db, manager_id=self.manager.id, team_ids=(self.member.id,)
        )

    def tearDown(self) -> None:
        self.db.close()

    def test_project_ref_reads_team(self) -> None:
        ref = get_project_ref(self.db, self.project.id)
        self.assertEqual(ref.project_manager_id, self.manager.id)
        self.assertEqual(ref.team_member_ids, frozenset({self.member.id}))

    def test_missing_project_is_not_found_even_for_admin(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            check_project_access(self.db, self.admin, "does-not-exist")
        self.assertEqual(ctx.exception.code, "PROJECT_NOT_FOUND")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_outsider_denied(self) -> None:
        with self.assertRaises(AuthorizationError) as ctx:
            check_project_access(self.db, self.outsider, self.project.id)
        self.assertEqual(ctx.exception.code, "PROJECT_ACCESS_DENIED")

    def test_team_change_applies_on_next_check(self) -> None:
        with self.assertRaises(AuthorizationError):
            check_project_access(self.db, self.outsider, self.project.id)

        self.db.add(ProjectTeamMember(project_id=self.project.id, user_id=self.outsider.id))
        self.db.commit()
        decision = check_project_access(self.db, self.outsider, self.project.id)
        self.assertIs(decision.reason, AccessReason.TEAM_MEMBER)

        self.db.query(ProjectTeamMember).filter(
            ProjectTeamMember.user_id == self.member.id
        ).delete()
        self.db.commit()
        with self.assertRaises(AuthorizationError):
            check_project_access(self.db, self.member, self.project.id)


if __name__ == "__main__":
    unittest.main()

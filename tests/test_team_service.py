"""Tests for TeamService."""

from __future__ import annotations

import unittest

from teambuilder.errors import (
    ForbiddenError,
    NotFoundError,
    PreconditionError,
    UnauthorizedError,
    ValidationError,
)
from teambuilder.teams.models import team_fields, update_team_writes
from teambuilder.teams.services import TeamService
from tests.conftest import make_db, seed_team, seed_user


class TestTeamService(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_db()
        seed_user(self.db, "alice", fullName="Alice")
        seed_user(self.db, "bob", fullName="Bob")

    def _user(self, user_id: str) -> dict:
        return self.db.collection("users").document(user_id).get().to_dict()

    def _team(self, team_id: str):
        snapshot = self.db.collection("teams").document(team_id).get()
        return snapshot.to_dict() if snapshot.exists else None

    def test_create_team_makes_caller_leader_and_member(self) -> None:
        fields = team_fields("Rocket", "A rocket", True, "Need Go devs", ["Go"])
        team_id = TeamService.create_team(self.db, "alice", fields)

        team = self._team(team_id)
        self.assertEqual(team["leaderId"], "alice")
        self.assertEqual(team["members"], {"alice": True})
        self.assertTrue(team["isRecruiting"])
        self.assertEqual(
            team["appeal"], {"description": "Need Go devs", "requiredSkills": ["Go"]}
        )
        self.assertEqual(self._user("alice")["teamId"], team_id)

    def test_create_team_registers_new_skills(self) -> None:
        fields = team_fields("Rocket", "A rocket", True, "Need Go devs", ["Go"])
        TeamService.create_team(self.db, "alice", fields)
        names = [d.to_dict()["name"] for d in self.db.collection("skills").stream()]
        self.assertEqual(names, ["Go"])

    def test_create_team_discards_callers_pending_items(self) -> None:
        seed_team(self.db, "comet", "bob")
        self.db.collection("requests").document("r1").set(
            {"userId": "alice", "teamId": "comet"}
        )
        self.db.collection("invitations").document("i1").set(
            {"userId": "alice", "teamId": "comet"}
        )

        TeamService.create_team(
            self.db, "alice", team_fields("Rocket", "A rocket", False)
        )

        self.assertFalse(self.db.collection("requests").document("r1").get().exists)
        self.assertFalse(self.db.collection("invitations").document("i1").get().exists)

    def test_create_team_rejects_user_on_a_team(self) -> None:
        seed_team(self.db, "comet", "bob", members=["alice"])
        with self.assertRaises(PreconditionError):
            TeamService.create_team(
                self.db, "alice", team_fields("Rocket", "A rocket", False)
            )

    def test_create_team_requires_authentication(self) -> None:
        with self.assertRaises(UnauthorizedError):
            TeamService.create_team(
                self.db, None, team_fields("Rocket", "A rocket", False)
            )

    def test_recruiting_team_needs_appeal(self) -> None:
        with self.assertRaises(ValidationError):
            team_fields("Rocket", "A rocket", True, "", ["Go"])
        self.assertIsNone(team_fields("Rocket", "A rocket", False, "ignored")["appeal"])

    def test_update_team_by_leader(self) -> None:
        seed_team(self.db, "rocket", "alice", isRecruiting=True,
                  appeal={"description": "x", "requiredSkills": []})
        TeamService.update_team(
            self.db, "rocket", "alice", team_fields("Rocket II", "Faster", False)
        )
        team = self._team("rocket")
        self.assertEqual(team["name"], "Rocket II")
        self.assertFalse(team["isRecruiting"])
        self.assertNotIn("appeal", team)

    def test_update_team_without_appeal_on_either_side(self) -> None:
        seed_team(self.db, "rocket", "alice")
        TeamService.update_team(
            self.db, "rocket", "alice", team_fields("Rocket II", "Faster", False)
        )
        team = self._team("rocket")
        self.assertEqual(team["projectIdea"], "Faster")
        self.assertNotIn("appeal", team)

    def test_update_team_rejects_non_leader(self) -> None:
        seed_team(self.db, "rocket", "alice", members=["bob"])
        with self.assertRaises(ForbiddenError):
            TeamService.update_team(
                self.db, "rocket", "bob", team_fields("Mine", "Now", False)
            )
        self.assertEqual(self._team("rocket")["name"], "Rocket")

    def test_disband_clears_members_and_pending_items(self) -> None:
        seed_user(self.db, "carol")
        seed_team(self.db, "rocket", "alice", members=["bob"])
        self.db.collection("requests").document("r1").set(
            {"userId": "carol", "teamId": "rocket"}
        )
        self.db.collection("invitations").document("i1").set(
            {"userId": "carol", "teamId": "rocket"}
        )

        former = TeamService.delete_team(self.db, "rocket", "alice")

        self.assertCountEqual(former, ["alice", "bob"])
        self.assertIsNone(self._team("rocket"))
        self.assertIsNone(self._user("alice").get("teamId"))
        self.assertIsNone(self._user("bob").get("teamId"))
        self.assertFalse(self.db.collection("requests").document("r1").get().exists)
        self.assertFalse(self.db.collection("invitations").document("i1").get().exists)

    def test_disband_rejects_non_leader_and_missing_team(self) -> None:
        seed_team(self.db, "rocket", "alice", members=["bob"])
        with self.assertRaises(ForbiddenError):
            TeamService.delete_team(self.db, "rocket", "bob")
        with self.assertRaises(NotFoundError):
            TeamService.delete_team(self.db, "missing", "alice")
        self.assertIsNotNone(self._team("rocket"))

    def test_disband_leaves_members_who_moved_on(self) -> None:
        seed_user(self.db, "carol")
        seed_team(self.db, "rocket", "alice", members=["bob"])
        seed_team(self.db, "comet", "carol", members=["bob"])

        former = TeamService.delete_team(self.db, "rocket", "alice")

        self.assertCountEqual(former, ["alice", "bob"])
        self.assertEqual(self._user("bob")["teamId"], "comet")
        self.assertIsNone(self._user("alice").get("teamId"))

    def test_remove_member(self) -> None:
        seed_team(self.db, "rocket", "alice", members=["bob"])
        TeamService.remove_member(self.db, "rocket", "alice", "bob")
        self.assertEqual(self._team("rocket")["members"], {"alice": True})
        self.assertIsNone(self._user("bob").get("teamId"))

    def test_leader_cannot_be_removed(self) -> None:
        seed_team(self.db, "rocket", "alice", members=["bob"])
        with self.assertRaises(ForbiddenError):
            TeamService.remove_member(self.db, "rocket", "alice", "alice")
        with self.assertRaises(ForbiddenError):
            TeamService.remove_member(self.db, "rocket", "bob", "alice")

    def test_remove_non_member(self) -> None:
        seed_team(self.db, "rocket", "alice")
        with self.assertRaises(PreconditionError):
            TeamService.remove_member(self.db, "rocket", "alice", "bob")

    def test_list_teams_filters_recruiting(self) -> None:
        seed_team(self.db, "rocket", "alice", isRecruiting=True,
                  appeal={"description": "x", "requiredSkills": []})
        seed_team(self.db, "comet", "bob")
        self.assertEqual(
            [t["id"] for t in TeamService.list_teams(self.db)], ["comet", "rocket"]
        )
        self.assertEqual(
            [t["id"] for t in TeamService.list_teams(self.db, recruiting_only=True)],
            ["rocket"],
        )

    def test_dashboard_data_lists_leader_first(self) -> None:
        seed_team(self.db, "rocket", "bob", members=["alice"])
        self.db.collection("requests").document("r1").set(
            {"userId": "carol", "teamId": "rocket"}
        )

        data = TeamService.get_team_dashboard_data(self.db, "rocket", "bob")
        self.assertTrue(data["isLeader"])
        self.assertEqual([m["id"] for m in data["members"]], ["bob", "alice"])
        self.assertEqual([r["id"] for r in data["requests"]], ["r1"])

        data = TeamService.get_team_dashboard_data(self.db, "rocket", "alice")
        self.assertFalse(data["isLeader"])
        self.assertNotIn("requests", data)


class TestUpdateTeamWrites(unittest.TestCase):
    def test_absent_appeal_is_not_deleted_again(self) -> None:
        fields = team_fields("Rocket", "Idea", False)
        paths = [w.path for w in update_team_writes("t1", fields, {"name": "Old"})]
        self.assertEqual(
            paths, ["teams/t1/name", "teams/t1/projectIdea", "teams/t1/isRecruiting"]
        )

    def test_existing_appeal_is_deleted(self) -> None:
        fields = team_fields("Rocket", "Idea", False)
        writes = update_team_writes("t1", fields, {"appeal": {"description": "x"}})
        self.assertIn(("teams/t1/appeal", None), [(w.path, w.value) for w in writes])


if __name__ == "__main__":
    unittest.main()

"""Tests for join requests and invitations."""

from __future__ import annotations

import unittest

from teambuilder.errors import (
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
    PreconditionError,
)
from teambuilder.teams.membership import MembershipService
from teambuilder.teams.models import team_fields
from teambuilder.teams.services import TeamService
from tests.conftest import make_db, seed_team, seed_user


class TestMembershipService(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_db()
        for user_id in ("alice", "bob", "carol", "dave"):
            seed_user(self.db, user_id)

    def _user(self, user_id: str) -> dict:
        return self.db.collection("users").document(user_id).get().to_dict()

    def _team(self, team_id: str) -> dict:
        return self.db.collection("teams").document(team_id).get().to_dict()

    def _exists(self, collection: str, doc_id: str) -> bool:
        return self.db.collection(collection).document(doc_id).get().exists

    def test_rocket_join_request_accepted(self) -> None:
        rocket = TeamService.create_team(
            self.db, "alice", team_fields("Rocket", "A rocket", True, "Need Go", ["Go"])
        )
        request_id = MembershipService.request_to_join(self.db, "bob", rocket)

        outcome = MembershipService.handle_join_request(
            self.db, request_id, "alice", accept=True
        )

        self.assertTrue(outcome.joined)
        self.assertEqual(outcome.to_dict()["status"], "joined")
        self.assertEqual(self._user("bob")["teamId"], rocket)
        self.assertIn("bob", self._team(rocket)["members"])
        self.assertFalse(self._exists("requests", request_id))

    def test_accepting_discards_other_pending_items(self) -> None:
        seed_team(self.db, "rocket", "alice")
        seed_team(self.db, "comet", "carol")
        keep = MembershipService.request_to_join(self.db, "bob", "rocket")
        other = MembershipService.request_to_join(self.db, "bob", "comet")
        invitation = MembershipService.invite_to_team(self.db, "carol", "bob", "comet")

        MembershipService.handle_join_request(self.db, keep, "alice", accept=True)

        self.assertFalse(self._exists("requests", other))
        self.assertFalse(self._exists("invitations", invitation))

    def test_declined_request_is_removed_without_membership(self) -> None:
        seed_team(self.db, "rocket", "alice")
        request_id = MembershipService.request_to_join(self.db, "bob", "rocket")

        outcome = MembershipService.handle_join_request(
            self.db, request_id, "alice", accept=False
        )

        self.assertEqual(outcome.to_dict()["status"], "declined")
        self.assertFalse(self._exists("requests", request_id))
        self.assertNotIn("bob", self._team("rocket")["members"])
        self.assertIsNone(self._user("bob")["teamId"])

    def test_accepting_request_for_user_already_on_team(self) -> None:
        seed_team(self.db, "rocket", "alice")
        request_id = MembershipService.request_to_join(self.db, "bob", "rocket")
        seed_team(self.db, "comet", "carol", members=["bob"])

        with self.assertLogs("teambuilder.teams.membership", level="WARNING"):
            outcome = MembershipService.handle_join_request(
                self.db, request_id, "alice", accept=True
            )

        self.assertTrue(outcome.skipped)
        self.assertEqual(outcome.reason, "already_on_team")
        self.assertFalse(self._exists("requests", request_id))
        self.assertEqual(self._user("bob")["teamId"], "comet")
        self.assertNotIn("bob", self._team("rocket")["members"])

    def test_only_leader_handles_requests(self) -> None:
        seed_team(self.db, "rocket", "alice", members=["carol"])
        request_id = MembershipService.request_to_join(self.db, "bob", "rocket")
        with self.assertRaises(ForbiddenError):
            MembershipService.handle_join_request(self.db, request_id, "carol", True)
        self.assertTrue(self._exists("requests", request_id))

    def test_missing_request(self) -> None:
        with self.assertRaises(NotFoundError):
            MembershipService.handle_join_request(self.db, "nope", "alice", True)

    def test_request_rejected_for_user_on_a_team(self) -> None:
        seed_team(self.db, "rocket", "alice")
        seed_team(self.db, "comet", "carol", members=["bob"])
        with self.assertRaises(PreconditionError):
            MembershipService.request_to_join(self.db, "bob", "rocket")

    def test_duplicate_request(self) -> None:
        seed_team(self.db, "rocket", "alice")
        MembershipService.request_to_join(self.db, "bob", "rocket")
        with self.assertRaises(DuplicateResourceError):
            MembershipService.request_to_join(self.db, "bob", "rocket")

    def test_request_for_missing_team(self) -> None:
        with self.assertRaises(NotFoundError):
            MembershipService.request_to_join(self.db, "bob", "ghost")

    def test_comet_stale_invitation(self) -> None:
        seed_team(self.db, "rocket", "alice")
        invitation = MembershipService.invite_to_team(self.db, "alice", "carol", "rocket")
        seed_team(self.db, "comet", "dave", members=["carol"])

        outcome = MembershipService.handle_invitation(
            self.db, invitation, "carol", accept=True
        )

        self.assertEqual(outcome.to_dict()["status"], "skipped")
        self.assertFalse(self._exists("invitations", invitation))
        self.assertEqual(self._user("carol")["teamId"], "comet")
        self.assertNotIn("carol", self._team("rocket")["members"])

    def test_accept_invitation(self) -> None:
        seed_team(self.db, "rocket", "alice")
        invitation = MembershipService.invite_to_team(self.db, "alice", "carol", "rocket")

        outcome = MembershipService.handle_invitation(
            self.db, invitation, "carol", accept=True
        )

        self.assertTrue(outcome.joined)
        self.assertEqual(self._user("carol")["teamId"], "rocket")
        self.assertIn("carol", self._team("rocket")["members"])
        self.assertFalse(self._exists("invitations", invitation))

    def test_invitation_for_disbanded_team(self) -> None:
        seed_team(self.db, "rocket", "alice")
        invitation = MembershipService.invite_to_team(self.db, "alice", "carol", "rocket")
        self.db.collection("teams").document("rocket").delete()

        outcome = MembershipService.handle_invitation(
            self.db, invitation, "carol", accept=True
        )

        self.assertEqual(outcome.reason, "team_missing")
        self.assertIsNone(self._user("carol")["teamId"])

    def test_request_for_disbanded_team_is_consumed(self) -> None:
        seed_team(self.db, "rocket", "alice")
        request_id = MembershipService.request_to_join(self.db, "bob", "rocket")
        self.db.collection("teams").document("rocket").delete()

        with self.assertLogs("teambuilder.teams.membership", level="WARNING"):
            outcome = MembershipService.handle_join_request(
                self.db, request_id, "alice", accept=True
            )

        self.assertEqual(outcome.to_dict()["status"], "skipped")
        self.assertEqual(outcome.reason, "team_missing")
        self.assertFalse(self._exists("requests", request_id))
        self.assertIsNone(self._user("bob")["teamId"])

    def test_only_invitee_handles_invitation(self) -> None:
        seed_team(self.db, "rocket", "alice")
        invitation = MembershipService.invite_to_team(self.db, "alice", "carol", "rocket")
        with self.assertRaises(ForbiddenError):
            MembershipService.handle_invitation(self.db, invitation, "bob", True)

    def test_invite_checks(self) -> None:
        seed_team(self.db, "rocket", "alice", members=["bob"])
        with self.assertRaises(ForbiddenError):
            MembershipService.invite_to_team(self.db, "bob", "carol", "rocket")
        with self.assertRaises(PreconditionError):
            MembershipService.invite_to_team(self.db, "alice", "bob", "rocket")
        with self.assertRaises(NotFoundError):
            MembershipService.invite_to_team(self.db, "alice", "zed", "rocket")
        MembershipService.invite_to_team(self.db, "alice", "carol", "rocket")
        with self.assertRaises(DuplicateResourceError):
            MembershipService.invite_to_team(self.db, "alice", "carol", "rocket")

    def test_listings(self) -> None:
        seed_team(self.db, "rocket", "alice")
        MembershipService.request_to_join(self.db, "bob", "rocket")
        MembershipService.invite_to_team(self.db, "alice", "carol", "rocket")

        requests = MembershipService.list_team_requests(self.db, "rocket", "alice")
        self.assertEqual([r["user"]["id"] for r in requests], ["bob"])
        with self.assertRaises(ForbiddenError):
            MembershipService.list_team_requests(self.db, "rocket", "bob")

        invitations = MembershipService.list_user_invitations(self.db, "carol")
        self.assertEqual(invitations[0]["team"]["name"], "Rocket")
        self.assertEqual(
            len(MembershipService.list_team_invitations(self.db, "rocket", "alice")), 1
        )
        self.assertEqual(
            [r["teamId"] for r in MembershipService.list_user_requests(self.db, "bob")],
            ["rocket"],
        )


if __name__ == "__main__":
    unittest.main()

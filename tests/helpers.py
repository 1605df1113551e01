"""Shared setup for blueprint tests backed by MockFirestore."""

import unittest
from unittest.mock import MagicMock, patch

from teambuilder import create_app
from tests.conftest import make_db

ROUTE_MODULES = (
    "teambuilder",
    "teambuilder.user.routes",
    "teambuilder.teams.routes",
    "teambuilder.chat.routes",
    "teambuilder.skills.routes",
    "teambuilder.sync",
)


class RouteTestCase(unittest.TestCase):
    """Runs the app against an in-memory Firestore."""

    def setUp(self):
        self.db = make_db()
        self.mock_firestore_service = MagicMock()
        self.mock_firestore_service.client.return_value = self.db

        patchers = [patch("firebase_admin.initialize_app")] + [
            patch(f"{module}.firestore", new=self.mock_firestore_service)
            for module in ROUTE_MODULES
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)

        self.app = create_app({"TESTING": True, "WTF_CSRF_ENABLED": False})
        self.client = self.app.test_client()

    def login(self, user_id, verified=True, email=None):
        with self.client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["email_verified"] = verified
            sess["email"] = email or f"{user_id}@example.com"

"""Tests for the app factory."""

import os
import unittest
from unittest.mock import MagicMock, patch

# Pre-emptive imports to ensure patch targets exist.
from conquest import create_app
from conquest.activity import ACTIVITY_EXTENSION_KEY
from conquest.storage.store import (
    STORE_EXTENSION_KEY,
    FirestoreDocumentStore,
    MemoryDocumentStore,
)


class AppFactoryTestCase(unittest.TestCase):
    """Test case for the app factory."""

    def test_testing_defaults(self):
        """Testing apps use the memory store and send no email."""
        app = create_app({"TESTING": True})
        self.assertEqual(app.config["STORE_BACKEND"], "memory")
        self.assertFalse(app.config["NOTIFY_CAPTAINS"])
        self.assertIsInstance(app.extensions[STORE_EXTENSION_KEY], MemoryDocumentStore)
        self.assertIsNone(app.extensions[ACTIVITY_EXTENSION_KEY].db)

    def test_mail_config_from_environment(self):
        """Mail settings are read from the environment."""
        env_vars = {
            "MAIL_SERVER": "smtp.example.com",
            "MAIL_PORT": "465",
            "MAIL_USE_TLS": "false",
            "MAIL_USE_SSL": "true",
        }
        with patch.dict(os.environ, env_vars):
            app = create_app({"TESTING": True})
        self.assertEqual(app.config["MAIL_SERVER"], "smtp.example.com")
        self.assertEqual(app.config["MAIL_PORT"], 465)
        self.assertFalse(app.config["MAIL_USE_TLS"])
        self.assertTrue(app.config["MAIL_USE_SSL"])

    @patch("conquest.storage.store.firestore")
    @patch("conquest.firestore")
    @patch("conquest._init_firebase")
    def test_firestore_backend(self, mock_init, mock_firestore, mock_store_firestore):
        """The firestore backend initializes Firebase and shares the client."""
        client = MagicMock()
        mock_firestore.client.return_value = client
        mock_store_firestore.client.return_value = client

        app = create_app({"TESTING": True, "STORE_BACKEND": "firestore"})

        mock_init.assert_called_once_with(app)
        store = app.extensions[STORE_EXTENSION_KEY]
        self.assertIsInstance(store, FirestoreDocumentStore)
        self.assertIs(store.db, client)
        self.assertIs(app.extensions[ACTIVITY_EXTENSION_KEY].db, client)

    def test_unknown_backend(self):
        """An unknown backend is a configuration error."""
        with self.assertRaises(ValueError):
            create_app({"TESTING": True, "STORE_BACKEND": "postgres"})

    def test_404_error_handler(self):
        """Unknown routes return a JSON 404."""
        app = create_app({"TESTING": True})
        with app.test_client() as client:
            response = client.get("/non_existent_page")
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.get_json(), {"error": "Not found."})

    def test_405_error_handler(self):
        """Unsupported methods return JSON."""
        app = create_app({"TESTING": True})
        with app.test_client() as client:
            response = client.patch("/api/leaderboard")
            self.assertEqual(response.status_code, 405)
            self.assertEqual(response.get_json(), {"error": "Method not allowed."})


class RequestContextTestCase(unittest.TestCase):
    """Test case for per-request setup."""

    def setUp(self):
        """Set up the test client."""
        self.app = create_app({"TESTING": True})

        @self.app.route("/whoami")
        def whoami():
            from flask import g, request

            return {"actor": g.actor, "scheme": request.scheme}

        self.client = self.app.test_client()

    def test_actor_header(self):
        """The caller named in the header is available as g.actor."""
        response = self.client.get("/whoami", headers={"X-Conquest-User": "Director"})
        self.assertEqual(response.get_json()["actor"], "Director")
        self.assertIsNone(self.client.get("/whoami").get_json()["actor"])

    def test_https_scheme_with_proxy_headers(self):
        """Test that X-Forwarded-Proto header is respected."""
        response = self.client.get("/whoami", headers={"X-Forwarded-Proto": "https"})
        self.assertEqual(response.get_json()["scheme"], "https")


if __name__ == "__main__":
    unittest.main()

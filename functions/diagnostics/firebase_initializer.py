"""
functions/diagnostics/firebase_initializer.py

Default initializer for the diagnostics probe: returns the live default
Firebase Admin app if one exists, otherwise builds one from a ConfigSnapshot.

It is idempotent per process (firebase_admin keeps the app registry), and
is the only place in the project that touches the Admin SDK.
"""

from __future__ import annotations

from typing import Any, Dict

import firebase_admin
import structlog
from firebase_admin import credentials

from functions.diagnostics.config_snapshot import ConfigSnapshot
from functions.diagnostics.errors import InitializationFailure, MissingConfiguration
from functions.diagnostics.private_key import resolve_private_key

logger = structlog.get_logger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"


class FirebaseAppInitializer:
    def __init__(self, config: ConfigSnapshot):
        self.config = config

    def __call__(self) -> firebase_admin.App:
        try:
            return firebase_admin.get_app()
        except ValueError:
            pass  # no default app yet

        project_id = self.config.project_id
        client_email = self.config.client_email
        if not project_id or not client_email:
            missing = [
                label
                for label, value in (("Project ID", project_id), ("Client Email", client_email))
                if not value
            ]
            raise MissingConfiguration(f"Missing required Firebase config: {', '.join(missing)}")

        private_key = resolve_private_key(self.config)

        service_account: Dict[str, Any] = {
            "type": "service_account",
            "project_id": project_id,
            "client_email": client_email,
            "private_key": private_key,
            "token_uri": TOKEN_URI,
        }
        options: Dict[str, Any] = {}
        if self.config.storage_bucket:
            options["storageBucket"] = self.config.storage_bucket

        try:
            cert = credentials.Certificate(service_account)
            app = firebase_admin.initialize_app(cert, options or None)
        except ValueError as exc:
            raise InitializationFailure(str(exc)) from exc

        logger.info(
            "firebase_app_initialized",
            app_name=app.name,
            project_id=project_id,
            storage_bucket=self.config.storage_bucket or "not specified",
        )
        return app

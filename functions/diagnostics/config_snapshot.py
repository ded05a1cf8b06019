"""
functions/diagnostics/config_snapshot.py

WHAT THIS FILE IS FOR
---------------------
This module defines the immutable configuration snapshot consumed by the
credential diagnostics engine.

The engine never reads `os.environ` directly. Instead the HTTP layer takes a
snapshot of the known Firebase variables once per request and passes it in.
This keeps every check deterministic and testable with plain dicts.

PRESENCE SEMANTICS
------------------
A variable is either:
- set      -> a string value (an empty string still counts as set)
- not set  -> None

These two states are never conflated.

VARIABLE NAMES & PRECEDENCE
---------------------------
    project id     : NEXT_PUBLIC_FIREBASE_PROJECT_ID, FIREBASE_PROJECT_ID
    client email   : FIREBASE_CLIENT_EMAIL
    private key    : FIREBASE_PRIVATE_KEY (direct PEM), FIREBASE_PRIVATE_KEY_BASE64
    storage bucket : NEXT_PUBLIC_FIREBASE_STORAGE_BUCKET, FIREBASE_STORAGE_BUCKET

Where two names are accepted, the first one listed wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Tuple

PROJECT_ID_VARS: Tuple[str, ...] = ("NEXT_PUBLIC_FIREBASE_PROJECT_ID", "FIREBASE_PROJECT_ID")
CLIENT_EMAIL_VAR = "FIREBASE_CLIENT_EMAIL"
PRIVATE_KEY_VAR = "FIREBASE_PRIVATE_KEY"
PRIVATE_KEY_BASE64_VAR = "FIREBASE_PRIVATE_KEY_BASE64"
STORAGE_BUCKET_VARS: Tuple[str, ...] = (
    "NEXT_PUBLIC_FIREBASE_STORAGE_BUCKET",
    "FIREBASE_STORAGE_BUCKET",
)

# Reported as found/missing by the environment check (informational only).
REQUIRED_VARIABLES: Tuple[str, ...] = (
    PROJECT_ID_VARS[0],
    PROJECT_ID_VARS[1],
    CLIENT_EMAIL_VAR,
    PRIVATE_KEY_VAR,
    PRIVATE_KEY_BASE64_VAR,
    STORAGE_BUCKET_VARS[0],
    STORAGE_BUCKET_VARS[1],
)


@dataclass(frozen=True)
class ConfigVariable:
    name: str
    value: Optional[str] = None

    @property
    def present(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class ConfigSnapshot:
    """Immutable view over the Firebase credential variables for one run."""

    variables: Tuple[ConfigVariable, ...] = ()

    @classmethod
    def from_mapping(cls, source: Mapping[str, Optional[str]]) -> "ConfigSnapshot":
        """
        Copy the known Firebase variables out of `source` (usually os.environ).

        Names absent from `source` (or mapped to None) are recorded as not set.
        """
        return cls(
            variables=tuple(
                ConfigVariable(name=name, value=source.get(name)) for name in REQUIRED_VARIABLES
            )
        )

    def variable(self, name: str) -> ConfigVariable:
        for var in self.variables:
            if var.name == name:
                return var
        return ConfigVariable(name=name)

    def get(self, name: str) -> Optional[str]:
        return self.variable(name).value

    def is_set(self, name: str) -> bool:
        return self.variable(name).present

    def first_set(self, names: Sequence[str]) -> Optional[str]:
        for name in names:
            value = self.get(name)
            if value is not None:
                return value
        return None

    # ------------------------------------------------------------------ #
    # Resolved values
    # ------------------------------------------------------------------ #
    @property
    def project_id(self) -> Optional[str]:
        return self.first_set(PROJECT_ID_VARS)

    @property
    def client_email(self) -> Optional[str]:
        return self.get(CLIENT_EMAIL_VAR)

    @property
    def private_key(self) -> Optional[str]:
        return self.get(PRIVATE_KEY_VAR)

    @property
    def private_key_base64(self) -> Optional[str]:
        return self.get(PRIVATE_KEY_BASE64_VAR)

    @property
    def storage_bucket(self) -> Optional[str]:
        return self.first_set(STORAGE_BUCKET_VARS)

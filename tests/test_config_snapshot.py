# tests/test_config_snapshot.py
from __future__ import annotations

import pytest

from functions.diagnostics.config_snapshot import REQUIRED_VARIABLES, ConfigSnapshot


def test_required_variables_are_the_seven_known_names_in_order() -> None:
    assert REQUIRED_VARIABLES == (
        "NEXT_PUBLIC_FIREBASE_PROJECT_ID",
        "FIREBASE_PROJECT_ID",
        "FIREBASE_CLIENT_EMAIL",
        "FIREBASE_PRIVATE_KEY",
        "FIREBASE_PRIVATE_KEY_BASE64",
        "NEXT_PUBLIC_FIREBASE_STORAGE_BUCKET",
        "FIREBASE_STORAGE_BUCKET",
    )


def test_empty_string_is_set_but_missing_key_is_not() -> None:
    snap = ConfigSnapshot.from_mapping({"FIREBASE_CLIENT_EMAIL": ""})

    assert snap.is_set("FIREBASE_CLIENT_EMAIL")
    assert snap.client_email == ""
    assert not snap.is_set("FIREBASE_PROJECT_ID")
    assert snap.get("FIREBASE_PROJECT_ID") is None


def test_project_id_prefers_first_listed_name() -> None:
    snap = ConfigSnapshot.from_mapping(
        {"NEXT_PUBLIC_FIREBASE_PROJECT_ID": "public-id", "FIREBASE_PROJECT_ID": "server-id"}
    )
    assert snap.project_id == "public-id"

    only_server = ConfigSnapshot.from_mapping({"FIREBASE_PROJECT_ID": "server-id"})
    assert only_server.project_id == "server-id"


def test_storage_bucket_falls_back_to_second_name() -> None:
    snap = ConfigSnapshot.from_mapping({"FIREBASE_STORAGE_BUCKET": "bucket.appspot.com"})
    assert snap.storage_bucket == "bucket.appspot.com"


def test_snapshot_ignores_unrelated_variables_and_is_immutable() -> None:
    source = {"FIREBASE_CLIENT_EMAIL": "svc@example.iam.gserviceaccount.com", "PATH": "/usr/bin"}
    snap = ConfigSnapshot.from_mapping(source)

    # later changes to the source do not leak into the snapshot
    source["FIREBASE_CLIENT_EMAIL"] = "changed@example.com"
    assert snap.client_email == "svc@example.iam.gserviceaccount.com"
    assert snap.get("PATH") is None

    with pytest.raises(AttributeError):
        snap.variables = ()  # type: ignore[misc]


def test_snapshot_holds_exactly_the_known_variables_in_order() -> None:
    snap = ConfigSnapshot.from_mapping({"FIREBASE_PROJECT_ID": "meal-app", "HOME": "/root"})

    assert [var.name for var in snap.variables] == list(REQUIRED_VARIABLES)
    assert [var.present for var in snap.variables] == [False, True, False, False, False, False, False]

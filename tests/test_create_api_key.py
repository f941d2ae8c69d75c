"""
Tests for the API key management script.
"""

import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "scripts")))

import create_api_key  # noqa: E402

from app.auth import APIKeyStore  # noqa: E402


@pytest.fixture
def key_store(tmp_path):
    store = APIKeyStore(storage_path=str(tmp_path / "keys.json"))
    with patch.object(create_api_key, "get_api_key_store", return_value=store):
        yield store


def test_creates_key_with_role(key_store, capsys):
    assert create_api_key.main(["--user-id", "judge", "--role", "admin", "--username", "Judge"]) == 0

    key = capsys.readouterr().out.strip().splitlines()[-1]
    identity = key_store.verify_key(key)
    assert identity.is_admin
    assert identity.username == "Judge"


def test_revoke(key_store):
    key = key_store.create_key("alice")

    assert create_api_key.main(["--user-id", "alice", "--revoke"]) == 0
    assert key_store.verify_key(key) is None


def test_revoke_unknown_user(key_store):
    assert create_api_key.main(["--user-id", "nobody", "--revoke"]) == 1

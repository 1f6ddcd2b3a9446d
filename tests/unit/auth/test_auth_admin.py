from __future__ import annotations

from adapters.db.sqlite.users import SQLiteCredentialStore
from app_platform.security.passwords import PasswordHasher
from scripts.auth_admin import main

from tests.utils.fakes import TEST_COST


def _run(db_path, *args):
    return main(["--db", db_path, "--cost", str(TEST_COST), *args])


def test_create_user_then_check_password(tmp_path, capsys):
    db_path = str(tmp_path / "users.db")

    assert _run(db_path, "create-user", "admin", "--password", "admin1234") == 0
    assert _run(db_path, "check-password", "admin", "--password", "admin1234") == 0
    assert _run(db_path, "check-password", "admin", "--password", "nope") == 1

    out = capsys.readouterr().out
    assert "match" in out
    assert "no match" in out

    stored = SQLiteCredentialStore(db_path).get_by_username("admin")
    assert stored.password_hash.startswith(f"$2b${TEST_COST:02d}$")


def test_duplicate_user_fails(tmp_path):
    db_path = str(tmp_path / "users.db")

    assert _run(db_path, "create-user", "admin", "--password", "admin1234") == 0
    assert _run(db_path, "create-user", "admin", "--password", "other") == 1


def test_list_users(tmp_path, capsys):
    db_path = str(tmp_path / "users.db")
    _run(db_path, "list-users")
    assert "No users found" in capsys.readouterr().out

    _run(db_path, "create-user", "admin", "--password", "admin1234")
    _run(db_path, "create-user", "guest", "--password", "guest1234", "--disabled")
    assert _run(db_path, "list-users") == 0

    out = capsys.readouterr().out
    assert "admin" in out and "Active" in out
    assert "guest" in out and "Inactive" in out


def test_hash_password_prints_verifiable_digest(tmp_path, capsys):
    assert _run(str(tmp_path / "users.db"), "hash-password", "--password", "s3cret-pw") == 0

    digest = capsys.readouterr().out.strip()
    assert PasswordHasher(TEST_COST).verify("s3cret-pw", digest)


def test_invalid_cost_is_reported(tmp_path):
    assert main(["--db", str(tmp_path / "users.db"), "--cost", "3", "hash-password", "--password", "x"]) == 1


def test_no_command_prints_help(tmp_path):
    assert main(["--db", str(tmp_path / "users.db")]) == 1

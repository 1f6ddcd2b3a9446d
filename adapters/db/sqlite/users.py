import sqlite3
import threading
from typing import Dict, List, Optional, Protocol

from domains.auth.exceptions import CredentialStoreError
from domains.auth.models import Credential

_COLUMNS = "id, user_name, password, account_expired, account_locked, credentials_expired, enabled"


class CredentialStore(Protocol):
    def get_by_username(self, username: str) -> Optional[Credential]: ...


def _row_to_credential(row) -> Credential:
    user_id, username, password_hash, account_expired, account_locked, credentials_expired, enabled = row
    return Credential(
        user_id=int(user_id),
        username=username,
        password_hash=password_hash,
        enabled=bool(enabled),
        account_locked=bool(account_locked),
        account_expired=bool(account_expired),
        credentials_expired=bool(credentials_expired),
    )


class SQLiteCredentialStore:
    """Read side of the ``m_user`` table plus the writes the admin CLI needs."""

    def __init__(self, db_path: str, timeout_s: float = 5.0):
        self.db_path = db_path
        self._timeout_s = timeout_s
        self._init()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=self._timeout_s)

    def _init(self) -> None:
        try:
            conn = self._connect()
            try:
                conn.execute(
                    '''
                    CREATE TABLE IF NOT EXISTS m_user (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_name TEXT NOT NULL UNIQUE,
                        password TEXT NOT NULL,
                        account_expired INTEGER NOT NULL DEFAULT 0,
                        account_locked INTEGER NOT NULL DEFAULT 0,
                        credentials_expired INTEGER NOT NULL DEFAULT 0,
                        enabled INTEGER NOT NULL DEFAULT 1
                    )
                    '''
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise CredentialStoreError(f"cannot initialise user store: {exc}") from exc

    def get_by_username(self, username: str) -> Optional[Credential]:
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    f'SELECT {_COLUMNS} FROM m_user WHERE user_name = ?', (username,)
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise CredentialStoreError(f"user lookup failed: {exc}") from exc

        if row is None:
            return None
        return _row_to_credential(row)

    def create_user(
        self,
        username: str,
        password_hash: str,
        *,
        enabled: bool = True,
        account_locked: bool = False,
        account_expired: bool = False,
        credentials_expired: bool = False,
    ) -> Credential:
        try:
            conn = self._connect()
            try:
                cur = conn.execute(
                    '''
                    INSERT INTO m_user
                    (user_name, password, account_expired, account_locked, credentials_expired, enabled)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ''',
                    (
                        username,
                        password_hash,
                        int(account_expired),
                        int(account_locked),
                        int(credentials_expired),
                        int(enabled),
                    ),
                )
                conn.commit()
                user_id = cur.lastrowid
            finally:
                conn.close()
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"user {username!r} already exists") from exc
        except sqlite3.Error as exc:
            raise CredentialStoreError(f"user insert failed: {exc}") from exc

        return Credential(
            user_id=int(user_id),
            username=username,
            password_hash=password_hash,
            enabled=enabled,
            account_locked=account_locked,
            account_expired=account_expired,
            credentials_expired=credentials_expired,
        )

    def list_users(self) -> List[Credential]:
        try:
            conn = self._connect()
            try:
                rows = conn.execute(f'SELECT {_COLUMNS} FROM m_user ORDER BY id').fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise CredentialStoreError(f"user listing failed: {exc}") from exc
        return [_row_to_credential(row) for row in rows]


class InMemoryCredentialStore:
    """Dictionary-backed credential store used by tests."""

    def __init__(self, credentials: Optional[List[Credential]] = None):
        self._lock = threading.Lock()
        self._by_name: Dict[str, Credential] = {c.username: c for c in credentials or []}

    def add(self, credential: Credential) -> None:
        with self._lock:
            self._by_name[credential.username] = credential

    def get_by_username(self, username: str) -> Optional[Credential]:
        with self._lock:
            return self._by_name.get(username)

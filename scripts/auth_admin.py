#!/usr/bin/env python3
"""Authentication administration tool."""

import argparse
import getpass
import logging
import sys
from typing import Optional, Sequence

from adapters.db.sqlite.users import SQLiteCredentialStore
from app_platform.config.auth import AuthConfig
from app_platform.security.passwords import PasswordHasher
from domains.auth.exceptions import AuthError, CredentialStoreError

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def _read_password(value: Optional[str]) -> str:
    if value:
        return value
    first = getpass.getpass('Password: ')
    second = getpass.getpass('Repeat password: ')
    if first != second:
        raise ValueError('passwords do not match')
    return first


def create_user(db_path: str, username: str, password: str, cost: int, *, disabled: bool = False) -> bool:
    """Create new user account."""
    logger.info(f"Creating user: {username}")

    hasher = PasswordHasher(cost)
    store = SQLiteCredentialStore(db_path)

    try:
        credential = store.create_user(username, hasher.hash(password), enabled=not disabled)
    except ValueError as e:
        logger.error(f"Failed to create user: {e}")
        return False

    logger.info(f"User {username} created with id {credential.user_id}")
    return True


def list_users(db_path: str) -> None:
    """List all users."""
    store = SQLiteCredentialStore(db_path)
    users = store.list_users()

    if not users:
        print("No users found")
        return

    print(f"{'ID':<6} {'Username':<24} {'Status'}")
    print("-" * 48)
    for user in users:
        status = "Active" if user.is_active() else "Inactive"
        print(f"{user.user_id:<6} {user.username:<24} {status}")


def check_password(db_path: str, username: str, password: str) -> bool:
    """Check a password against the stored hash without issuing a token."""
    credential = SQLiteCredentialStore(db_path).get_by_username(username)
    if credential is None:
        logger.error(f"No such user: {username}")
        return False
    return PasswordHasher().verify(password, credential.password_hash)


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = AuthConfig.from_env()

    parser = argparse.ArgumentParser(description='Authentication Admin Tool')
    parser.add_argument('--db', default=config.db_path, help='Database path')
    parser.add_argument('--cost', type=int, default=config.bcrypt_cost, help='bcrypt cost factor')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    create_parser = subparsers.add_parser('create-user', help='Create new user')
    create_parser.add_argument('username', help='Username')
    create_parser.add_argument('--password', help='Password (prompted when omitted)')
    create_parser.add_argument('--disabled', action='store_true', help='Create the account disabled')

    subparsers.add_parser('list-users', help='List all users')

    hash_parser = subparsers.add_parser('hash-password', help='Print a bcrypt hash')
    hash_parser.add_argument('--password', help='Password (prompted when omitted)')

    check_parser = subparsers.add_parser('check-password', help='Verify a user password')
    check_parser.add_argument('username', help='Username')
    check_parser.add_argument('--password', help='Password (prompted when omitted)')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == 'create-user':
            success = create_user(args.db, args.username, _read_password(args.password), args.cost,
                                  disabled=args.disabled)
        elif args.command == 'list-users':
            list_users(args.db)
            success = True
        elif args.command == 'hash-password':
            print(PasswordHasher(args.cost).hash(_read_password(args.password)))
            success = True
        else:
            success = check_password(args.db, args.username, _read_password(args.password))
            print("match" if success else "no match")
    except (AuthError, CredentialStoreError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())

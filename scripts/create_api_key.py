"""
Create, reset or revoke an API key for a Contest Hub user.

Usage:
  python scripts/create_api_key.py --user-id alice --username Alice
  python scripts/create_api_key.py --user-id judge --role admin
  python scripts/create_api_key.py --user-id alice --revoke
"""

from __future__ import annotations

import argparse
from typing import List, Optional

from app.auth import ADMIN_ROLE, USER_ROLE, get_api_key_store


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Manage Contest Hub API keys")
    parser.add_argument("--user-id", required=True, help="User ID the key acts as")
    parser.add_argument("--username", default=None, help="Display name stored as owner.username")
    parser.add_argument(
        "--role",
        choices=[USER_ROLE, ADMIN_ROLE],
        default=USER_ROLE,
        help="Role granted to the key holder",
    )
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Revoke the user's key instead of creating one",
    )
    args = parser.parse_args(argv)

    store = get_api_key_store()

    if args.revoke:
        if store.revoke_key(args.user_id):
            print(f"Revoked API key for {args.user_id}")
            return 0
        print(f"No API key found for {args.user_id}")
        return 1

    if store.user_has_key(args.user_id):
        print(f"Replacing existing API key for {args.user_id}")

    print(store.create_key(args.user_id, role=args.role, username=args.username))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

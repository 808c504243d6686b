"""Create a user account (bootstrap the first admin, seed dev accounts).

Usage:
  python backend/scripts/create_user.py --email admin@example.com --name Admin --role admin
  (password is read from KANRI_NEW_USER_PASSWORD or prompted)
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import os
import sys
from pathlib import Path

# Add backend to sys.path
BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from pydantic import ValidationError  # noqa: E402

from kanri.core.db import get_session_factory  # noqa: E402
from kanri.repositories.user_repo import UserRepository  # noqa: E402
from kanri.schemas.user import UserCreateRequest  # noqa: E402
from kanri.security.roles import Role  # noqa: E402
from kanri.services.errors import UserServiceError  # noqa: E402
from kanri.services.user_service import UserService  # noqa: E402


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--name", required=True)
    ap.add_argument("--role", default=Role.MEMBER.value, choices=[r.value for r in Role])
    ap.add_argument("--department", default=None)
    args = ap.parse_args()

    password = os.environ.get("KANRI_NEW_USER_PASSWORD") or getpass.getpass("Password: ")

    try:
        payload = UserCreateRequest(
            name=args.name,
            email=args.email,
            password=password,
            role=Role(args.role),
            department=args.department,
        )
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2

    session = get_session_factory()()
    try:
        user = asyncio.run(UserService(UserRepository(session)).create_user(payload))
    except UserServiceError as e:
        print(f"Error creating user: {e}", file=sys.stderr)
        return 1
    finally:
        session.close()

    print(f"Created {user.role.value} {user.email} ({user.id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

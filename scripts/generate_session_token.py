"""Generate a session token compatible with the kanri backend.

Usage:
  export KANRI_JWT_SECRET="your-secret"
  python scripts/generate_session_token.py --sub <user-uuid> --role manager --department Sales

Send the output as `Authorization: Bearer <token>`.
"""

from __future__ import annotations

import argparse
import os
import sys

from kanri.security.roles import Role
from kanri.security.tokens import issue_session_token


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--sub", required=True)
    ap.add_argument("--role", required=True, choices=[r.value for r in Role])
    ap.add_argument("--department", default=None)
    ap.add_argument("--exp-seconds", type=int, default=60 * 60 * 12)  # 12h
    args = ap.parse_args()

    secret = os.environ.get("KANRI_JWT_SECRET")
    if not secret:
        raise SystemExit("Missing KANRI_JWT_SECRET in environment.")

    token, expires_at = issue_session_token(
        sub=args.sub,
        role=Role(args.role),
        department=args.department,
        secret=secret,
        ttl_seconds=args.exp_seconds,
    )
    print(token)
    print(f"# expires {expires_at.isoformat()}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

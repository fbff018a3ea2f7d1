"""Mint a development access token for an existing patient, doctor or staff row.

Usage: python scripts/issue_token.py <role> <uuid> [minutes]
"""

import sys
from datetime import timedelta
from uuid import UUID

from clinic.core.security import create_access_token
from clinic.core.state_machine import Role


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print(__doc__.strip().splitlines()[-1], file=sys.stderr)
        return 1

    try:
        role = Role(argv[0])
        subject = UUID(argv[1])
        minutes = int(argv[2]) if len(argv) > 2 else 60
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    token = create_access_token(
        {"sub": str(subject), "role": role.value},
        expires_delta=timedelta(minutes=minutes),
    )
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

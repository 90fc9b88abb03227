#!/usr/bin/env python3
"""
Issue a bearer token for a staff user, for local testing and tooling.

Usage:
    python scripts/issue_staff_token.py <user_id>
    python scripts/issue_staff_token.py <user_id> --minutes 120

Environment Variables:
    JWT_SECRET_KEY: Signing key shared with the API
    DATABASE_URL: Required by the settings loader
"""

import argparse
import sys
from datetime import timedelta
from uuid import UUID

import dotenv

dotenv.load_dotenv()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Issue a staff access token",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python issue_staff_token.py 6af011a7-44c1-4313-890a-6f973966b10d

  curl -H "Authorization: Bearer $(python issue_staff_token.py USER_ID)" \\
       http://localhost:8000/api/v1/clinics/CLINIC_ID/reports/no-show
        """,
    )
    parser.add_argument("user_id", help="Staff user ID (the token subject)")
    parser.add_argument(
        "--minutes",
        type=int,
        default=None,
        help="Lifetime in minutes (default: ACCESS_TOKEN_EXPIRE_MINUTES)",
    )

    args = parser.parse_args()

    try:
        user_id = UUID(args.user_id)
    except ValueError:
        print(f"Error: invalid user ID: {args.user_id}", file=sys.stderr)
        sys.exit(1)

    from app.core.security import create_access_token

    expires = timedelta(minutes=args.minutes) if args.minutes else None
    print(create_access_token(user_id, expires_delta=expires))


if __name__ == "__main__":
    main()

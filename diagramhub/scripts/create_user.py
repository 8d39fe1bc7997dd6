"""Register a user and print an access token for them.

Authentication itself is external; this only provisions the ``users`` row
that credentials resolve to.

Usage:
    python -m diagramhub.scripts.create_user --email alice@example.com [--name Alice] [--hours 24]
"""

import argparse
import sys

from ..core.config import settings
from ..core.token_factory import create_token
from ..database import SessionLocal, init_db
from ..repositories import UserRepository


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a diagramhub user")
    parser.add_argument("--email", required=True, help="Email address of the new user")
    parser.add_argument("--name", default=None, help="Display name")
    parser.add_argument("--hours", type=int, default=24, help="Lifetime of the printed token")
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        repo = UserRepository(db)
        if repo.get_by_email(args.email) is not None:
            print(f"User '{args.email}' already exists.")
            sys.exit(1)

        user = repo.create(email=args.email, display_name=args.name or "")
        db.commit()
        print(f"User '{user.email}' created (id={user.id}).")
        if settings.auth_mode == "jwt":
            token = create_token(user.id, settings.jwt_secret_key, settings.jwt_algorithm, args.hours)
            print(f"Bearer token (expires in {args.hours}h): {token}")
    finally:
        db.close()


if __name__ == "__main__":
    main()

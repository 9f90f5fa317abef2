"""
Bootstrap an ADMIN account.

Reads ADMIN_EMAIL, ADMIN_PASSWORD and ADMIN_NAME from the environment (or a
.env file) unless given on the command line. Existing accounts are promoted
to ADMIN and keep their password.

Run with: python scripts/create_admin.py --email admin@school.test --password change-me
"""

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from innerview.db import schemas
from innerview.db.database import get_db
from innerview.db.repositories import users as user_repo
from innerview.utils.role_permissions import ROLE_ADMIN


def create_admin(email: str, password: str, name: str) -> int:
    db = next(get_db())
    try:
        existing = user_repo.get_user_by_email(db, email)
        if existing:
            if existing.role == ROLE_ADMIN:
                print(f"{existing.email} is already an administrator")
                return 0
            existing.role = ROLE_ADMIN
            db.commit()
            print(f"Promoted {existing.email} to ADMIN")
            return 0

        user = user_repo.create_user(db, schemas.UserCreate(
            email=email,
            name=name,
            password=password,
            role=ROLE_ADMIN,
        ))
        print(f"Created administrator {user.email} ({user.id})")
        return 0
    finally:
        db.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create or promote an Innerview administrator")
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    parser.add_argument("--name", default=os.getenv("ADMIN_NAME", "Administrator"))
    args = parser.parse_args()

    if not args.email or not args.password:
        parser.error("--email and --password are required (or set ADMIN_EMAIL / ADMIN_PASSWORD)")
    return create_admin(args.email, args.password, args.name)


if __name__ == "__main__":
    sys.exit(main())

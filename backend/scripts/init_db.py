#!/usr/bin/env python3
"""
Create all tables and seed an admin account, using DATABASE_URL from config.
From backend/: python scripts/init_db.py --admin-username admin --admin-password <password>
"""
from __future__ import annotations

import argparse
import os
import sys

_script_dir = os.path.dirname(os.path.abspath(__file__))
_backend = os.path.dirname(_script_dir)
if _backend not in sys.path:
    sys.path.insert(0, _backend)

from walkthrough_api.core.config import get_settings
from walkthrough_api.core.security import hash_password
from walkthrough_api.db.session import get_database
from walkthrough_api.models import Role
from walkthrough_api.repositories import location_repo, user_repo


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--admin-username", default=os.getenv("ADMIN_USERNAME", "admin"))
    parser.add_argument("--admin-password", default=os.getenv("ADMIN_PASSWORD"))
    parser.add_argument("--admin-email", default=os.getenv("ADMIN_EMAIL"))
    parser.add_argument("--location", action="append", default=[], help="Location to create (repeatable)")
    args = parser.parse_args(argv)

    database = get_database(get_settings())
    database.create_all()
    print("OK: schema created")

    with database.session() as db:
        if args.admin_password and user_repo.get_user_by_username(db, args.admin_username) is None:
            user_repo.create_user(
                db,
                username=args.admin_username,
                password_hash=hash_password(args.admin_password),
                email=args.admin_email,
                first_name="School",
                last_name="Admin",
                role=Role.ADMIN.value,
            )
            print(f"OK: admin user '{args.admin_username}' created")
        elif not args.admin_password:
            print("Skip admin seed (no --admin-password / ADMIN_PASSWORD)", file=sys.stderr)
        for name in args.location:
            if location_repo.get_location_by_name(db, name) is None:
                location_repo.create_location(db, name)
                print(f"OK: location '{name}'")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as e:
        print(f"FAIL: {e}", file=sys.stderr)
        sys.exit(1)

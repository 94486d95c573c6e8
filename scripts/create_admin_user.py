#!/usr/bin/env python
"""Create an admin account, or reset its password if it already exists.

Usage:
    python scripts/create_admin_user.py --email admin@example.com --name "Admin"
    python scripts/create_admin_user.py --email admin@example.com --password S3cret-pass
    python scripts/create_admin_user.py --email admin@example.com --create-tables

Without --password the password is prompted for.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from hr_system.auth.security import get_password_hash
from hr_system.database import create_tables, dispose_db, get_session
from hr_system.models.enums import UserRole, UserStatus
from hr_system.services import UserService
from hr_system.services.user_service import MIN_PASSWORD_LENGTH


async def create_admin(email: str, name: str, password: str, with_tables: bool) -> None:
    """Create the admin user or reset the existing account's password."""
    try:
        if with_tables:
            await create_tables()

        async with get_session() as session:
            service = UserService(session)
            user = await service.get_by_email(email)

            if user is None:
                user = await service.create_user(
                    {
                        "name": name,
                        "email": email,
                        "password": password,
                        "role": UserRole.ADMIN.value,
                        "status": UserStatus.ACTIVE.value,
                    }
                )
                print(f"Created admin user: {user.email}")
            else:
                user.password_hash = get_password_hash(password)
                user.role = UserRole.ADMIN.value
                user.status = UserStatus.ACTIVE.value
                user.login_attempts = 0
                user.locked_until = None
                await session.flush()
                print(f"Reset password for existing user: {user.email}")
    finally:
        await dispose_db()


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Create or reset an admin account")
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--name", default="Administrator", help="Display name for a new account")
    parser.add_argument("--password", help="Password (prompted for when omitted)")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing database tables first",
    )

    args = parser.parse_args()

    password = args.password or getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"Error: password must be at least {MIN_PASSWORD_LENGTH} characters")
        sys.exit(1)

    asyncio.run(create_admin(args.email, args.name, password, args.create_tables))


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Create or promote an admin user. Run: python -m leflow_server.scripts.create_admin"""

import asyncio
import getpass
import sys

from leflow_server.auth import hash_password
from leflow_server.database import async_session_maker, init_db
from leflow_server.models import User, UserRole
from leflow_server.services.users import get_user_by_email, get_user_by_username


async def main():
    await init_db()
    username = input("Admin username: ").strip()
    email = input("Admin email: ").strip()
    password = getpass.getpass("Password: ")
    if not username or not email or not password:
        print("All fields required")
        sys.exit(1)
    if len(password) < 8:
        print("Password must be at least 8 characters")
        sys.exit(1)

    async with async_session_maker() as session:
        user = await get_user_by_username(session, username)
        if user is None and await get_user_by_email(session, email):
            print("Email already belongs to another user")
            sys.exit(1)
        if user:
            user.role = UserRole.ADMIN
            user.email_verified = True
            user.banned = False
            await session.commit()
            print("Existing user promoted to admin.")
            return
        session.add(
            User(
                username=username,
                email=email,
                password_hash=hash_password(password),
                role=UserRole.ADMIN,
                email_verified=True,
                terms_accepted=True,
            )
        )
        await session.commit()
        print("Admin user created.")


if __name__ == "__main__":
    asyncio.run(main())

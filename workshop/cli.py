"""CLI for the workshop service: create tables, users, seed data."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from workshop.models.user import LANGUAGES, ROLES


def _prompt_password(given: str) -> str:
    password = given
    if not password:
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match")
            sys.exit(1)
    if len(password) < 6:
        print("Password must be at least 6 characters")
        sys.exit(1)
    return password


async def cmd_init_db(args):
    from workshop.db.engine import create_all

    await create_all()
    print("Tables created.")


async def cmd_create_user(args):
    from workshop.db.engine import async_session_factory, create_all
    from workshop.errors import Conflict
    from workshop.services.bootstrap import create_user

    await create_all()
    password = _prompt_password(args.password)

    async with async_session_factory() as db:
        try:
            user = await create_user(
                db,
                username=args.username,
                email=args.email,
                password=password,
                role=args.role,
                full_name=args.full_name,
                preferred_language=args.language,
                specialization=args.specialization,
            )
        except Conflict as e:
            print(e.message)
            sys.exit(1)

    print(f"User created: {user.username} (id={user.id}, role={user.role})")


async def cmd_seed(args):
    from workshop.db.engine import async_session_factory, create_all
    from workshop.services.bootstrap import seed_defaults

    await create_all()
    async with async_session_factory() as db:
        created = await seed_defaults(db, args.admin_password)

    if not created:
        print("Nothing to seed, database already populated.")
        return
    for line in created:
        print(f"Created {line}")


def main():
    parser = argparse.ArgumentParser(description="Workshop Orders CLI")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init-db", help="Create database tables")

    cu = subparsers.add_parser("create-user", help="Create a user account")
    cu.add_argument("--username", required=True)
    cu.add_argument("--email", required=True)
    cu.add_argument("--role", choices=ROLES, default="customer")
    cu.add_argument("--full-name", default="")
    cu.add_argument("--language", choices=LANGUAGES, default="en")
    cu.add_argument("--specialization", default=None, help="Engineer specialization (electric, battery, ...)")
    cu.add_argument("--password", default="", help="Password (prompted if not given)")

    sd = subparsers.add_parser("seed", help="Seed admin user, chat channels and sample catalog")
    sd.add_argument("--admin-password", default="admin123")

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "init-db":
        asyncio.run(cmd_init_db(args))
    elif args.command == "create-user":
        asyncio.run(cmd_create_user(args))
    elif args.command == "seed":
        asyncio.run(cmd_seed(args))


if __name__ == "__main__":
    main()

"""User administration script for WineHub.

Commands:
    add       Add a new user
    list      List all users
    disable   Disable a user account
    enable    Enable a user account
    remove    Remove a user account
    passwd    Change a user's password
    role      Change a user's role
"""

import argparse
import asyncio
import sys
from getpass import getpass

from winehub.database import close_db, init_db
from winehub.models.user import User, UserRole
from winehub.services.auth import get_password_hash, get_user_by_email


async def require_user(email: str) -> User:
    """Look up a user by email or exit."""
    user = await get_user_by_email(email)
    if not user:
        print(f"Error: User '{email}' not found.")
        sys.exit(1)
    return user


async def add_user(
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    role: UserRole = UserRole.VIEWER,
) -> None:
    """Add a new user."""
    email = email.strip().lower()
    if await get_user_by_email(email):
        print(f"Error: User '{email}' already exists.")
        sys.exit(1)

    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True,
    )
    await user.insert()
    print(f"User '{email}' created successfully as {role.value}.")


async def list_users() -> None:
    """List all users."""
    users = await User.find_all().sort(+User.email).to_list()

    if not users:
        print("No users found.")
        return

    print(f"{'Email':<32} {'Name':<24} {'Role':<8} {'Active':<6} {'Last Login':<20}")
    print("-" * 94)

    for user in users:
        last_login = user.last_login.strftime("%Y-%m-%d %H:%M") if user.last_login else "Never"
        active = "Yes" if user.is_active else "No"
        print(
            f"{user.email:<32} {user.full_name:<24} {user.role.value:<8} "
            f"{active:<6} {last_login:<20}"
        )


async def set_active(email: str, active: bool) -> None:
    """Enable or disable a user account."""
    user = await require_user(email)
    state = "active" if active else "disabled"

    if user.is_active == active:
        print(f"User '{email}' is already {state}.")
        return

    user.is_active = active
    await user.save()
    print(f"User '{email}' has been {'enabled' if active else 'disabled'}.")


async def remove_user(email: str, force: bool = False) -> None:
    """Remove a user account."""
    user = await require_user(email)

    if not force:
        confirm = input(f"Are you sure you want to remove user '{email}'? [y/N]: ")
        if confirm.lower() != "y":
            print("Aborted.")
            return

    await user.delete()
    print(f"User '{email}' has been removed.")


async def change_password(email: str, password: str) -> None:
    """Change a user's password."""
    user = await require_user(email)
    user.hashed_password = get_password_hash(password)
    await user.save()
    print(f"Password for user '{email}' has been updated.")


async def change_role(email: str, role: UserRole) -> None:
    """Change a user's role."""
    user = await require_user(email)
    user.role = role
    await user.save()
    print(f"User '{email}' is now {role.value}.")


def get_password_interactive(confirm: bool = True) -> str:
    """Get password interactively from user."""
    password = getpass("Password: ")
    if len(password) < 6:
        print("Error: Password must be at least 6 characters.")
        sys.exit(1)

    if confirm:
        password2 = getpass("Confirm password: ")
        if password != password2:
            print("Error: Passwords do not match.")
            sys.exit(1)

    return password


async def run(args: argparse.Namespace, password: str | None) -> None:
    """Run one command against the configured database."""
    await init_db()
    try:
        if args.command == "add":
            await add_user(
                args.email, password, args.first_name, args.last_name, UserRole(args.role)
            )
        elif args.command == "list":
            await list_users()
        elif args.command == "disable":
            await set_active(args.email, False)
        elif args.command == "enable":
            await set_active(args.email, True)
        elif args.command == "remove":
            await remove_user(args.email, args.force)
        elif args.command == "passwd":
            await change_password(args.email, password)
        elif args.command == "role":
            await change_role(args.email, UserRole(args.role))
    finally:
        await close_db()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="User administration for WineHub",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    roles = [r.value for r in UserRole]

    add_parser = subparsers.add_parser("add", help="Add a new user")
    add_parser.add_argument("email", help="Email address of the new user")
    add_parser.add_argument("--first-name", default="", help="First name")
    add_parser.add_argument("--last-name", default="", help="Last name")
    add_parser.add_argument(
        "--role", "-r", choices=roles, default="viewer", help="Role (default: viewer)"
    )
    add_parser.add_argument("--password", "-p", help="Password (will prompt if not provided)")

    subparsers.add_parser("list", help="List all users")

    disable_parser = subparsers.add_parser("disable", help="Disable a user account")
    disable_parser.add_argument("email", help="Email of the user to disable")

    enable_parser = subparsers.add_parser("enable", help="Enable a user account")
    enable_parser.add_argument("email", help="Email of the user to enable")

    remove_parser = subparsers.add_parser("remove", help="Remove a user account")
    remove_parser.add_argument("email", help="Email of the user to remove")
    remove_parser.add_argument("--force", "-f", action="store_true", help="Skip confirmation")

    passwd_parser = subparsers.add_parser("passwd", help="Change a user's password")
    passwd_parser.add_argument("email", help="Email of the user")
    passwd_parser.add_argument("--password", "-p", help="New password (will prompt if not provided)")

    role_parser = subparsers.add_parser("role", help="Change a user's role")
    role_parser.add_argument("email", help="Email of the user")
    role_parser.add_argument("role", choices=roles, help="New role")

    return parser


def main() -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    password = None
    if args.command in ("add", "passwd"):
        password = args.password if args.password else get_password_interactive()

    try:
        asyncio.run(run(args, password))
    except KeyboardInterrupt:
        print("\nAborted.")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

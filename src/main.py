"""Admin console.

This module provides an interactive command-line interface for the tasks
the public API does not allow: creating superadmin accounts and registering
the first schools.
"""

import getpass
import logging
import sys

from pydantic import ValidationError as PydanticValidationError

from core.database import SessionLocal, init_db
from core.exceptions import EcoterraError
from core.logging_config import setup_logging
from schemas.school import CreateSchoolRequest
from utils.school_manager import SchoolManager
from utils.user_manager import UserManager

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def print_banner() -> None:
    """Print program banner and description."""
    print("=" * 70)
    print("  Ecoterra Admin Console")
    print("=" * 70)
    print()
    print("Use this console to:")
    print("  - create superadmin accounts (they cannot self-register)")
    print("  - register schools, whose email domains gate teacher and")
    print("    student registration")
    print()
    print("=" * 70)
    print()


def print_commands() -> None:
    """Print available commands."""
    print("\nAvailable commands:")
    print("  [a] or create-admin  - Create a superadmin account")
    print("  [s] or add-school    - Register a school")
    print("  [l] or list-schools  - List registered schools")
    print("  [q] or quit          - Exit")
    print()


def prompt(label: str, required: bool = True) -> str:
    while True:
        value = input(f"{label}: ").strip()
        if value or not required:
            return value
        print("  This field is required.")


def create_admin() -> None:
    full_name = prompt("Full name")
    email = prompt("Email")
    password = getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"\n❌ Password must be at least {MIN_PASSWORD_LENGTH} characters.\n")
        return
    if getpass.getpass("Repeat password: ") != password:
        print("\n❌ Passwords do not match.\n")
        return

    with SessionLocal() as db:
        try:
            user = UserManager(db).create_superadmin(full_name, email, password)
        except EcoterraError as e:
            print(f"\n❌ {e}\n")
            return
    print(f"\n✅ Superadmin created: {user.email} ({user.user_id})\n")


def add_school() -> None:
    try:
        req = CreateSchoolRequest(
            name=prompt("School name"),
            domain=prompt("Email domain (e.g. sman1.sch.id)").lower(),
            address=prompt("Address"),
            phone=prompt("Phone (optional)", required=False) or None,
            email=prompt("Contact email (optional)", required=False) or None,
            principal_name=prompt("Principal (optional)", required=False) or None,
        )
    except PydanticValidationError as e:
        print("\n❌ Invalid school details:")
        for err in e.errors():
            print(f"   {'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        print()
        return

    with SessionLocal() as db:
        try:
            school = SchoolManager(db).create_school(**req.model_dump())
        except EcoterraError as e:
            print(f"\n❌ {e}\n")
            return
        print(f"\n✅ School registered: {school.name} ({school.domain})\n")


def list_schools() -> None:
    with SessionLocal() as db:
        schools = SchoolManager(db).list_schools(include_inactive=True)
        if not schools:
            print("\nNo schools registered yet.\n")
            return
        print()
        for school in schools:
            state = "active" if school.is_active else "inactive"
            print(f"  {school.domain:<30} {school.name} [{state}]")
        print()


def admin_console() -> None:
    """Interactive admin loop."""
    print_banner()
    init_db()

    while True:
        print_commands()
        user_input = input("Command: ").strip().lower()

        if user_input in ["q", "quit"]:
            print("\nBye.")
            return
        elif user_input in ["a", "create-admin"]:
            create_admin()
        elif user_input in ["s", "add-school"]:
            add_school()
        elif user_input in ["l", "list-schools"]:
            list_schools()
        else:
            print("\n❌ Unknown command, try again.\n")


def main() -> None:
    """Main entry point."""
    setup_logging()
    try:
        admin_console()
    except (KeyboardInterrupt, EOFError):
        print("\n\nInterrupted.")
        sys.exit(1)


if __name__ == "__main__":
    main()

"""CLI tool for admin operations.

Usage:
    python -m broker.cli create-user
    python -m broker.cli generate-key
"""

import sys
import getpass

from cryptography.fernet import Fernet
from sqlmodel import Session, select

from broker.database import engine, create_db_and_tables
from broker.models.user import User
from broker.services.auth import hash_password


def create_user():
    """Create a dashboard user interactively."""
    create_db_and_tables()

    username = input("Username: ").strip()
    if not username:
        print("Username cannot be empty.")
        sys.exit(1)
    email = input("Email (optional): ").strip() or None

    with Session(engine) as session:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing:
            print(f"User '{username}' already exists.")
            sys.exit(1)

    password = getpass.getpass("Password: ")
    password_confirm = getpass.getpass("Confirm password: ")
    if password != password_confirm:
        print("Passwords do not match.")
        sys.exit(1)

    user = User(
        username=username,
        email=email,
        hashed_password=hash_password(password),
    )

    with Session(engine) as session:
        session.add(user)
        session.commit()

    print(f"\nUser '{username}' created successfully.")


def generate_key():
    """Print a fresh Fernet key for BROKER_ENCRYPTION_KEY."""
    print(Fernet.generate_key().decode())


COMMANDS = {
    "create-user": create_user,
    "generate-key": generate_key,
}


def main():
    if len(sys.argv) < 2:
        print("Usage: python -m broker.cli <command>")
        print(f"Commands: {', '.join(COMMANDS)}")
        sys.exit(1)

    command = COMMANDS.get(sys.argv[1])
    if command is None:
        print(f"Unknown command: {sys.argv[1]}")
        sys.exit(1)
    command()


if __name__ == "__main__":
    main()

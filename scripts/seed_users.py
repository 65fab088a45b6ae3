"""
CrimeWatch - Database Seed Script

Creates the initial admin account (and optionally a demo reporter).

Usage:
    python -m scripts.seed_users --username admin --email admin@crimewatch.local
"""

import argparse
import getpass
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session, select

from crimewatch.config import settings
from crimewatch.database import get_engine, init_db
from crimewatch.errors import ConfigurationError
from crimewatch.auth.models import User, Role
from crimewatch.auth.password import hash_password
from crimewatch.auth.schemas import MIN_PASSWORD_LENGTH


def seed_user(engine, username: str, email: str, password: str, role: Role) -> bool:
    """Create a user unless the username is taken. Returns True if created."""
    with Session(engine) as session:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing:
            print(f"User {username!r} already exists.")
            return False

        session.add(User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role,
        ))
        session.commit()

    print(f"Created user: {username} ({role.value})")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed CrimeWatch users")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--email", default="admin@crimewatch.local")
    parser.add_argument("--password", help="Prompted for when omitted")
    parser.add_argument("--demo", action="store_true", help="Also create reporter 'demo' / 'demo123'")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass(f"Password for {args.username}: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        return 1

    try:
        engine = get_engine(settings.DATABASE_URL)
    except ConfigurationError as e:
        print(f"Error: {e}")
        return 1
    init_db(engine)

    seed_user(engine, args.username, args.email, password, Role.ADMIN)
    if args.demo:
        seed_user(engine, "demo", "demo@crimewatch.local", "demo123", Role.REPORTER)

    engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())

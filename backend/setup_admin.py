#!/usr/bin/env python3
"""
Script to grant the admin role to an account.

Usage:
    python setup_admin.py <user_email>
    python setup_admin.py --permanent

Example:
    python setup_admin.py admin@example.com

With --permanent every address in ADMIN_EMAILS is promoted. Addresses that
have never signed in get a placeholder account which is re-linked to the
real identity on first login.
"""
import argparse
import sys
import os
import time

# Add parent directory to path to import modules
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.core.config import settings
from app.db.session import Database
from app.models.user import User


def grant_admin(db, email: str, create_missing: bool = False) -> bool:
    """Grant the admin role to the account with this email

    Returns False when the account does not exist and create_missing is off.
    """
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user:
        if not create_missing:
            print(f"ERROR: User with email '{email}' not found")
            return False
        user = User(
            firebase_uid=f"admin-{int(time.time() * 1000)}",
            email=email,
            display_name=email.split("@")[0],
            role="admin",
            is_email_verified=True,
        )
        db.add(user)
        db.commit()
        print(f"✓ Created admin placeholder for {email} (ID: {user.id})")
        return True

    if user.role == "admin":
        print(f"User '{email}' already has admin access")
        return True

    user.role = "admin"
    db.commit()
    print(f"✓ Admin access granted to user: {email} (ID: {user.id})")
    return True


def main():
    parser = argparse.ArgumentParser(description="Grant the admin role to MovieFlix accounts")
    parser.add_argument("email", nargs="?", help="Email of the account to promote")
    parser.add_argument(
        "--permanent",
        action="store_true",
        help="Promote every address listed in ADMIN_EMAILS, creating missing accounts"
    )
    args = parser.parse_args()

    if not args.email and not args.permanent:
        parser.print_usage()
        sys.exit(1)

    emails = settings.admin_emails if args.permanent else [args.email]
    if not emails:
        print("ERROR: ADMIN_EMAILS is empty")
        sys.exit(1)

    database = Database(settings.DATABASE_URL)
    database.init_db()
    db = database.session()
    ok = True
    try:
        for email in emails:
            ok = grant_admin(db, email, create_missing=args.permanent) and ok
    except Exception as e:
        print(f"ERROR: Failed to grant admin access: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()
        database.dispose()

    if not ok:
        sys.exit(1)


if __name__ == "__main__":
    main()

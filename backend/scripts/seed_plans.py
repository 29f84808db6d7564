#!/usr/bin/env python3
"""
Insert the default plan catalog (basic, standard, premium).

Usage:
    python seed_plans.py

Does nothing when plans already exist.
"""
import sys
import os

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import settings
from app.db.session import Database
from app.services.plan_service import seed_plans


def main():
    database = Database(settings.DATABASE_URL)
    database.init_db()
    db = database.session()
    try:
        inserted = seed_plans(db)
        if inserted:
            print(f"✅ Inserted {inserted} plans")
        else:
            print("Plans already present, nothing to do")
    except Exception as e:
        print(f"❌ Error seeding plans: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    main()

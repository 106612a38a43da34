"""
Insert sample ongoing elections (and optionally an admin user).

    python -m youvote.seed [--admin-email admin@university.ac.ke]
"""
import argparse
import logging
from datetime import datetime, timedelta, timezone

from . import crud
from .database.connection import get_db
from .errors import Conflict

logger = logging.getLogger(__name__)

SAMPLE_ELECTIONS = [
    ("Ongoing Student Council Election", "Live election for student council 2025.", "Student"),
    ("Ongoing City Mayor Election", "Live voting for city mayor.", "Municipal"),
    ("Ongoing Tech Committee Vote", "Choose your tech conference committee.", "Organizational"),
    ("Ongoing Seed Election", "This is the ongoing seed election for testing.", "seed"),
]


def seed_elections(db, created_by: str, now=None) -> int:
    now = now or datetime.now(timezone.utc)
    five_days_ago = now - timedelta(days=5)
    five_days_later = now + timedelta(days=5)
    for title, description, election_type in SAMPLE_ELECTIONS:
        crud.create_election(db, {
            "title": title,
            "description": description,
            "election_type": [election_type],
            "start_date": five_days_ago,
            "end_date": five_days_later,
        }, created_by=created_by)
    return len(SAMPLE_ELECTIONS)


def seed_admin(db, email: str, first_name: str = "Admin", last_name: str = "User") -> dict:
    existing = crud.get_user_by_email(db, email)
    if existing:
        return existing
    return crud.create_user(db, first_name, last_name, email, role="admin", email_verified=True)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the YouVote database with sample data")
    parser.add_argument("--admin-email", help="create (or reuse) a verified admin with this email")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    db = get_db()

    created_by = "seed"
    if args.admin_email:
        try:
            admin = seed_admin(db, args.admin_email)
        except Conflict as e:
            logger.error(e.message)
            return 1
        created_by = str(admin["_id"])
        logger.info(f"Admin available: {args.admin_email}")

    count = seed_elections(db, created_by)
    logger.info(f"{count} elections added successfully.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

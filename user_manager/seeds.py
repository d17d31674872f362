import argparse
from typing import Optional, Sequence

from faker import Faker
from sqlalchemy import select
from sqlalchemy.orm import Session

from .database import Base, engine, session_scope
from .models import User

fake = Faker()
Faker.seed(1234)


def seed_users(session: Session, users_count: int) -> int:
    """Add demo users to ``session`` and return how many were new.

    Users are identified by email (user{n}@example.com), so running the
    seeder twice does not create duplicates. The caller commits.
    """
    existing_emails = set(session.scalars(select(User.email)).all())

    created = 0
    for i in range(1, users_count + 1):
        email = f"user{i}@example.com"
        if email in existing_emails:
            continue

        session.add(
            User(
                username=f"user{i}",
                fullname=fake.name(),
                email=email,
                age=fake.random_int(min=18, max=80),
                profilepic=f"https://avatars.dicebear.com/api/identicon/user{i}.svg",
            )
        )
        existing_emails.add(email)
        created += 1

    return created


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the users table with demo data.")
    parser.add_argument(
        "--count",
        type=int,
        default=10,
        help="Number of demo users to ensure (default: 10).",
    )
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    with session_scope() as session:
        created = seed_users(session, args.count)
    print(f"Seeding complete: {created} new users.")


if __name__ == "__main__":
    main()

import argparse
import datetime
import json
import logging

from . import storage
from .ai import build_client
from .models import utcnow
from .services import clubs as club_service
from .services import events as event_service
from .services import users as user_service
from .services.exceptions import ServiceError
from .services.suggestions import resolve


DEMO_PASSWORD = "clubhub-demo"

DEMO_USERS = [
    ("owner@clubhub.local", "Demo Owner"),
    ("student@clubhub.local", "Demo Student"),
]

DEMO_CLUBS = [
    {
        "name": "Computer Science Club",
        "description": "A club for students passionate about computer science, programming, and technology",
        "category": "Technology",
        "tags": ["programming", "software"],
        "event": ("Web Development Workshop", "Learn the basics of React and Next.js", 7, "Tech Lab 101", 30),
    },
    {
        "name": "Photography Club",
        "description": "Capture the world through your lens",
        "category": "Arts",
        "tags": ["photography", "visual arts"],
        "event": ("Photography Contest", "Show off your best shots in our annual contest", 14, "Art Building Gallery", 50),
    },
    {
        "name": "Environmental Club",
        "description": "Making our campus and world more sustainable",
        "category": "Environment",
        "tags": ["sustainability", "green"],
        "event": ("Campus Clean-up Day", "Help make our campus beautiful and green", 10, "Main Campus", 100),
    },
]


def init_db() -> None:
    """Create the schema on the configured database."""
    with storage.transaction():
        pass
    print("Database ready")


def _demo_user(email: str, name: str):
    user = storage.get_user_by_email(email)
    if user:
        return user
    return user_service.create_user(email, name, DEMO_PASSWORD)


def seed() -> None:
    """Insert demo users, clubs, events, an announcement and a pending request.

    Records that already exist are left alone, so seeding twice is harmless.
    """
    owner = _demo_user(*DEMO_USERS[0])
    student = _demo_user(*DEMO_USERS[1])

    created = 0
    for demo in DEMO_CLUBS:
        if storage.get_club_by_name(demo["name"]):
            continue
        club = club_service.create_club(
            owner.user_id,
            demo["name"],
            demo["description"],
            demo["category"],
            tags=demo["tags"],
        )
        title, description, days, venue, capacity = demo["event"]
        event_service.create_event(
            owner.user_id,
            club["id"],
            title,
            utcnow() + datetime.timedelta(days=days),
            venue,
            description=description,
            max_participants=capacity,
        )
        event_service.create_announcement(
            owner.user_id,
            club["id"],
            f"Welcome to the {demo['name']}",
            "Our first meeting is coming up soon. Check the events page for details.",
        )
        club_service.request_membership(student.user_id, club["id"], "I would love to join!")
        created += 1
    print(f"Seeded {created} clubs (demo password: {DEMO_PASSWORD})")


def suggest(interest: str) -> None:
    client = build_client()
    try:
        result = resolve(interest, storage.list_club_summaries(), client)
    finally:
        if client is not None:
            client.close()
    print(json.dumps(result.to_dict(), indent=2))


def main(argv=None):
    parser = argparse.ArgumentParser(description='Club Hub CLI')
    sub = parser.add_subparsers(dest='cmd')

    sub.add_parser('init_db')
    sub.add_parser('seed')

    sug = sub.add_parser('suggest')
    sug.add_argument('interest')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.WARNING)

    try:
        if args.cmd == 'init_db':
            init_db()
        elif args.cmd == 'seed':
            seed()
        elif args.cmd == 'suggest':
            suggest(args.interest)
        else:
            parser.print_help()
            return 1
    except ServiceError as exc:
        print(f"Error: {exc.message}")
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())

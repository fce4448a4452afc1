#!/usr/bin/env python3
"""
CLI tool for creating users (speakers, reviewers, admins).

The API resolves callers from the X-User-Id header; this script creates
the accounts those ids point to.

Usage:
    python scripts/create_user.py --name "Ada Lovelace" --email ada@example.com --role admin
    python scripts/create_user.py --list --role reviewer
"""

import argparse
import logging
import sys

from talk_proposals.bootstrap import build_container
from talk_proposals.domain.proposals.entities import User, UserRole
from talk_proposals.domain.shared.exceptions import PersistenceError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Create or list Talk Proposals users")
    parser.add_argument("--name", help="Display name")
    parser.add_argument("--email", help="Unique e-mail address")
    parser.add_argument(
        "--role",
        choices=[role.value for role in UserRole],
        default=UserRole.SPEAKER.value,
        help="User role (default: speaker)",
    )
    parser.add_argument(
        "--list", action="store_true", help="List existing users with the given role"
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    container = build_container()
    role = UserRole(args.role)

    if args.list:
        with container.uow_factory() as uow:
            users = uow.users.list_by_role(role)
        for user in users:
            print(f"{user.id}\t{user.name}\t{user.email}")
        logger.info(f"{len(users)} {role.value} user(s)")
        return 0

    if not args.name or not args.email:
        logger.error("--name and --email are required to create a user")
        return 1

    try:
        with container.uow_factory() as uow:
            user = uow.users.add(User(name=args.name, email=args.email, role=role))
            uow.commit()
    except PersistenceError as e:
        logger.error(f"Could not create user: {e}")
        return 1

    logger.info(f"Created {role.value} {user.email} with id {user.id}")
    print(user.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
create_user.py — Create a TaskFlow user from the command line.

Useful for adding the first administrator without going through the
first-run PIN setup, or for scripted installs.

Example:
    python scripts/create_user.py --username rick --pin 482913 --display-name "Rick" --admin
"""

from __future__ import annotations

import argparse
import getpass
import sys

from taskflow.core.config import get_settings
from taskflow.core.database import create_supabase_client
from taskflow.core.errors import TaskFlowError
from taskflow.core.logging import configure_logging, get_logger
from taskflow.services.credentials import create_credential
from taskflow.services.db_client import TaskFlowDB

logger = get_logger(__name__)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Create a TaskFlow user")
    parser.add_argument("--username", type=str, required=True, help="Login name (stored lowercase)")
    parser.add_argument("--pin", type=str, default=None, help="4-8 digit PIN (prompted when omitted)")
    parser.add_argument("--display-name", type=str, default=None, help="Name shown in the app")
    parser.add_argument("--admin", action="store_true", help="Grant admin rights")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    pin = args.pin or getpass.getpass("PIN: ")
    db = TaskFlowDB(create_supabase_client(settings))

    try:
        user = create_credential(
            db,
            settings,
            args.username,
            pin,
            display_name=args.display_name,
            is_admin=args.admin,
        )
    except TaskFlowError as e:
        print(f"\n✗ {e.message}")
        sys.exit(1)

    print(f"\n✓ Created user {user['username']} ({user['user_id']})")


if __name__ == "__main__":
    main()

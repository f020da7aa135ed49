"""Crypto bridge database management CLI.

Creates or drops the InvoiceMapping table for SQL-backed deployments
(PROTEAN_ENV=staging or production). The in-memory store needs neither.

Usage:
    python src/manage.py setup-db   # Create tables
    python src/manage.py drop-db    # Drop tables
"""

import argparse
import sys

from dotenv import load_dotenv


def setup_databases():
    """Create the mapping store schema."""
    from bridge.domain import bridge
    from bridge.utils.db import setup_db

    print("Initializing bridge domain...")
    bridge.init()
    created = setup_db(bridge)
    if created:
        print(f"  schema ready on: {', '.join(created)}")
    else:
        print("  no SQL provider configured; nothing to create.")
    print("Done.")


def drop_databases():
    """Drop the mapping store schema."""
    from bridge.domain import bridge
    from bridge.utils.db import drop_db

    print("Initializing bridge domain...")
    bridge.init()
    dropped = drop_db(bridge)
    if dropped:
        print(f"  schema dropped on: {', '.join(dropped)}")
    else:
        print("  no SQL provider configured; nothing to drop.")
    print("Done.")


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(description="Crypto bridge database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create the mapping store tables")
    subparsers.add_parser("drop-db", help="Drop the mapping store tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Registrar database management CLI.

Creates and drops the SQL schema of the registrar domain. Only SQL
providers are touched; the in-memory default has nothing to set up.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def _domain():
    from registrar.domain import registrar

    print("Initializing registrar domain...")
    registrar.init()
    return registrar


def setup_database():
    from registrar.utils.db import create_schema

    domain = _domain()
    print("Creating registrar database schema...")
    create_schema(domain)
    print("Done.")


def drop_database():
    from registrar.utils.db import drop_schema

    domain = _domain()
    print("Dropping registrar database schema...")
    drop_schema(domain)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Registrar database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Design Portal -- operator commands for the jewelry design submission portal.

The web API is served with uvicorn (uvicorn api.main:app). This script covers
the jobs an operator runs from a shell against the same database.

Usage:
  python main.py export --out designs.xlsx
  python main.py export --out designs.csv --format csv
  python main.py create-user --email jane@example.com --name "Jane Doe"
  python main.py create-user --email ops@example.com --name Ops --admin

Environment variables:
  DATABASE_URL  SQLAlchemy URL of the portal database (default: design_portal.db
                next to this file).
"""

import argparse
import getpass
import sys
from pathlib import Path
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import ROLE_ADMIN, ROLE_USER, User
from auth.store import UserStore
from auth.tokens import hash_password, validate_password
from designs.export import to_csv, to_xlsx
from designs.store import DesignStore


def _export(out: str, fmt: str, db_url: Optional[str] = None) -> int:
    """Write every design to *out*. Returns the number of designs written."""
    design_store = DesignStore(db_url)
    user_store = UserStore(db_url)
    try:
        designs = design_store.list_designs()
        if not designs:
            print("  [!] No designs to export.")
            return 0
        owners = {u.id: u.email for u in user_store.list_users()}
        out_path = Path(out)
        if fmt == "csv":
            out_path.write_text(to_csv(designs, owners), encoding="utf-8")
        else:
            out_path.write_bytes(to_xlsx(designs, owners))
    finally:
        design_store.close()
        user_store.close()
    print(f"  Exported {len(designs)} design(s) to {out_path}")
    return len(designs)


def _read_password() -> str:
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Confirm password: "):
        raise ValueError("Passwords do not match.")
    errors = validate_password(password)
    if errors:
        raise ValueError("; ".join(errors))
    return password


def _create_user(
    email: str,
    name: str,
    password: str,
    phone: Optional[str] = None,
    admin: bool = False,
    db_url: Optional[str] = None,
) -> Optional[int]:
    """Create an account directly in the store. Returns the new id, or None on duplicate email."""
    store = UserStore(db_url)
    try:
        if store.email_taken(email):
            print(f"  [!] An account for '{email}' already exists.")
            return None
        user = User(
            email=email,
            name=name,
            phone=phone,
            role=ROLE_ADMIN if admin else ROLE_USER,
            hashed_password=hash_password(password),
        )
        try:
            user_id = store.create_user(user)
        except IntegrityError:
            print(f"  [!] An account for '{email}' already exists.")
            return None
    finally:
        store.close()
    print(f"  Created {user.role} account {user.email} (id {user_id})")
    return user_id


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="design-portal",
        description="Operator commands for the jewelry design portal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py export --out designs.xlsx
  python main.py export --out designs.csv --format csv
  python main.py create-user --email jane@example.com --name "Jane Doe"
  DATABASE_URL=sqlite:////srv/portal.db python main.py create-user --email ops@example.com --name Ops --admin
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    export = sub.add_parser("export", help="Write all designs to a spreadsheet file")
    export.add_argument("--out", required=True, metavar="PATH", help="Output file path")
    export.add_argument(
        "--format",
        choices=["xlsx", "csv"],
        default=None,
        metavar="FORMAT",
        help="xlsx (default) or csv; inferred from the --out suffix when omitted",
    )

    create = sub.add_parser("create-user", help="Create an account (prompts for the password)")
    create.add_argument("--email", required=True, help="Login email")
    create.add_argument("--name", required=True, help="Display name")
    create.add_argument("--phone", default=None, help="Optional phone number")
    create.add_argument("--admin", action="store_true", help="Give the account the ADMIN role")

    args = parser.parse_args(argv)

    if args.command == "export":
        fmt = args.format or ("csv" if args.out.lower().endswith(".csv") else "xlsx")
        _export(args.out, fmt)
        return 0

    if args.command == "create-user":
        try:
            password = _read_password()
        except ValueError as e:
            print(f"  [!] {e}")
            return 1
        user_id = _create_user(args.email, args.name, password, phone=args.phone, admin=args.admin)
        return 0 if user_id is not None else 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())

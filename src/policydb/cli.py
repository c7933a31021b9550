"""Command-line interface for policydb."""

from __future__ import annotations

import argparse
import sqlite3
import sys
from pathlib import Path

from pydantic import ValidationError

from policydb.config.settings import Settings
from policydb.console.logger import StoreConsole
from policydb.core.errors import PolicyDBError
from policydb.core.models import Policy
from policydb.core.types import HASH_SIZE
from policydb.storage.kvdb import KVDBError
from policydb.storage.policies import PolicyStore, open_store


console = StoreConsole()


def _payment_hash(value: str) -> bytes:
    try:
        raw = bytes.fromhex(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a hex string: {value}") from None
    if len(raw) != HASH_SIZE:
        raise argparse.ArgumentTypeError(f"payment hash must be {HASH_SIZE} bytes, got {len(raw)}")
    return raw


def add_policy(store: PolicyStore, payment_hash: bytes, fee: int) -> None:
    """Insert or overwrite a policy."""
    policy = Policy(payment_hash=payment_hash, fee=fee)
    store.insert(policy)
    console.print_success(f"Stored policy {policy.hash_hex}")


def list_policies(store: PolicyStore) -> None:
    """Print every stored policy."""
    console.print_policies(store.fetch_all())


def lookup_policy(store: PolicyStore, payment_hash: bytes) -> None:
    """Print the policy for a payment hash."""
    console.print_policy(store.lookup(payment_hash))


def reset_policies(store: PolicyStore) -> None:
    """Delete every stored policy."""
    store.delete_all()
    console.print_success("All policies deleted")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="policydb", description="Payment fee policy store")
    parser.add_argument("--db", help="Database path (default from settings)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable logging output")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    add = subparsers.add_parser("add", help="Insert or overwrite a policy")
    add.add_argument("payment_hash", type=_payment_hash, help="Payment hash (hex)")
    add.add_argument("fee", type=int, help="Fee in millisatoshi")

    subparsers.add_parser("list", help="List all policies")

    look = subparsers.add_parser("lookup", help="Look up a policy by payment hash")
    look.add_argument("payment_hash", type=_payment_hash, help="Payment hash (hex)")

    subparsers.add_parser("reset", help="Delete all policies")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    settings = Settings()
    if args.db:
        settings.db.path = Path(args.db)
    console.verbose = args.verbose
    console.setup_logging(settings.log_level)

    try:
        store = open_store(settings)
        if args.command == "add":
            add_policy(store, args.payment_hash, args.fee)
        elif args.command == "list":
            list_policies(store)
        elif args.command == "lookup":
            lookup_policy(store, args.payment_hash)
        elif args.command == "reset":
            reset_policies(store)
    except KeyboardInterrupt:
        console.console.print("\n[yellow]Cancelled by user[/yellow]")
        sys.exit(130)
    except ValidationError as e:
        console.print_error(f"Invalid policy: {e.errors()[0]['msg']}")
        sys.exit(1)
    except (PolicyDBError, KVDBError, sqlite3.Error) as e:
        console.print_error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()

"""CLI entry point for receipt scanning and loyalty bookkeeping."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import timedelta

from .config import load_config
from .db import LoyaltyStore
from .errors import PersistenceError
from .pipeline import process_receipt_scan
from .qr import parse_client_qr


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="starspharm",
        description="Fiscal receipt scanning and star awards for pharmacy clients",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="path to a TOML configuration file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # scan
    scan_parser = sub.add_parser("scan", help="process a scanned receipt URL")
    scan_parser.add_argument("url", help="URL decoded from the receipt QR code")
    who = scan_parser.add_mutually_exclusive_group(required=True)
    who.add_argument("--user", type=str, help="client user ID")
    who.add_argument("--client-qr", type=str, help="raw client QR payload (JSON)")
    scan_parser.add_argument("--json", action="store_true", help="print JSON")

    # add-client
    add_parser = sub.add_parser("add-client", help="register a client")
    add_parser.add_argument("user_id")
    add_parser.add_argument("--stars", type=int, default=0)

    # balance
    bal_parser = sub.add_parser("balance", help="show a client's star balance")
    bal_parser.add_argument("user_id")

    # orphans
    orphan_parser = sub.add_parser(
        "orphans", help="list receipts left without any linked items"
    )
    orphan_parser.add_argument(
        "--minutes", type=int, default=5, help="minimum receipt age in minutes"
    )
    orphan_parser.add_argument("--json", action="store_true", help="print JSON")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    config = load_config(args.config)
    level = logging.DEBUG if args.verbose else getattr(
        logging, config.logging.level, logging.INFO
    )
    logging.basicConfig(
        level=level, format="%(levelname)s [%(name)s] %(message)s"
    )

    try:
        with LoyaltyStore(config.database.path) as store:
            match args.command:
                case "scan":
                    code = asyncio.run(_cmd_scan(config, store, args))
                case "add-client":
                    code = _cmd_add_client(store, args)
                case "balance":
                    code = _cmd_balance(store, args)
                case "orphans":
                    code = _cmd_orphans(store, args)
                case _:
                    code = 1
    except PersistenceError as e:
        print(f"Database error: {e}", file=sys.stderr)
        code = 1

    if code:
        sys.exit(code)


async def _cmd_scan(config, store: LoyaltyStore, args) -> int:
    if args.client_qr:
        try:
            user_id = parse_client_qr(args.client_qr)
        except ValueError as e:
            print(f"Invalid client QR code: {e}", file=sys.stderr)
            return 1
    else:
        user_id = args.user

    outcome = await process_receipt_scan(args.url, user_id, store=store, config=config)

    if args.json:
        print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(outcome.message)
        if outcome.data is not None:
            d = outcome.data
            print(f"  Invoice:  {d.invoice_number}")
            print(f"  Total:    {d.total_amount:.2f} RSD ({d.item_count} items)")
            print(f"  Balance:  {d.new_stars_total} stars")
    return 0 if outcome.success else 1


def _cmd_add_client(store: LoyaltyStore, args) -> int:
    try:
        client_id = store.add_client(args.user_id, stars=args.stars)
    except PersistenceError as e:
        print(str(e), file=sys.stderr)
        return 1
    print(f"Client {args.user_id} registered (id {client_id})")
    return 0


def _cmd_balance(store: LoyaltyStore, args) -> int:
    balance = store.get_balance(args.user_id)
    if balance is None:
        print(f"No client with user ID {args.user_id}", file=sys.stderr)
        return 1
    print(f"{args.user_id}: {balance} stars")
    return 0


def _cmd_orphans(store: LoyaltyStore, args) -> int:
    orphans = store.find_orphaned_receipts(timedelta(minutes=args.minutes))
    if args.json:
        print(json.dumps(orphans, ensure_ascii=False, indent=2))
        return 0
    if not orphans:
        print("No orphaned receipts.")
        return 0
    print(f"Orphaned receipts: {len(orphans)}")
    for r in orphans:
        print(f"  #{r['id']}  client {r['client_id']}  {r['amount']:.2f} RSD  {r['scanned_at']}")
    return 0

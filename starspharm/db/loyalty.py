"""Client balances, receipts and the item catalog."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path

from ..errors import PersistenceError
from .schema import ensure_schema

RECEIPT_URL_MAX_LENGTH = 2000


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class LoyaltyStore:
    """Manages the clients, receipts, items and receipt_items tables.

    Every write commits on its own, so a multi-step sequence that fails part
    way leaves the earlier rows in place.
    """

    def __init__(self, db_path: str | Path = "~/.config/starspharm/loyalty.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> LoyaltyStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @contextmanager
    def _write(self, action: str) -> Iterator[sqlite3.Connection]:
        with self._read(action) as conn:
            try:
                yield conn
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise

    @contextmanager
    def _read(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            yield self._get_conn()
        except sqlite3.Error as e:
            raise PersistenceError(f"{action} failed: {e}") from e

    # -- clients --------------------------------------------------------

    def add_client(self, user_id: str, stars: int = 0, qr_code: str = "") -> int:
        """Register a client and return its row ID."""
        with self._write("add client") as conn:
            cur = conn.execute(
                "INSERT INTO clients (user_id, stars, qr_code) VALUES (?, ?, ?)",
                (user_id, stars, qr_code),
            )
        return cur.lastrowid

    def get_client(self, user_id: str) -> dict | None:
        """Look up a client by the stable user identifier."""
        with self._read("client lookup") as conn:
            row = conn.execute(
                "SELECT * FROM clients WHERE user_id = ?", (user_id,)
            ).fetchone()
        return dict(row) if row else None

    def get_balance(self, user_id: str) -> int | None:
        client = self.get_client(user_id)
        return client["stars"] if client else None

    def increment_stars(self, client_id: int, amount: int) -> int | None:
        """Atomically add ``amount`` stars to a client's balance.

        The increment is a single UPDATE, so concurrent awards for the same
        client never overwrite each other.

        Returns:
            The new balance, or None if no client row matched.
        """
        with self._write("balance update") as conn:
            cur = conn.execute(
                "UPDATE clients SET stars = stars + ? WHERE id = ?",
                (amount, client_id),
            )
            if cur.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT stars FROM clients WHERE id = ?", (client_id,)
            ).fetchone()
        return row["stars"]

    # -- receipts -------------------------------------------------------

    def insert_receipt(
        self,
        client_id: int,
        receipt_url: str,
        amount: float,
        scanned_at: str | None = None,
    ) -> int:
        """Record a scanned receipt and return its row ID."""
        with self._write("receipt insert") as conn:
            cur = conn.execute(
                """INSERT INTO receipts (client_id, receipt_url, amount, scanned_at)
                   VALUES (?, ?, ?, ?)""",
                (
                    client_id,
                    receipt_url[:RECEIPT_URL_MAX_LENGTH],
                    amount,
                    scanned_at or _utcnow(),
                ),
            )
        return cur.lastrowid

    def get_receipt(self, receipt_id: int) -> dict | None:
        with self._read("receipt lookup") as conn:
            row = conn.execute(
                "SELECT * FROM receipts WHERE id = ?", (receipt_id,)
            ).fetchone()
        return dict(row) if row else None

    def list_receipts(self, client_id: int) -> list[dict]:
        with self._read("receipt listing") as conn:
            rows = conn.execute(
                "SELECT * FROM receipts WHERE client_id = ? ORDER BY scanned_at DESC",
                (client_id,),
            ).fetchall()
        return [dict(r) for r in rows]

    def find_orphaned_receipts(
        self, older_than: timedelta = timedelta(minutes=5)
    ) -> list[dict]:
        """Return receipts with no linked items that are older than ``older_than``.

        These are left behind when a scan fails after the receipt insert.
        """
        cutoff = (datetime.now(timezone.utc) - older_than).isoformat(timespec="seconds")
        with self._read("orphaned receipt query") as conn:
            rows = conn.execute(
                """SELECT r.* FROM receipts r
                   WHERE r.scanned_at <= ?
                     AND NOT EXISTS (
                         SELECT 1 FROM receipt_items ri WHERE ri.receipt_id = r.id
                     )
                   ORDER BY r.scanned_at""",
                (cutoff,),
            ).fetchall()
        return [dict(r) for r in rows]

    # -- items ----------------------------------------------------------

    def find_item_by_name(self, name: str) -> dict | None:
        """Look up a catalog item by exact name."""
        with self._read("item lookup") as conn:
            row = conn.execute(
                "SELECT * FROM items WHERE name = ?", (name,)
            ).fetchone()
        return dict(row) if row else None

    def insert_item(self, name: str, description: str, price: float) -> int:
        """Add a catalog item and return its row ID.

        If an item with the same name already exists (for example inserted by
        a concurrent scan after our lookup), that row's ID is returned and its
        description and price are left unchanged.
        """
        with self._write("item insert") as conn:
            conn.execute(
                """INSERT INTO items (name, description, price) VALUES (?, ?, ?)
                   ON CONFLICT(name) DO NOTHING""",
                (name, description, price),
            )
            row = conn.execute(
                "SELECT id FROM items WHERE name = ?", (name,)
            ).fetchone()
        return row["id"]

    def count_items(self) -> int:
        with self._read("item count") as conn:
            return conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]

    def link_receipt_item(self, receipt_id: int, item_id: int) -> int:
        """Write one receipt_items row (one purchased unit)."""
        with self._write("receipt item link") as conn:
            cur = conn.execute(
                "INSERT INTO receipt_items (receipt_id, item_id) VALUES (?, ?)",
                (receipt_id, item_id),
            )
        return cur.lastrowid

    def count_receipt_items(self, receipt_id: int, item_id: int | None = None) -> int:
        """Count unit rows linked to a receipt, optionally for one item."""
        with self._read("receipt item count") as conn:
            if item_id is None:
                row = conn.execute(
                    "SELECT COUNT(*) FROM receipt_items WHERE receipt_id = ?",
                    (receipt_id,),
                ).fetchone()
            else:
                row = conn.execute(
                    """SELECT COUNT(*) FROM receipt_items
                       WHERE receipt_id = ? AND item_id = ?""",
                    (receipt_id, item_id),
                ).fetchone()
        return row[0]

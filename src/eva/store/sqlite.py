"""Async SQLite decision log.

Uses aiosqlite for non-blocking access with WAL mode so the API can read
while the loop appends. The input pattern is stored as a JSON column;
numeric columns stay numeric so the log can be queried by hand.
"""

from __future__ import annotations

import json
import os
import sqlite3
from collections.abc import Callable
from typing import Self

import aiosqlite

from eva.exceptions import StoreError
from eva.logging import get_logger
from eva.signals.models import Decision
from eva.store.base import InsertListener, InsertNotifier

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS decisions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at REAL NOT NULL,
    symbol TEXT NOT NULL,
    input_pattern TEXT NOT NULL,
    decision TEXT NOT NULL,
    score REAL NOT NULL,
    strategy_label TEXT NOT NULL,
    confidence REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_decisions_created_at
    ON decisions(created_at);
"""


class SqliteDecisionStore:
    """DecisionStore backed by a single SQLite file.

    Usage:
        async with SqliteDecisionStore("data/decisions.db") as store:
            await store.insert(decision)
    """

    def __init__(self, db_path: str = "data/decisions.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None
        self._notifier = InsertNotifier()

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises RuntimeError if not connected.
        """
        if self._connection is None:
            raise RuntimeError("Decision store not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> None:
        """Open the database, set pragmas and create the schema."""
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)
        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA synchronous=NORMAL")
        await self._connection.executescript(_CREATE_TABLES_SQL)

        cursor = await self._connection.execute("SELECT version FROM schema_version LIMIT 1")
        if await cursor.fetchone() is None:
            await self._connection.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )
        await self._connection.commit()
        logger.info("decision_store_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("decision_store_closed", db_path=self._db_path)

    async def insert(self, decision: Decision) -> None:
        data = decision.to_dict()
        try:
            await self._insert_row(data)
        except sqlite3.Error as e:
            raise StoreError(f"decision insert failed: {e}") from e
        logger.debug("decision_inserted", decision=data["decision"], symbol=data["symbol"])
        await self._notifier.notify(decision)

    async def _insert_row(self, data: dict) -> None:
        await self.db.execute(
            "INSERT INTO decisions "
            "(created_at, symbol, input_pattern, decision, score, strategy_label, confidence) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                data["timestamp"],
                data["symbol"],
                json.dumps(data["input_pattern"]),
                data["decision"],
                data["score"],
                data["strategy_label"],
                data["confidence"],
            ),
        )
        await self.db.commit()

    async def query_recent(self, limit: int = 50) -> list[Decision]:
        try:
            rows = await self._select_recent(limit)
        except sqlite3.Error as e:
            raise StoreError(f"decision query failed: {e}") from e
        return [
            Decision.from_dict(
                {
                    "timestamp": row[0],
                    "symbol": row[1],
                    "input_pattern": json.loads(row[2]),
                    "decision": row[3],
                    "score": row[4],
                    "strategy_label": row[5],
                    "confidence": row[6],
                }
            )
            for row in rows
        ]

    async def _select_recent(self, limit: int) -> list:
        cursor = await self.db.execute(
            "SELECT created_at, symbol, input_pattern, decision, score, strategy_label, confidence "
            "FROM decisions ORDER BY created_at DESC, id DESC LIMIT ?",
            (max(limit, 0),),
        )
        return list(await cursor.fetchall())

    def subscribe(self, listener: InsertListener) -> Callable[[], None]:
        return self._notifier.subscribe(listener)

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()

# src/store/local.py
# persisted key -> JSON value storage, the local fallback for every remote record
from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any, List

from store import database
from utils.errors import LocalStorageError
from utils.logger import get_logger

_logger = get_logger(__name__)


async def get_json(key: str, default: Any = None) -> Any:
    """Return the decoded value stored under key, or default if absent.

    Raises LocalStorageError if the stored text is not valid JSON.
    """
    try:
        async with database.connect() as conn:
            cur = await conn.execute("SELECT value FROM kv WHERE key = ?;", (key,))
            row = await cur.fetchone()
            await cur.close()
    except sqlite3.Error as e:
        raise LocalStorageError(f"Could not read '{key}': {e}") from e
    if row is None:
        return default
    try:
        return json.loads(row[0])
    except json.JSONDecodeError as e:
        raise LocalStorageError(f"Corrupt value stored under '{key}'") from e


async def set_json(key: str, value: Any) -> None:
    """Encode value as JSON and store it under key, replacing any previous value."""
    try:
        text = json.dumps(value)
    except (TypeError, ValueError) as e:
        raise LocalStorageError(f"Value for '{key}' is not JSON serializable") from e
    try:
        async with database.connect() as conn:
            await conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at;
                """,
                (key, text, datetime.now().isoformat()),
            )
            await conn.commit()
    except sqlite3.Error as e:
        raise LocalStorageError(f"Could not write '{key}': {e}") from e
    _logger.debug(f"Stored '{key}' ({len(text)} bytes)")


async def remove(key: str) -> None:
    """Delete key if present."""
    try:
        async with database.connect() as conn:
            await conn.execute("DELETE FROM kv WHERE key = ?;", (key,))
            await conn.commit()
    except sqlite3.Error as e:
        raise LocalStorageError(f"Could not remove '{key}': {e}") from e


async def append_json(key: str, entry: Any) -> List[Any]:
    """Append entry to the JSON list stored under key and return the new list."""
    current = await get_json(key, [])
    if not isinstance(current, list):
        _logger.warning(f"'{key}' did not hold a list, starting a new one")
        current = []
    current.append(entry)
    await set_json(key, current)
    return current
